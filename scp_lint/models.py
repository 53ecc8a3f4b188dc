"""
Core data models for the SCP linter.

Everything a lint run produces or shares between files lives here: the
cleaned source line, the issue record, and the corpus-wide
:class:`LintIndex` that every per-file scan writes into.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple


# ---------------------------------------------------------------------------
# Issue categories
# ---------------------------------------------------------------------------

ISSUE_CATEGORIES = {
    "CRITICAL",    # Unreadable file, missing / trailing [EOF]
    "BLOCK",       # Unbalanced control blocks
    "SYNTAX",      # Brackets, angle expressions, template selectors
    "LOGIC",       # Empty conditions, missing arguments or values
    "DUPLICATE",   # Definition key seen twice in the corpus
    "TYPO",        # Known keyword misspellings
    "UNDECLARED",  # Reference that resolves to nothing
}


@dataclass
class SourceLine:
    """One physical line of a script file."""

    file: str
    number: int
    raw: str
    text: str

    @property
    def is_blank(self) -> bool:
        return not self.text


@dataclass
class LintIssue:
    """A single finding, attributed to a file and 1-based line."""

    file: str
    line: int
    category: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "category": self.category,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"{self.file}:{self.line}: {self.message}"


# ---------------------------------------------------------------------------
# Definitions and references
# ---------------------------------------------------------------------------


class DefinitionKey(NamedTuple):
    """Upper-cased ``(type, id, subtype)``; subtype is empty for most types."""

    def_type: str
    ident: str
    subtype: str = ""

    @property
    def label(self) -> str:
        return " ".join(part for part in self if part)


class DefinitionLocation(NamedTuple):
    file: str
    line: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class ReferenceUse:
    """An identifier use awaiting corpus-wide resolution."""

    file: str
    line: int
    def_types: Tuple[str, ...]
    ident: str

    @property
    def type_label(self) -> str:
        return "/".join(self.def_types)


@dataclass
class BlockFrame:
    keyword: str
    line: int


# ---------------------------------------------------------------------------
# Shared run state
# ---------------------------------------------------------------------------


@dataclass
class LintIndex:
    """
    State accumulated across every file of one lint run.

    A fresh instance is created per run and handed to each per-file scan;
    the reference resolver reads it once all files have been scanned.

    Attributes
    ----------
    definitions:
        First-seen location per typed :class:`DefinitionKey`.
    aliases:
        Names declared through ``DEFNAME=``, ``[DEFNAME]`` sections or alias
        tables.  An alias satisfies a reference of any type.
    identifiers:
        Bare header ids of every tracked section type.
    references:
        Pending :class:`ReferenceUse` records in scan order.
    """

    definitions: Dict[DefinitionKey, DefinitionLocation] = field(default_factory=dict)
    aliases: Dict[str, DefinitionLocation] = field(default_factory=dict)
    identifiers: Dict[str, DefinitionLocation] = field(default_factory=dict)
    references: List[ReferenceUse] = field(default_factory=list)

    def record_definition(
        self, key: DefinitionKey, location: DefinitionLocation
    ) -> Optional[DefinitionLocation]:
        """Store *location* for *key*; return the earlier location if one exists."""
        previous = self.definitions.get(key)
        if previous is None:
            self.definitions[key] = location
        return previous

    def record_alias(self, name: str, location: DefinitionLocation) -> None:
        upper = name.upper()
        if upper:
            self.aliases.setdefault(upper, location)

    def record_identifier(self, ident: str, location: DefinitionLocation) -> None:
        upper = ident.upper()
        if upper:
            self.identifiers.setdefault(upper, location)

    def is_declared(self, ident: str, def_types: Tuple[str, ...]) -> bool:
        if ident in self.aliases or ident in self.identifiers:
            return True
        return any(DefinitionKey(t, ident) in self.definitions for t in def_types)
