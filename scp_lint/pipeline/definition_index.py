"""
DefinitionIndexBuilder
======================

Feeds definitions found in one file into the run's shared
:class:`~scp_lint.models.LintIndex`.

Three tables are maintained:

* ``definitions`` – typed keys from ``[TYPE id]`` headers of tracked types
  (plus ``DEFNAME=`` names inside ``ITEMDEF`` / ``CHARDEF``).  A second
  header with the same key is a duplicate.
* ``identifiers`` – the bare id of every tracked header, whatever its type.
* ``aliases`` – names from ``DEFNAME=`` directives, ``[DEFNAME]`` sections
  and the ``[RESDEFNAME]`` / ``[RES_RESDEFNAME]`` compatibility tables.

Alias tables are trusted: their values are registered as declared names
and never checked against the rest of the corpus.
"""
from __future__ import annotations

import logging
import re
from typing import List

from ..models import DefinitionKey, DefinitionLocation, LintIndex, LintIssue
from .keywords import (
    DIALOG_SUBTYPES,
    NAMED_DEF_TYPES,
    NAMING_DIRECTIVE,
    TRACKED_DEF_TYPES,
)

logger = logging.getLogger(__name__)

_NAMING_RE = re.compile(rf"^{NAMING_DIRECTIVE}\s*=\s*(\S+)", re.IGNORECASE)
_ALIAS_TOKEN_SPLIT_RE = re.compile(r"[\s=,]+")


def parse_naming_directive(text: str) -> str:
    """Return the name given by ``DEFNAME=<name>`` on *text*, or ``""``."""
    m = _NAMING_RE.match(text)
    return m.group(1) if m else ""


class DefinitionIndexBuilder:
    """Records definitions from one file into a shared index."""

    def __init__(self, index: LintIndex, file: str) -> None:
        self.index = index
        self.file = file

    def on_header(self, def_type: str, args: List[str], line: int) -> List[LintIssue]:
        """
        Register a ``[def_type args...]`` header.

        Returns
        -------
        List[LintIssue]
            A single DUPLICATE issue when the key was already defined.
        """
        if def_type not in TRACKED_DEF_TYPES or not args:
            return []

        ident = args[0].upper()
        location = DefinitionLocation(self.file, line)
        self.index.record_identifier(ident, location)

        subtype = ""
        if def_type == "DIALOG" and len(args) > 1 and args[1].upper() in DIALOG_SUBTYPES:
            subtype = args[1].upper()
        key = DefinitionKey(def_type, ident, subtype)

        previous = self.index.record_definition(key, location)
        if previous is None:
            return []
        logger.debug("%s:%d duplicate %s (first at %s)", self.file, line, key.label, previous)
        return [
            LintIssue(
                file=self.file,
                line=line,
                category="DUPLICATE",
                message=f"DUPLICATE: '{key.label}' already defined at {previous}.",
            )
        ]

    def on_naming_directive(self, section: str, name: str, line: int) -> None:
        """``DEFNAME=<name>`` inside *section*."""
        location = DefinitionLocation(self.file, line)
        self.index.record_alias(name, location)
        if section in NAMED_DEF_TYPES:
            self.index.record_definition(DefinitionKey(section, name.upper()), location)

    def on_defname_entry(self, text: str, line: int) -> None:
        """A content line of a ``[DEFNAME]`` section: ``<name> <value>``."""
        fields = text.split()
        if fields:
            self.index.record_alias(fields[0], DefinitionLocation(self.file, line))

    def on_alias_table_entry(self, text: str, line: int) -> None:
        """A content line of a ``[RESDEFNAME]`` table; every token is an alias."""
        location = DefinitionLocation(self.file, line)
        for token in _ALIAS_TOKEN_SPLIT_RE.split(text):
            if token:
                self.index.record_alias(token, location)
