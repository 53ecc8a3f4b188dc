"""
Reference collection and resolution
===================================

Identifier references are handled in two phases because a script may use a
name that is only declared in a file scanned later:

1. :class:`ReferenceCollector` runs during the per-file scan and appends a
   :class:`~scp_lint.models.ReferenceUse` for every prefix-convention
   identifier (``i_``, ``c_``, ``spawn_`` …) and every template
   ``ITEM=`` / ``CONTAINER=`` target.
2. :class:`ReferenceResolver` runs once after every file has been scanned
   and reports the references that match nothing in the finished index.
"""
from __future__ import annotations

import logging
from typing import List, Set, Tuple

from ..models import LintIndex, LintIssue, ReferenceUse
from .keywords import REFERENCE_PATTERNS

logger = logging.getLogger(__name__)


class ReferenceCollector:
    """Appends pending references from one file to the shared index."""

    def __init__(self, index: LintIndex, file: str) -> None:
        self.index = index
        self.file = file

    def collect(self, text: str, line: int) -> int:
        """
        Record every prefix-convention identifier on *text*.

        A match directly followed by ``<`` is a fragment of a name built at
        run time (``f_multis_<LOCAL.LANG>``) and is skipped.

        Returns
        -------
        int
            Number of references recorded.
        """
        count = 0
        for pattern, def_types in REFERENCE_PATTERNS:
            for m in pattern.finditer(text):
                if text[m.end() : m.end() + 1] == "<":
                    continue
                self._add(line, def_types, m.group(0).upper())
                count += 1
        return count

    def collect_identifiers(
        self, idents: List[str], def_types: Tuple[str, ...], line: int
    ) -> None:
        """Record already-extracted identifiers (template directive targets)."""
        for ident in idents:
            self._add(line, def_types, ident.upper())

    def _add(self, line: int, def_types: Tuple[str, ...], ident: str) -> None:
        self.index.references.append(
            ReferenceUse(file=self.file, line=line, def_types=def_types, ident=ident)
        )


class ReferenceResolver:
    """Resolves every pending reference against the finished index."""

    def resolve(self, index: LintIndex) -> List[LintIssue]:
        """
        Returns
        -------
        List[LintIssue]
            One UNDECLARED issue per distinct unresolved
            ``(file, line, identifier, types)``, in reference order.
        """
        issues: List[LintIssue] = []
        seen: Set[Tuple[str, int, str, str]] = set()
        for ref in index.references:
            if index.is_declared(ref.ident, ref.def_types):
                continue
            key = (ref.file, ref.line, ref.ident, ref.type_label)
            if key in seen:
                continue
            seen.add(key)
            issues.append(
                LintIssue(
                    file=ref.file,
                    line=ref.line,
                    category="UNDECLARED",
                    message=(
                        f"UNDECLARED: '{ref.ident}' not defined as "
                        f"{ref.type_label} or DEFNAME."
                    ),
                )
            )

        logger.info(
            "Resolved %d references, %d undeclared",
            len(index.references),
            len(issues),
        )
        return issues
