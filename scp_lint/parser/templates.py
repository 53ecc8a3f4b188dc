"""
Template directive parsing
==========================

``[TEMPLATE name]`` sections list what a loot template produces:

  ``ITEM=i_gold,{10 20}``          item with an amount range
  ``ITEM=i_sword_long,R5``         item with a 1-in-5 chance selector
  ``ITEM={ i_apple 1 i_pear 2 }``  weighted choice between items
  ``CONTAINER=i_backpack``         container for the following items

Only ``ITEM`` and ``CONTAINER`` are parsed.  The first comma-separated part
of the value names what is produced; later parts are amount / chance
selectors.

Chance selectors are only looked for after the first comma, since item
names such as ``random_food`` also start with ``r``.  A selector part that
starts with ``R`` must be ``R`` followed by digits and nothing else:
``R1A`` and ``R5x`` are both rejected, as is ``Rx``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..pipeline.keywords import TEMPLATE_DIRECTIVE_TYPES

_DIRECTIVE_RE = re.compile(
    r"^(" + "|".join(TEMPLATE_DIRECTIVE_TYPES) + r")\s*=\s*(.*)$",
    re.IGNORECASE,
)
_BRACE_GROUP_RE = re.compile(r"\{([^{}]*)\}")
_TOKEN_SPLIT_RE = re.compile(r"[\s{}]+")
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NUMBER_RE = re.compile(r"^-?[0-9][0-9A-Fa-f.]*$")
_CHANCE_SELECTOR_RE = re.compile(r"^R[0-9]+$", re.IGNORECASE)


@dataclass
class TemplateDirective:
    name: str
    value: str

    @property
    def def_types(self) -> Tuple[str, ...]:
        return TEMPLATE_DIRECTIVE_TYPES[self.name]


def parse_directive(text: str) -> Optional[TemplateDirective]:
    """Return the directive on *text* (a cleaned line), if it is one."""
    m = _DIRECTIVE_RE.match(text)
    if not m:
        return None
    return TemplateDirective(name=m.group(1).upper(), value=m.group(2).strip())


def _is_identifier(token: str) -> bool:
    return bool(_IDENT_RE.match(token)) and not _CHANCE_SELECTOR_RE.match(token)


class TemplateDirectiveValidator:
    """Checks the value syntax of ``ITEM=`` / ``CONTAINER=`` lines."""

    def identifiers(self, directive: TemplateDirective) -> List[str]:
        """Bare identifiers named by the directive, upper-cased, in order."""
        head = directive.value.split(",", 1)[0]
        return [
            token.upper()
            for token in _TOKEN_SPLIT_RE.split(head)
            if token and _is_identifier(token)
        ]

    def validate(self, directive: TemplateDirective) -> List[Tuple[str, str]]:
        """
        Returns
        -------
        List[Tuple[str, str]]
            ``(category, message)`` pairs; empty when the value is well formed.
        """
        if not directive.value:
            return [("LOGIC", f"LOGIC: {directive.name} missing value.")]

        problems: List[Tuple[str, str]] = []
        for m in _BRACE_GROUP_RE.finditer(directive.value):
            message = self._check_range_selector(m.group(0), m.group(1))
            if message:
                problems.append(("SYNTAX", message))

        for part in directive.value.split(",")[1:]:
            token = part.strip()
            if token[:1] in ("R", "r") and not _CHANCE_SELECTOR_RE.match(token):
                problems.append(
                    (
                        "SYNTAX",
                        f"SYNTAX: template R selector '{token}' must be R "
                        "followed by digits (e.g. R5).",
                    )
                )
        return problems

    @staticmethod
    def _check_range_selector(group: str, inner: str) -> Optional[str]:
        tokens = inner.split()
        if "<" in inner or any(_is_identifier(t) for t in tokens):
            # Weighted item list or dynamic value, not a range.
            return None
        if len(tokens) != 2 or not all(_NUMBER_RE.match(t) for t in tokens):
            return (
                f"SYNTAX: template range selector '{group}' must hold exactly "
                "two numbers (e.g. {1 3})."
            )
        if inner != inner.strip():
            return (
                f"SYNTAX: template range selector '{group}' must not have "
                "spaces inside the braces (e.g. {1 3})."
            )
        return None
