"""
LineNormalisePass
=================

First stage of the per-file scan.

Every physical line becomes a :class:`~scp_lint.models.SourceLine`:
  * Everything from the first ``//`` onward is dropped (line comment).
  * Leading and trailing whitespace is trimmed.

Blank results are kept (``is_blank``) so that line numbers stay aligned
with the file; downstream passes simply skip them.
"""
from __future__ import annotations

from typing import List

from ..models import SourceLine

_COMMENT_MARKER = "//"


def clean_line(line: str) -> str:
    """Return *line* without its ``//`` comment and surrounding whitespace."""
    idx = line.find(_COMMENT_MARKER)
    if idx >= 0:
        line = line[:idx]
    return line.strip()


class LineNormalisePass:
    """Turns raw text lines into numbered, cleaned source lines."""

    def run(self, lines: List[str], file: str) -> List[SourceLine]:
        """
        Parameters
        ----------
        lines:
            Raw lines of one file (newlines already stripped).
        file:
            Display name recorded on every line.

        Returns
        -------
        List[SourceLine]
            One entry per input line, numbered from 1.
        """
        return [
            SourceLine(file=file, number=number, raw=raw, text=clean_line(raw))
            for number, raw in enumerate(lines, start=1)
        ]
