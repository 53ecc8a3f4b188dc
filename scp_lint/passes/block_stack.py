"""
BlockStackValidator
===================

Checks that control blocks (``IF``/``ENDIF``, ``FOR*``/``ENDFOR``,
``DO*``/``ENDDO``, ``WHILE``/``ENDWHILE``, ``BEGIN``/``END``) are properly
paired within one section or trigger body.

+------------------------------------+--------------------------------------+
| Token seen                         | Action                               |
+====================================+======================================+
| Closer, empty stack                | ``without opening block`` issue      |
+------------------------------------+--------------------------------------+
| Closer, wrong kind on top          | Pop, ``mismatch`` issue              |
+------------------------------------+--------------------------------------+
| ``ELSE``/``ELIF``/``ELSEIF``       | Issue unless ``IF`` is on top;       |
|                                    | stack untouched                      |
+------------------------------------+--------------------------------------+
| Opener                             | Push                                 |
+------------------------------------+--------------------------------------+

Frames left open at a section boundary or at end of file are reported at
their own opening line.
"""
from __future__ import annotations

from typing import List, Optional

from ..models import BlockFrame, LintIssue
from ..pipeline.keywords import (
    BLOCK_START_TO_END,
    ELSE_TOKENS,
    END_TOKEN_ALIASES,
    END_TOKENS,
)

BEFORE_SECTION = " before new section."
BEFORE_TRIGGER = " before new trigger."
AT_END_OF_FILE = "."


def normalize_end_token(token: str) -> Optional[str]:
    """Return the canonical closer for *token*, or ``None`` if it is not one."""
    if token in END_TOKENS:
        return token
    return END_TOKEN_ALIASES.get(token)


class BlockStackValidator:
    """Block pairing state for one file."""

    def __init__(self, file: str) -> None:
        self.file = file
        self.stack: List[BlockFrame] = []

    def feed(self, token: str, line: int) -> List[LintIssue]:
        """Process the upper-cased first *token* of a script line."""
        end_token = normalize_end_token(token)
        if end_token:
            return self._close(token, end_token, line)

        if token in ELSE_TOKENS:
            if not self.stack or self.stack[-1].keyword != "IF":
                return [self._issue(line, f"BLOCK: '{token}' without matching IF.")]
            return []

        if token in BLOCK_START_TO_END:
            self.stack.append(BlockFrame(keyword=token, line=line))
        return []

    def flush(self, suffix: str) -> List[LintIssue]:
        """Report and discard every open frame."""
        issues = [
            self._issue(frame.line, f"BLOCK: unclosed '{frame.keyword}' block{suffix}")
            for frame in self.stack
        ]
        self.stack = []
        return issues

    # ------------------------------------------------------------------

    def _close(self, token: str, end_token: str, line: int) -> List[LintIssue]:
        if not self.stack:
            return [self._issue(line, f"BLOCK: '{token}' without opening block.")]
        frame = self.stack.pop()
        expected = BLOCK_START_TO_END[frame.keyword]
        if end_token != expected:
            return [
                self._issue(
                    line,
                    f"BLOCK: mismatch. '{frame.keyword}' closed by '{token}' "
                    f"(expected {expected}).",
                )
            ]
        return []

    def _issue(self, line: int, message: str) -> LintIssue:
        return LintIssue(file=self.file, line=line, category="BLOCK", message=message)
