"""
BracketValidator
================

Checks bracket balance on one cleaned SCP line.

``(``, ``[`` and ``{`` are tracked on a stack and must be closed by the
matching character, in order, before the end of the line.

Angle brackets are context dependent.  A ``<`` followed by a letter or
underscore opens an *angle expression* which is scanned on its own:

* **Token mode** – ``<SRC.NAME>``, ``<DEF.X_<LOCAL.Y>>``: identifier
  characters (letters, digits, ``_``, ``.``) and nested angle tokens, closed
  by the first ``>``.  Anything else before the ``>`` means the token is
  unterminated.
* **Evaluation mode** – ``<EVAL ...>``, ``<QVAL ...>`` etc.: the body is an
  expression where ``<`` and ``>`` may also be comparisons.  Parentheses are
  counted separately, and a ``>`` only closes the expression when it sits at
  parenthesis depth zero, is not part of ``>=``, and is followed (after
  optional spaces) by ``)``, ``]``, ``}``, ``,``, ``;`` or the end of the
  line.

The evaluation-mode rule is a heuristic, not a parser.  It accepts
``<EVAL (<A> > <B>)>`` and ``<EVAL (<A>)</8`` alike; when the line ends
with no qualifying ``>`` and no open parenthesis the rest of the line is
taken as the expression (fail open).

Any other ``<`` or ``>`` is a comparison operator and ignored.

Nested expressions are kept on an explicit frame stack; nesting depth is
bounded only by the line length.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..pipeline.keywords import EVAL_KEYWORDS

_CLOSER_FOR = {"(": ")", "[": "]", "{": "}"}
_EVAL_TERMINATORS = frozenset(")]},;")

# Angle frame modes
_TOKEN = "TOKEN"
_EVAL = "EVAL"


@dataclass
class _AngleFrame:
    """One open ``<...>`` expression during a scan."""

    mode: str
    paren_depth: int = 0


def is_angle_token_start(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"


def is_angle_token_char(ch: str) -> bool:
    return is_angle_token_start(ch) or ("0" <= ch <= "9") or ch == "."


def _opens_angle(line: str, i: int) -> bool:
    return line[i] == "<" and i + 1 < len(line) and is_angle_token_start(line[i + 1])


class BracketValidator:
    """Stateless bracket / angle-expression checker."""

    def check(self, line: str) -> Optional[str]:
        """
        Validate *line* and describe the first problem found.

        Returns
        -------
        Optional[str]
            ``None`` when balanced, otherwise one of
            ``"unexpected closing ')'"``, ``"expected ')' but found ']'"``,
            ``"unclosed: (, ["`` or ``"unclosed '<'"``.
        """
        stack: List[str] = []
        i = 0
        n = len(line)
        while i < n:
            ch = line[i]
            if ch in _CLOSER_FOR:
                stack.append(ch)
            elif ch == "<":
                if _opens_angle(line, i):
                    end, ok = self.scan_angle(line, i + 1)
                    if not ok:
                        return "unclosed '<'"
                    i = end
            elif ch in ")]}":
                if not stack:
                    return f"unexpected closing '{ch}'"
                expected = _CLOSER_FOR[stack[-1]]
                if ch != expected:
                    return f"expected '{expected}' but found '{ch}'"
                stack.pop()
            i += 1

        if stack:
            return "unclosed: " + ", ".join(stack)
        return None

    # ------------------------------------------------------------------
    # Angle expressions
    # ------------------------------------------------------------------

    def scan_angle(self, line: str, start: int) -> Tuple[int, bool]:
        """
        Scan the angle expression whose body starts at *start* (just past
        the ``<``).

        Returns
        -------
        Tuple[int, bool]
            Index of the last character belonging to the expression and
            whether it was terminated.  The caller resumes at index + 1.
        """
        n = len(line)
        frames: List[_AngleFrame] = []
        i = self._open_frame(line, start, frames)

        while i < n:
            frame = frames[-1]
            ch = line[i]

            if frame.mode == _TOKEN:
                if is_angle_token_char(ch):
                    i += 1
                elif ch == ">":
                    frames.pop()
                    if not frames:
                        return i, True
                    i += 1
                elif _opens_angle(line, i):
                    i = self._open_frame(line, i + 1, frames)
                else:
                    return i, False
                continue

            if _opens_angle(line, i):
                i = self._open_frame(line, i + 1, frames)
                continue
            if ch == "(":
                frame.paren_depth += 1
            elif ch == ")" and frame.paren_depth > 0:
                frame.paren_depth -= 1
            elif ch in ")]}" and frame.paren_depth == 0:
                # Closer belongs to the enclosing scope; hand it back unconsumed.
                frames.pop()
                if not frames:
                    return i - 1, True
                continue
            elif ch == ">" and frame.paren_depth == 0 and self._closes_eval(line, i):
                frames.pop()
                if not frames:
                    return i, True
            i += 1

        # End of line: evaluation frames with no open parenthesis fail open.
        while frames:
            frame = frames.pop()
            if frame.mode == _TOKEN or frame.paren_depth:
                return n, False
        return n - 1, True

    @staticmethod
    def _open_frame(line: str, start: int, frames: List[_AngleFrame]) -> int:
        """Push the frame for the expression starting at *start*; return the scan index."""
        n = len(line)
        i = start
        while i < n and is_angle_token_char(line[i]):
            i += 1

        word = line[start:i].upper()
        if word in EVAL_KEYWORDS and (i == n or line[i].isspace() or line[i] == "("):
            frames.append(_AngleFrame(mode=_EVAL))
        else:
            frames.append(_AngleFrame(mode=_TOKEN))
        return i

    @staticmethod
    def _closes_eval(line: str, i: int) -> bool:
        if line[i + 1 : i + 2] == "=":
            return False
        rest = line[i + 1 :].lstrip()
        return not rest or rest[0] in _EVAL_TERMINATORS
