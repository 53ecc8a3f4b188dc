"""
SectionClassifier
=================

Tracks which section of an SCP file is being scanned.

Recognised markers, checked in this order:

+----------------------------+------------------------------------------------+
| Marker                     | Effect                                         |
+============================+================================================+
| ``[COMMENT ...]``          | Enter free-text mode                           |
+----------------------------+------------------------------------------------+
| ``[TYPE args]``            | Current section = TYPE; free-text mode when    |
|                            | TYPE is BOOK or COMMENT, else leave it         |
+----------------------------+------------------------------------------------+
| ``ON=@Event``              | Leave free-text mode, clear current section    |
+----------------------------+------------------------------------------------+

Each marker closes the previous body, so the caller must flush its block
stack on every event returned by :meth:`SectionClassifier.classify`.

Free-text mode lasts until the next marker, wherever it is indented; all
other lines of a BOOK or COMMENT body are prose.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..models import SourceLine
from ..pipeline.keywords import TEXT_SECTION_TYPES

logger = logging.getLogger(__name__)

_COMMENT_HEADER_RE = re.compile(r"^\[COMMENT(?:\s+[^\]]+)?\]", re.IGNORECASE)
_DEF_HEADER_RE = re.compile(r"^\[(\w+)\s+([^\]]+)\]$")
_TRIGGER_RE = re.compile(r"^ON\s*=\s*@?.+", re.IGNORECASE)

# Event kinds
COMMENT = "COMMENT"
HEADER = "HEADER"
TRIGGER = "TRIGGER"


@dataclass
class SectionEvent:
    """A section boundary found on one line."""

    kind: str
    def_type: str = ""
    args: List[str] = field(default_factory=list)


class SectionClassifier:
    """Stateful classifier for one file; create a new instance per file."""

    def __init__(self) -> None:
        self.current_section: str = ""
        self.in_text_block: bool = False

    def classify(self, line: SourceLine) -> Optional[SectionEvent]:
        """
        Inspect *line* and update the section state.

        Returns
        -------
        Optional[SectionEvent]
            The boundary found on the line, or ``None`` for an ordinary line.
        """
        text = line.text
        if _COMMENT_HEADER_RE.match(text):
            self.in_text_block = True
            return SectionEvent(kind=COMMENT)

        m = _DEF_HEADER_RE.match(text)
        if m:
            def_type = m.group(1).upper()
            self.current_section = def_type
            self.in_text_block = def_type in TEXT_SECTION_TYPES
            logger.debug("%s:%d section [%s]", line.file, line.number, def_type)
            return SectionEvent(kind=HEADER, def_type=def_type, args=m.group(2).split())

        if _TRIGGER_RE.match(text):
            self.in_text_block = False
            self.current_section = ""
            return SectionEvent(kind=TRIGGER)

        return None
