"""
Fixed SCP script vocabularies.

Used by the per-file linter and its passes to recognise tracked definition
types, control-block keywords, free-text directives and the identifier
prefix conventions that imply a definition type.
"""
from __future__ import annotations

import re
from typing import Dict, List, Tuple

EOF_MARKER = "[EOF]"

# Directive that writes arbitrary text to a file; its payload is never checked.
WRITEFILE_PREFIX = "SERV.WRITEFILE "

# ``DEFNAME=<name>`` inside a section gives the section a citable name.
NAMING_DIRECTIVE = "DEFNAME"

# ── Section types ────────────────────────────────────────────────────────

TRACKED_DEF_TYPES: frozenset[str] = frozenset(
    {
        "ITEMDEF", "CHARDEF", "EVENTS", "FUNCTION",
        "REGIONTYPE", "AREADEF", "DIALOG", "MENU", "ROOMDEF",
        "SKILL", "SKILLCLASS", "SKILLMENU",
        "SPAWN", "SPELL", "TYPEDEF",
        "TEMPLATE",
    }
)

# Sections holding prose rather than script.
TEXT_SECTION_TYPES: frozenset[str] = frozenset({"BOOK", "COMMENT"})

# Sections whose DEFNAME= value is also registered as a typed key.
NAMED_DEF_TYPES: frozenset[str] = frozenset({"ITEMDEF", "CHARDEF"})

# ``[DEFNAME x]`` – first field of every content line is a declared name.
DEFNAME_SECTION = "DEFNAME"

# Backward-compatibility tables: every token is an alias, nothing is checked.
ALIAS_TABLE_TYPES: frozenset[str] = frozenset({"RESDEFNAME", "RES_RESDEFNAME"})

TEMPLATE_SECTION = "TEMPLATE"

# Dialog sub-blocks that form independent keys.
DIALOG_SUBTYPES: frozenset[str] = frozenset({"TEXT", "BUTTON"})

# ── Free-text directives (bracket checks and reference scans skipped) ────

TEXT_KEYWORDS: frozenset[str] = frozenset(
    {
        "SAY", "SYSMESSAGE", "MESSAGE", "EMOTE", "SAYU", "SAYUA",
        "TITLE", "NAME", "DESC", "PROMPTCONSOLE", "BARK", "GROUP",
        "EVENTS", "FLAGS", "RECT", "P", "AUTHOR", "PAGES",
    }
)

# ── Control blocks ───────────────────────────────────────────────────────

BLOCK_START_TO_END: Dict[str, str] = {
    "IF": "ENDIF",
    "WHILE": "ENDWHILE",
    "FOR": "ENDFOR",
    "FORCHARS": "ENDFOR",
    "FORCHARMEMORYTYPE": "ENDFOR",
    "FORCONTTYPE": "ENDFOR",
    "FORCHARLAYER": "ENDFOR",
    "FORCLIENTS": "ENDFOR",
    "FORITEMS": "ENDFOR",
    "FOROBJS": "ENDFOR",
    "FORCONT": "ENDFOR",
    "FORCONTID": "ENDFOR",
    "FORPLAYERS": "ENDFOR",
    "FORINSTANCES": "ENDFOR",
    "DORAND": "ENDDO",
    "DOSWITCH": "ENDDO",
    "DOSELECT": "ENDDO",
    "BEGIN": "END",
}

END_TOKENS: frozenset[str] = frozenset({"ENDIF", "ENDWHILE", "ENDFOR", "ENDDO", "END"})

# Misspellings accepted by the server as ENDDO.
END_TOKEN_ALIASES: Dict[str, str] = {"ENDO": "ENDDO", "ENDOR": "ENDDO"}

ELSE_TOKENS: frozenset[str] = frozenset({"ELSE", "ELIF", "ELSEIF"})

# First tokens whose ``=`` is a comparison, not an assignment.
FLOW_CONTROL_TOKENS: frozenset[str] = frozenset({"IF", "ELIF", "ELSEIF", "WHILE"})

EMPTY_CONDITION_TOKENS: frozenset[str] = frozenset({"IF", "ELSEIF", "ELIF"})

MISSING_ARG_MESSAGES: Dict[str, str] = {
    "WHILE": "LOGIC: WHILE missing condition.",
    "FOR": (
        "LOGIC: FOR missing expression (expected: FOR <expr>, "
        "FOR <start> <end>, or FOR <var> <start> <end>)."
    ),
    "DORAND": "LOGIC: DORAND missing line count.",
    "DOSWITCH": "LOGIC: DOSWITCH missing line number.",
}

FOR_ARG_TOKENS: frozenset[str] = frozenset(
    {
        "FORCHARS", "FORITEMS", "FOROBJS", "FORCONT", "FORCONTID",
        "FORCONTTYPE", "FORINSTANCES", "FORCHARLAYER", "FORCHARMEMORYTYPE",
    }
)

TYPO_MESSAGES: Dict[str, str] = {
    "DORAN": "TYPO: 'DORAN' found. Did you mean 'DORAND'?",
    "EN": "TYPO: 'EN' found. Did you mean 'ENDO', 'ENDDO', or 'ENDIF'?",
}

# ── Angle expressions ────────────────────────────────────────────────────

# ``<EVAL ...>`` and friends hold arithmetic / comparison expressions.
EVAL_KEYWORDS: frozenset[str] = frozenset({"EVAL", "FVAL", "HVAL", "DVAL", "UVAL", "QVAL"})

# ── Reference prefixes ───────────────────────────────────────────────────

_PREFIX_TYPES: List[Tuple[str, Tuple[str, ...]]] = [
    ("i_", ("ITEMDEF",)),
    ("c_", ("CHARDEF",)),
    ("spawn_", ("SPAWN",)),
    ("t_", ("TYPEDEF",)),
    ("s_", ("SPELL",)),
    ("r_", ("REGIONTYPE", "AREADEF")),
    ("e_", ("EVENTS",)),
    ("m_", ("MENU",)),
    ("d_", ("DIALOG",)),
    ("f_", ("FUNCTION",)),
]

REFERENCE_PATTERNS: List[Tuple[re.Pattern[str], Tuple[str, ...]]] = [
    (re.compile(rf"\b{re.escape(prefix)}[a-z0-9_]+\b", re.IGNORECASE), types)
    for prefix, types in _PREFIX_TYPES
]

# ── Template directives ──────────────────────────────────────────────────

TEMPLATE_DIRECTIVE_TYPES: Dict[str, Tuple[str, ...]] = {
    "ITEM": ("ITEMDEF", "TEMPLATE"),
    "CONTAINER": ("ITEMDEF",),
}
