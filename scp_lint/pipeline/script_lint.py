"""
ScriptFileLinter
================

Runs one SCP file through the per-line checks and returns its issues.

Pipeline stages for each file:

1. :class:`~scp_lint.passes.normalise.LineNormalisePass`
   – strip ``//`` comments and whitespace, number the lines.
2. :class:`~scp_lint.passes.section_classifier.SectionClassifier`
   – section headers, comment blocks, triggers; every boundary flushes the
   block stack and headers feed the definition index.
3. Per script line (outside free-text blocks):
     * :class:`~scp_lint.parser.brackets.BracketValidator`
     * keyword typos, empty conditions, missing arguments, ``[EOF]`` text
     * :class:`~scp_lint.passes.block_stack.BlockStackValidator`
     * :class:`~scp_lint.pipeline.definition_index.DefinitionIndexBuilder`
       (``DEFNAME=``, ``[DEFNAME]`` and alias-table lines)
     * :class:`~scp_lint.pipeline.references.ReferenceCollector`, or the
       template directive checks inside ``[TEMPLATE]`` sections.
4. End of file: ``[EOF]`` check and unclosed blocks.

Undeclared references are *not* reported here; see
:class:`~scp_lint.pipeline.references.ReferenceResolver`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..models import LintIndex, LintIssue, SourceLine
from ..parser.brackets import BracketValidator
from ..parser.templates import TemplateDirectiveValidator, parse_directive
from ..passes.block_stack import (
    AT_END_OF_FILE,
    BEFORE_SECTION,
    BEFORE_TRIGGER,
    BlockStackValidator,
)
from ..passes.normalise import LineNormalisePass
from ..passes.section_classifier import HEADER, TRIGGER, SectionClassifier
from .definition_index import DefinitionIndexBuilder, parse_naming_directive
from .keywords import (
    ALIAS_TABLE_TYPES,
    DEFNAME_SECTION,
    EMPTY_CONDITION_TOKENS,
    EOF_MARKER,
    FLOW_CONTROL_TOKENS,
    FOR_ARG_TOKENS,
    MISSING_ARG_MESSAGES,
    TEMPLATE_SECTION,
    TEXT_KEYWORDS,
    TYPO_MESSAGES,
    WRITEFILE_PREFIX,
)
from .references import ReferenceCollector

logger = logging.getLogger(__name__)


def is_text_keyword(token: str) -> bool:
    """True when the last dotted segment of *token* is a free-text directive."""
    if not token:
        return False
    tail = token.rpartition(".")[2] or token
    return tail.upper() in TEXT_KEYWORDS


class _FileScan:
    """Per-file state shared by the line checks."""

    def __init__(self, file: str, index: LintIndex) -> None:
        self.file = file
        self.issues: List[LintIssue] = []
        self.sections = SectionClassifier()
        self.blocks = BlockStackValidator(file)
        self.definitions = DefinitionIndexBuilder(index, file)
        self.references = ReferenceCollector(index, file)

    def add(self, line: int, category: str, message: str) -> None:
        self.issues.append(
            LintIssue(file=self.file, line=line, category=category, message=message)
        )


class ScriptFileLinter:
    """
    Per-file entry point of the linter.

    The same instance can lint any number of files; all run-wide state is
    carried by the :class:`~scp_lint.models.LintIndex` passed to each call.
    """

    def __init__(self) -> None:
        self._brackets = BracketValidator()
        self._templates = TemplateDirectiveValidator()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def lint_file(
        self,
        file_path: Union[str, Path],
        index: LintIndex,
        display_name: Optional[str] = None,
    ) -> List[LintIssue]:
        """
        Lint a script **file**.

        Parameters
        ----------
        file_path:
            Path of the ``.scp`` file to read.
        index:
            Shared run index; definitions and pending references are added.
        display_name:
            Name recorded on issues (defaults to *file_path*).

        Returns
        -------
        List[LintIssue]
            Issues in line order, followed by end-of-file issues.  An
            unreadable file yields a single CRITICAL issue.
        """
        name = display_name or str(file_path)
        logger.info("Linting file: %s", file_path)
        try:
            source = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Cannot read %s: %s", file_path, exc)
            return [
                LintIssue(
                    file=name,
                    line=1,
                    category="CRITICAL",
                    message=f"CRITICAL: cannot read file: {exc}",
                )
            ]
        return self.lint_text(source, name, index)

    def lint_text(self, source: str, name: str, index: LintIndex) -> List[LintIssue]:
        """Lint script source supplied as a **string**, recorded as *name*."""
        lines = LineNormalisePass().run(source.splitlines(), name)
        return self._scan(lines, name, index)

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def _scan(self, lines: List[SourceLine], name: str, index: LintIndex) -> List[LintIssue]:
        scan = _FileScan(name, index)
        last_text = ""

        for line in lines:
            if line.is_blank:
                continue
            last_text = line.text

            event = scan.sections.classify(line)
            if event is not None:
                suffix = BEFORE_TRIGGER if event.kind == TRIGGER else BEFORE_SECTION
                scan.issues.extend(scan.blocks.flush(suffix))
                if event.kind == HEADER:
                    scan.issues.extend(
                        scan.definitions.on_header(event.def_type, event.args, line.number)
                    )
                continue

            if scan.sections.in_text_block:
                continue

            self._check_line(scan, line)

        if last_text.upper() != EOF_MARKER:
            scan.add(max(len(lines), 1), "CRITICAL", "CRITICAL: missing [EOF] at end of file.")
        scan.issues.extend(scan.blocks.flush(AT_END_OF_FILE))

        logger.debug("%s: %d lines, %d issues", name, len(lines), len(scan.issues))
        return scan.issues

    def _check_line(self, scan: _FileScan, line: SourceLine) -> None:
        text = line.text
        section = scan.sections.current_section
        fields = text.split()
        token = fields[0]
        upper_token = token.upper()
        upper_text = text.upper()

        is_write_file = upper_text.startswith(WRITEFILE_PREFIX)
        is_text_line = is_text_keyword(token)
        is_assignment = "=" in text and upper_token not in FLOW_CONTROL_TOKENS
        in_alias_table = section in ALIAS_TABLE_TYPES

        # Declarations
        if section == DEFNAME_SECTION:
            scan.definitions.on_defname_entry(text, line.number)
        elif in_alias_table:
            scan.definitions.on_alias_table_entry(text, line.number)
        defname = parse_naming_directive(text)
        if defname:
            scan.definitions.on_naming_directive(section, defname, line.number)

        if not is_text_line and not is_write_file:
            detail = self._brackets.check(text)
            if detail:
                scan.add(line.number, "SYNTAX", f"SYNTAX: brackets -> {detail}")

        if upper_text.startswith(EOF_MARKER) and upper_text != EOF_MARKER:
            scan.add(line.number, "CRITICAL", "CRITICAL: text found after [EOF].")

        if not is_text_line and not is_assignment:
            self._check_statement(scan, line, fields, upper_token)

        if is_text_line or is_write_file or in_alias_table:
            return

        directive = parse_directive(text) if section == TEMPLATE_SECTION else None
        if directive is None:
            scan.references.collect(text, line.number)
            return
        for category, message in self._templates.validate(directive):
            scan.add(line.number, category, message)
        scan.references.collect_identifiers(
            self._templates.identifiers(directive), directive.def_types, line.number
        )

    @staticmethod
    def _check_statement(
        scan: _FileScan, line: SourceLine, fields: List[str], upper_token: str
    ) -> None:
        number = line.number

        if upper_token in TYPO_MESSAGES:
            scan.add(number, "TYPO", TYPO_MESSAGES[upper_token])
        if upper_token in EMPTY_CONDITION_TOKENS and len(fields) == 1:
            scan.add(number, "LOGIC", f"LOGIC: empty '{upper_token}' statement.")

        if len(fields) < 2:
            if upper_token in MISSING_ARG_MESSAGES:
                scan.add(number, "LOGIC", MISSING_ARG_MESSAGES[upper_token])
            elif upper_token in FOR_ARG_TOKENS:
                scan.add(number, "LOGIC", f"LOGIC: {upper_token} missing argument.")

        scan.issues.extend(scan.blocks.feed(upper_token, number))
