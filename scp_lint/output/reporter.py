"""
Issue reporting
===============

Renders a :class:`~scp_lint.pipeline.scp_analysis.LintReport` for a
console, for GitHub Actions workflow annotations, or as JSON.

Console form::

    ERROR items/weapons.scp:12: BLOCK: unclosed 'IF' block.

Annotation form (``%``, CR and LF escaped as the runner expects)::

    ::error file=items/weapons.scp,line=12::items/weapons.scp:12: BLOCK: ...
"""
from __future__ import annotations

import json
import os
from typing import List

from ..models import LintIssue
from ..pipeline.scp_analysis import LintReport

_RULE = "-" * 45


def running_in_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def escape_annotation(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def format_issue(issue: LintIssue, github: bool = False) -> str:
    line = max(issue.line, 1)
    if github:
        message = issue.message
        if issue.file:
            message = f"{issue.file}:{line}: {message}"
        return f"::error file={issue.file},line={line}::{escape_annotation(message)}"
    if issue.file:
        return f"ERROR {issue.file}:{line}: {issue.message}"
    return f"ERROR {issue.message}"


def render_text(report: LintReport, github: bool = False) -> str:
    """All issues followed by the run summary."""
    lines: List[str] = [format_issue(issue, github) for issue in report.issues]
    lines.append(_RULE)
    lines.append(f"Files scanned: {report.files_scanned}")
    lines.append(f"Files with errors: {report.files_with_issues}")
    lines.append(f"Total errors: {report.total}")
    return "\n".join(lines)


def render_json(report: LintReport) -> str:
    return json.dumps(report.to_dict(), indent=2)
