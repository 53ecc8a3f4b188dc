"""
SCP Lint
========

Static checks for Sphere-style ``.scp`` server scripts: block structure,
``[EOF]`` markers, bracket and ``<EVAL>`` expression balance, template
selectors, duplicate definitions across files, and identifier references
that resolve to nothing anywhere in the script tree.

Quick start
-----------
>>> from scp_lint import ScpAnalysis
>>> report = ScpAnalysis(root="./scripts").analyze()
>>> for issue in report.issues:
...     print(issue)

Linting files one by one against a shared index:

>>> from scp_lint import LintIndex, ScriptFileLinter, ReferenceResolver
>>> index = LintIndex()
>>> linter = ScriptFileLinter()
>>> issues = linter.lint_file("items.scp", index)
>>> issues += linter.lint_file("npcs.scp", index)
>>> issues += ReferenceResolver().resolve(index)
"""

from .models import (
    DefinitionKey,
    DefinitionLocation,
    LintIndex,
    LintIssue,
    ReferenceUse,
    SourceLine,
)
from .pipeline.references import ReferenceResolver
from .pipeline.scp_analysis import LintReport, ScpAnalysis
from .pipeline.script_lint import ScriptFileLinter

__version__ = "0.1.0"
__all__ = [
    "DefinitionKey",
    "DefinitionLocation",
    "LintIndex",
    "LintIssue",
    "LintReport",
    "ReferenceResolver",
    "ReferenceUse",
    "ScpAnalysis",
    "ScriptFileLinter",
    "SourceLine",
]
