"""
ScpAnalysis
===========

Full lint run over a directory of SCP scripts.

Combines file discovery (extension filter + ignored directory names) with
:class:`~scp_lint.pipeline.script_lint.ScriptFileLinter` (per-file checks)
and :class:`~scp_lint.pipeline.references.ReferenceResolver` (corpus-wide
reference resolution, run once after every file has been scanned).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Set

from ..models import LintIndex, LintIssue
from .references import ReferenceResolver
from .script_lint import ScriptFileLinter

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".scp",)
DEFAULT_IGNORE_DIRS = frozenset({".git", ".github", "backup", "backups", "trash"})


@dataclass
class LintReport:
    """Outcome of one lint run."""

    issues: List[LintIssue] = field(default_factory=list)
    files_scanned: int = 0

    @property
    def files_with_issues(self) -> int:
        return len({issue.file for issue in self.issues})

    @property
    def total(self) -> int:
        return len(self.issues)

    def to_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "files_with_issues": self.files_with_issues,
            "total_issues": self.total,
            "issues": [issue.to_dict() for issue in self.issues],
        }


class ScpAnalysis:
    """
    High-level facade for linting a script tree.

    Parameters
    ----------
    root:
        Directory scanned for scripts.  Issue file names are reported
        relative to it, with forward slashes.
    extensions:
        File suffixes to lint (case-insensitive).
    ignore_dirs:
        Extra directory names pruned from the walk, in addition to
        :data:`DEFAULT_IGNORE_DIRS`.
    """

    def __init__(
        self,
        root: str = ".",
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        ignore_dirs: Iterable[str] = (),
    ) -> None:
        self.root = Path(root)
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.ignore_dirs: Set[str] = set(DEFAULT_IGNORE_DIRS) | set(ignore_dirs)
        self._linter = ScriptFileLinter()
        self._resolver = ReferenceResolver()
        #: Directories that could not be listed during the last walk.
        self.walk_errors: List[OSError] = []

    # ------------------------------------------------------------------
    # Primary API
    # ------------------------------------------------------------------

    def discover(self) -> Iterator[Path]:
        """Yield script files under :attr:`root` in sorted walk order."""
        self.walk_errors = []
        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._on_walk_error):
            dirnames[:] = sorted(d for d in dirnames if d not in self.ignore_dirs)
            for filename in sorted(filenames):
                if filename.lower().endswith(self.extensions):
                    yield Path(dirpath) / filename

    def analyze(self, paths: Optional[Iterable[Path]] = None) -> LintReport:
        """
        Lint *paths* (default: :meth:`discover`) and resolve references.

        Returns
        -------
        LintReport
            Per-file issues in scan order followed by UNDECLARED issues.
        """
        index = LintIndex()
        report = LintReport()
        self.walk_errors = []

        for path in paths if paths is not None else self.discover():
            report.files_scanned += 1
            report.issues.extend(
                self._linter.lint_file(path, index, display_name=self.relative_name(path))
            )

        for exc in self.walk_errors:
            report.issues.append(
                LintIssue(
                    file=self.relative_name(Path(exc.filename or self.root)),
                    line=1,
                    category="CRITICAL",
                    message=f"CRITICAL: cannot list directory: {exc.strerror or exc}",
                )
            )

        report.issues.extend(self._resolver.resolve(index))
        logger.info(
            "Scanned %d file(s): %d issue(s) in %d file(s)",
            report.files_scanned,
            report.total,
            report.files_with_issues,
        )
        return report

    def relative_name(self, path: Path) -> str:
        try:
            rel = Path(path).relative_to(self.root)
        except ValueError:
            return str(path)
        if str(rel) == ".":
            return str(path)
        return rel.as_posix()

    def _on_walk_error(self, exc: OSError) -> None:
        logger.warning("Cannot list %s: %s", exc.filename, exc)
        self.walk_errors.append(exc)
