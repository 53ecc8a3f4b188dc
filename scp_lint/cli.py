"""
SCP Lint – command-line interface
=================================

Usage
-----
::

    python -m scp_lint.cli [ROOT] [OPTIONS]

Options
-------
--ext, -e                 Script file extension to lint (repeatable, default .scp).
--ignore-dir, -i          Extra directory name to skip (repeatable).
--format, -f              Output format: ``text`` (default) or ``json``.
--github-annotations      Emit ``::error`` workflow annotations
                          (default when GITHUB_ACTIONS=true).
--output, -o              Output file path (default: stdout).
--verbose, -v             Enable DEBUG logging.

Exit status is 1 when any issue was found, 0 for a clean tree and 2 for
bad arguments.

Examples
--------
::

    python -m scp_lint.cli scripts/
    python -m scp_lint.cli scripts/ -i old -f json -o lint.json
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .output.reporter import render_json, render_text, running_in_github_actions
from .pipeline.scp_analysis import DEFAULT_EXTENSIONS, DEFAULT_IGNORE_DIRS, ScpAnalysis


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="scp_lint",
        description="SCP Lint – structural and reference checks for .scp scripts",
    )
    p.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Directory containing the scripts (default: current directory)",
    )
    p.add_argument(
        "--ext", "-e",
        action="append",
        default=[],
        metavar="EXT",
        help="Script file extension to lint; repeatable (default: .scp)",
    )
    p.add_argument(
        "--ignore-dir", "-i",
        action="append",
        default=[],
        metavar="NAME",
        help=(
            "Directory name to skip in addition to "
            + ", ".join(sorted(DEFAULT_IGNORE_DIRS))
        ),
    )
    p.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    p.add_argument(
        "--github-annotations",
        action="store_true",
        default=running_in_github_actions(),
        help="Print issues as GitHub Actions annotations",
    )
    p.add_argument(
        "--output", "-o",
        default="-",
        metavar="FILE",
        help="Output file (default: stdout)",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    root = Path(args.root)
    if not root.is_dir():
        print(f"error: {root} is not a directory", file=sys.stderr)
        return 2

    extensions = [
        ext if ext.startswith(".") else f".{ext}" for ext in args.ext
    ] or list(DEFAULT_EXTENSIONS)
    analysis = ScpAnalysis(
        root=str(root),
        extensions=extensions,
        ignore_dirs=args.ignore_dir,
    )
    report = analysis.analyze()

    if args.format == "json":
        output_text = render_json(report)
    else:
        output_text = render_text(report, github=args.github_annotations)

    if args.output == "-":
        print(output_text)
    else:
        Path(args.output).write_text(output_text + "\n", encoding="utf-8")
        print(f"Output written to {args.output}", file=sys.stderr)

    return 1 if report.total else 0


if __name__ == "__main__":
    sys.exit(main())
