"""Lint generated sources with ruff, applying safe auto-fixes.

ruff runs as ``python -m ruff`` in a subprocess with ``--isolated`` so that
whatever configuration surrounds the output directory does not leak in.
"""

from __future__ import annotations

import json
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from kubeweb.exceptions import LintError
from kubeweb.output import debug

_RUFF_TIMEOUT = 600


@dataclass
class LintReport:
    """Outcome of :func:`lint_tree`."""

    fixed: int = 0
    remaining: list[str] = field(default_factory=list)


def _ruff_command(root: Path, select: Sequence[str], ignore: Sequence[str], line_length: int, fix: bool) -> list[str]:
    cmd = [
        sys.executable,
        "-m",
        "ruff",
        "check",
        "--isolated",
        "--no-cache",
        "--output-format",
        "json",
        "--line-length",
        str(line_length),
        "--select",
        ",".join(select),
    ]
    if ignore:
        cmd.extend(["--ignore", ",".join(ignore)])
    if fix:
        cmd.append("--fix")
    cmd.append(str(root))
    return cmd


def _run_ruff(cmd: list[str]) -> list[dict[str, Any]]:
    debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=_RUFF_TIMEOUT)
    except FileNotFoundError as exc:
        raise LintError(f"Could not run ruff: {exc}") from exc
    except subprocess.TimeoutExpired as exc:
        raise LintError(f"ruff timed out after {_RUFF_TIMEOUT} seconds") from exc

    # 0: clean, 1: diagnostics reported, anything else: ruff itself failed
    if result.returncode not in (0, 1):
        detail = (result.stderr or result.stdout).strip().splitlines()
        raise LintError(f"ruff failed (exit {result.returncode}): {detail[-1] if detail else 'no output'}")
    try:
        return json.loads(result.stdout or "[]")
    except json.JSONDecodeError as exc:
        raise LintError(f"Unexpected ruff output: {exc}") from exc


def _describe(diagnostic: dict[str, Any]) -> str:
    location = diagnostic.get("location") or {}
    return (
        f"{diagnostic.get('filename')}:{location.get('row')}:{location.get('column')}: "
        f"{diagnostic.get('code')} {diagnostic.get('message')}"
    )


def lint_tree(
    root: Path,
    select: Sequence[str] = ("E", "F", "I", "W"),
    ignore: Sequence[str] = ("E501",),
    line_length: int = 100,
) -> LintReport:
    """Lint *root*, fix what ruff can, and fail on anything left.

    Returns:
        A :class:`LintReport` with the number of fixed diagnostics.

    Raises:
        LintError: If ruff cannot run or diagnostics remain after auto-fix.
    """
    before = _run_ruff(_ruff_command(root, select, ignore, line_length, fix=False))
    if not before:
        return LintReport()

    after = _run_ruff(_ruff_command(root, select, ignore, line_length, fix=True))
    report = LintReport(fixed=len(before) - len(after), remaining=[_describe(d) for d in after])
    if report.remaining:
        shown = "\n".join(report.remaining[:10])
        more = len(report.remaining) - 10
        suffix = f"\n... and {more} more" if more > 0 else ""
        raise LintError(f"{len(report.remaining)} lint error(s) remain after auto-fix:\n{shown}{suffix}")
    return report
