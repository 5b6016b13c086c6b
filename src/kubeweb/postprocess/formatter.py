"""Format generated sources with black."""

from __future__ import annotations

from pathlib import Path

import black

from kubeweb.config import atomic_write
from kubeweb.output import debug, warning


def format_source(source: str, line_length: int = 100) -> str:
    """Return *source* formatted by black (raises on invalid input)."""
    mode = black.Mode(line_length=line_length, target_versions={black.TargetVersion.PY310})
    return black.format_str(source, mode=mode)


def format_tree(root: Path, line_length: int = 100) -> int:
    """Format every ``.py`` file under *root* in place.

    A file black cannot format is reported and left untouched; the run
    continues with the next one.

    Returns:
        Number of files whose content changed.
    """
    changed = 0
    for path in sorted(root.rglob("*.py")):
        original = path.read_text(encoding="utf-8")
        try:
            formatted = format_source(original, line_length)
        except Exception as exc:
            warning(f"Could not format {path}: {exc}")
            continue
        if formatted != original:
            atomic_write(path, formatted)
            changed += 1
            debug(f"Formatted {path}")
    return changed
