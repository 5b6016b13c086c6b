"""Vendor :mod:`kubeweb.runtime` into a generated package."""

from __future__ import annotations

import shutil
from pathlib import Path

import kubeweb.runtime

RUNTIME_SOURCE = Path(kubeweb.runtime.__file__).parent


def copy_runtime(package_dir: Path) -> Path:
    """Replace ``<package_dir>/runtime`` with a fresh copy of the runtime sources."""
    target = package_dir / "runtime"
    if target.exists():
        shutil.rmtree(target)
    shutil.copytree(RUNTIME_SOURCE, target, ignore=shutil.ignore_patterns("__pycache__", "*.pyc"))
    return target
