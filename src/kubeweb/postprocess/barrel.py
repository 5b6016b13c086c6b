"""Write the package ``__init__.py`` re-exporting the generated client."""

from __future__ import annotations

from pathlib import Path

from kubeweb.codegen.generator import render_template
from kubeweb.config import atomic_write
from kubeweb.models import TargetProfile


def generated_modules(package_dir: Path) -> list[str]:
    """Stems of the generated tag modules (``models`` excluded), sorted."""
    return sorted(
        p.stem for p in (package_dir / "generated").glob("*.py") if p.stem not in ("__init__", "models")
    )


def write_barrel(package_dir: Path, profile: TargetProfile, title: str = "Kubernetes API") -> Path:
    """Render ``<package_dir>/__init__.py`` for *profile*.

    Only shared modules that exist in *package_dir* are re-exported, so a
    profile whose wrappers were all skipped still imports cleanly.
    """
    shared = [m for m in profile.shared_modules if (package_dir / m).is_dir() or (package_dir / f"{m}.py").is_file()]
    path = package_dir / "__init__.py"
    atomic_write(
        path,
        render_template(
            "barrel.py.j2",
            title=title,
            profile=profile,
            modules=generated_modules(package_dir),
            shared_modules=sorted(shared),
        ),
    )
    return path
