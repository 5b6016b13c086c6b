"""Publish the generated distributions under the shared public name.

For each profile, the ``pyproject.toml`` is temporarily rewritten (name ->
``settings.public_name``, version -> its public part), the distribution is
built with ``python -m build`` and uploaded with ``twine`` (``twine check``
on a dry run). The original file is restored afterwards whether the
publish succeeded or failed.
"""

from __future__ import annotations

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Iterable

from kubeweb.config import atomic_write
from kubeweb.exceptions import PublishError
from kubeweb.models import BuildSettings, TargetProfile
from kubeweb.output import info, success, suggest, warning
from kubeweb.release.versioning import public_version, read_project_field, set_project_field


def _run(cmd: list[str], cwd: Path) -> None:
    info(f"Running: {' '.join(cmd)}")
    try:
        subprocess.run(cmd, cwd=cwd, check=True)
    except FileNotFoundError as exc:
        raise PublishError(f"Could not run {cmd[0]}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        raise PublishError(f"Command failed with exit code {exc.returncode}: {' '.join(cmd)}") from exc


def publish_profile(settings: BuildSettings, profile: TargetProfile, dry_run: bool = False) -> str:
    """Build and upload one profile; returns ``<name>==<version>`` as published.

    Raises:
        PublishError: If the project file is unusable or build/upload fails.
    """
    profile_dir = settings.profile_dir(profile)
    pyproject = profile_dir / "pyproject.toml"
    if not pyproject.is_file():
        raise PublishError(f"Missing {pyproject}; run 'kubeweb render' first")

    original = pyproject.read_text(encoding="utf-8")
    version = read_project_field(original, "version")
    if not version:
        raise PublishError(f"{pyproject} has no [project].version")
    release = public_version(version)

    renamed = set_project_field(original, "name", settings.public_name)
    renamed = set_project_field(renamed, "version", release)
    dist_dir = profile_dir / "dist"

    info(f"Temporarily renaming {profile.distribution} to {settings.public_name} {release}")
    atomic_write(pyproject, renamed)
    try:
        shutil.rmtree(dist_dir, ignore_errors=True)
        _run([sys.executable, "-m", "build", "--outdir", str(dist_dir), str(profile_dir)], cwd=profile_dir)
        artifacts = sorted(str(p) for p in dist_dir.glob("*") if p.is_file())
        if not artifacts:
            raise PublishError(f"Build produced no artifacts in {dist_dir}")
        command = "check" if dry_run else "upload"
        _run([sys.executable, "-m", "twine", command, *artifacts], cwd=profile_dir)
    except PublishError:
        warning("Publish failed, reverting package name and version")
        raise
    finally:
        atomic_write(pyproject, original)
        info(f"Reverted {pyproject.name} to {profile.distribution} {version}")

    return f"{settings.public_name}=={release}"


def publish(settings: BuildSettings, profiles: Iterable[TargetProfile], dry_run: bool = False) -> list[str]:
    """Publish every profile in turn; stops at the first failure."""
    mode = "DRY RUN" if dry_run else "LIVE"
    info(f"Preparing to publish packages... [{mode}]")
    published = [publish_profile(settings, profile, dry_run) for profile in profiles]

    if dry_run:
        success("Dry-run completed successfully; nothing was uploaded")
        suggest("To publish for real, run: kubeweb publish")
    else:
        success(f"Successfully published {len(published)} package(s): {', '.join(published)}")
        for item in published:
            suggest(f"pip install {item}")
    return published
