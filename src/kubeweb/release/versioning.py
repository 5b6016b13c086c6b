"""Version stamping for the generated client distributions.

A Kubernetes ``MAJOR.MINOR`` release becomes a PEP 440 version whose local
label records the profile, the build time and the source revision::

    >>> stamp_version("1.34", "async", "20261018120000", "3f2c1ab")
    '1.34.0+async.20261018120000.3f2c1ab'

The stamp is written into ``clients/<profile>/pyproject.toml``.
:mod:`kubeweb.release.publish` drops the local label again before upload.
"""

from __future__ import annotations

import re
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

import toml

from kubeweb.config import atomic_write
from kubeweb.exceptions import InvalidUsageError, PublishError
from kubeweb.models import BuildSettings, TargetProfile
from kubeweb.output import debug, success

VERSION_PATTERN = re.compile(r"^[0-9]+\.[0-9]+$")


def validate_version(version: str) -> str:
    """Return *version* if it is ``MAJOR.MINOR``.

    Raises:
        InvalidUsageError: For anything else (``1.34.0``, ``v1.34``, ``latest``).
    """
    if not VERSION_PATTERN.match(version or ""):
        raise InvalidUsageError(f"Invalid version '{version}': expected MAJOR.MINOR, e.g. 1.34")
    return version


def build_timestamp(now: Optional[datetime] = None) -> str:
    """UTC build time as ``YYYYMMDDHHMMSS``."""
    return (now or datetime.now(timezone.utc)).strftime("%Y%m%d%H%M%S")


def git_revision(cwd: Optional[Path] = None) -> str:
    """Short hash of ``HEAD``, or ``unknown`` outside a git checkout."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired):
        return "unknown"
    revision = result.stdout.strip()
    return revision if result.returncode == 0 and revision else "unknown"


def stamp_version(version: str, framework: str, timestamp: str, revision: str) -> str:
    """Compose ``<version>.0+<framework>.<timestamp>.<revision>``."""
    validate_version(version)
    label = ".".join(re.sub(r"[^0-9A-Za-z]+", "", part) or "unknown" for part in (framework, timestamp, revision))
    return f"{version}.0+{label}"


def public_version(version: str) -> str:
    """Drop the local label: ``1.34.0+async.x.y`` -> ``1.34.0``."""
    return version.split("+", 1)[0]


# --- pyproject.toml [project] fields ---


def _load_pyproject(text: str) -> dict:
    try:
        return toml.loads(text)
    except toml.TomlDecodeError as exc:
        raise PublishError(f"Invalid pyproject.toml: {exc}") from exc


def read_project_field(text: str, key: str) -> Optional[str]:
    """Return the string value of ``[project].<key>`` in pyproject *text*."""
    value = _load_pyproject(text).get("project", {}).get(key)
    return value if isinstance(value, str) else None


def set_project_field(text: str, key: str, value: str) -> str:
    """Return pyproject *text* with ``[project].<key>`` set to *value*.

    Raises:
        PublishError: If the text is not valid TOML or the field is missing.
    """
    document = _load_pyproject(text)
    project = document.get("project")
    if not isinstance(project, dict) or not isinstance(project.get(key), str):
        raise PublishError(f"pyproject.toml has no [project].{key} string field")
    project[key] = value
    return toml.dumps(document)


def update_versions(
    settings: BuildSettings,
    version: str,
    profiles: Iterable[TargetProfile],
    timestamp: Optional[str] = None,
    revision: Optional[str] = None,
) -> dict[str, str]:
    """Stamp *version* into every profile's ``pyproject.toml``.

    Returns:
        Mapping of profile name to the stamped version.

    Raises:
        InvalidUsageError: If *version* is not ``MAJOR.MINOR``.
        PublishError: If a profile has no ``pyproject.toml`` with a version field.
    """
    validate_version(version)
    timestamp = timestamp or build_timestamp()
    revision = revision or git_revision(settings.root)

    stamped: dict[str, str] = {}
    for profile in profiles:
        path = settings.profile_dir(profile) / "pyproject.toml"
        if not path.is_file():
            raise PublishError(f"Missing {path}; run 'kubeweb render' first")
        new_version = stamp_version(version, profile.name, timestamp, revision)
        atomic_write(path, set_project_field(path.read_text(encoding="utf-8"), "version", new_version))
        debug(f"{path}: version = {new_version}")
        stamped[profile.name] = new_version

    success("Updated versions to " + " and ".join(stamped.values()))
    return stamped
