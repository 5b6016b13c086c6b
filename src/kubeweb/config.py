"""Configuration management: project layout, settings precedence, atomic writes.

This module handles everything persistent the build pipeline touches:

* **Data directory** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.kubeweb/`` on macOS and Windows. Only crash logs live there.
* **Project config** -- an optional ``kubeweb.json`` at the project root
  overriding :class:`~kubeweb.models.BuildSettings` defaults.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, the project file and defaults.
* **Atomic writes** -- every generated or fetched file is written with a
  temp-file-then-rename strategy (:func:`atomic_write`) so an interrupted run
  never leaves a truncated spec or module behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from kubeweb.exceptions import ConfigError
from kubeweb.models import BuildSettings

_APP_NAME = "kubeweb"
_PROJECT_CONFIG_FILENAME = "kubeweb.json"

ENV_API_SERVER = "KUBEWEB_API_SERVER"
ENV_TOKEN = "KUBEWEB_TOKEN"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/kubeweb/`` (default ``~/.local/share/kubeweb/``).
    On macOS/Windows: ``~/.kubeweb/logs/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up and the exception propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def write_json(path: Path, data: Any) -> None:
    """Write *data* as pretty-printed JSON (2-space indent) atomically."""
    atomic_write(path, json.dumps(data, indent=2) + "\n")


# --- Project config ---


def find_project_root(start: Optional[Path] = None) -> Path:
    """Walk up from *start* to the first directory holding ``kubeweb.json``.

    Falls back to *start* (default: the working directory) when no project
    file exists anywhere above it.
    """
    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if (candidate / _PROJECT_CONFIG_FILENAME).is_file():
            return candidate
    return origin


def load_project_config(root: Path) -> Optional[dict[str, Any]]:
    """Load ``kubeweb.json`` from *root*.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = root / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_settings(
    root: Optional[Path] = None,
    cli_api_server: Optional[str] = None,
    cli_token: Optional[str] = None,
) -> BuildSettings:
    """Resolve the effective build settings.

    Precedence (high to low):
        1. CLI flags (``cli_api_server``, ``cli_token``)
        2. Environment variables (``KUBEWEB_API_SERVER``, ``KUBEWEB_TOKEN``)
        3. Project config (``<root>/kubeweb.json``)
        4. Defaults

    Raises:
        ConfigError: If the project file holds values that fail validation.
    """
    project_root = root.resolve() if root else find_project_root()
    data: dict[str, Any] = dict(load_project_config(project_root) or {})

    env_server = os.environ.get(ENV_API_SERVER)
    env_token = os.environ.get(ENV_TOKEN)
    if env_server:
        data["api_server"] = env_server
    if env_token:
        data["token"] = env_token

    if cli_api_server:
        data["api_server"] = cli_api_server
    if cli_token:
        data["token"] = cli_token

    data["root"] = project_root
    try:
        return BuildSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {project_root / _PROJECT_CONFIG_FILENAME}: {exc}") from exc
