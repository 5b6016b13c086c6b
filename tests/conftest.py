"""Shared test fixtures for kubeweb.

Provides reusable fixtures for loading the spec fixtures, creating isolated
project directories, managing output state, importing rendered client
packages, and running CLI commands. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

from kubeweb.models import BuildSettings
from kubeweb.output import OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw spec fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


def load_fixture(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


@pytest.fixture
def core_v1_raw() -> dict[str, Any]:
    """A trimmed ``api/v1`` group document (namespaces and pods)."""
    return load_fixture("core-v1.json")


@pytest.fixture
def apps_v1_raw() -> dict[str, Any]:
    """A trimmed ``apis/apps/v1`` group document (deployments)."""
    return load_fixture("apps-v1.json")


@pytest.fixture
def merged_spec(core_v1_raw: dict[str, Any], apps_v1_raw: dict[str, Any]) -> dict[str, Any]:
    """Both fixture groups merged in file-name order (apps first)."""
    from kubeweb.specs.merger import merge_specs

    return merge_specs([apps_v1_raw, core_v1_raw], labels=["apps-v1", "core-v1"]).spec


# ---------------------------------------------------------------------------
# Project isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary project directory.

    Sets XDG_DATA_HOME to a subdirectory of tmp_path so that crash logs
    never land in the real home directory. Clears all KUBEWEB_* and K8S_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "KUBEWEB_API_SERVER",
        "KUBEWEB_TOKEN",
        "K8S_API_URL",
        "K8S_API_TOKEN",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings(isolated_config: Path) -> BuildSettings:
    """Build settings rooted at the isolated project directory."""
    return BuildSettings(root=isolated_config, api_server="https://k8s.test:6443", token="t0k3n")


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a colourless, quiet OutputManager as the global output and
    resets it after the test completes.
    """
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Colourless output manager with debug messages enabled."""
    output = OutputManager(no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Rendered-package import fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def import_rendered(monkeypatch: pytest.MonkeyPatch) -> Callable[[Path, str], Any]:
    """Import a rendered client package from a source root.

    Every module of the imported package is dropped from ``sys.modules``
    afterwards so the next test imports its own rendering.
    """
    imported: list[str] = []

    def _import(src_root: Path, package: str) -> Any:
        monkeypatch.syspath_prepend(str(src_root))
        importlib.invalidate_caches()
        imported.append(package)
        return importlib.import_module(package)

    yield _import

    for package in imported:
        for name in [m for m in sys.modules if m == package or m.startswith(f"{package}.")]:
            del sys.modules[name]


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
