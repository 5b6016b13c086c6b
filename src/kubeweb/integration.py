"""Run the integration suites against a live apiserver.

Each profile has one pytest module under ``integration_tests/`` that imports
the generated package (put on ``PYTHONPATH`` from ``clients/<profile>/src``)
and lists namespaces through it. The runtime reads the server location
from ``K8S_API_URL`` / ``K8S_API_TOKEN``, which are set from the build
settings.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from kubeweb.exceptions import IntegrationTestError
from kubeweb.models import BuildSettings, TargetProfile
from kubeweb.output import info, success

TESTS_DIR = "integration_tests"


def integration_test_path(settings: BuildSettings, profile: TargetProfile) -> Path:
    return settings.root / TESTS_DIR / f"test_{profile.name}_client.py"


def integration_env(settings: BuildSettings, profile: TargetProfile) -> dict[str, str]:
    """Environment for the pytest subprocess of *profile*."""
    src = str(settings.profile_dir(profile) / "src")
    existing = os.environ.get("PYTHONPATH")
    return {
        **os.environ,
        "K8S_API_URL": settings.api_server,
        "K8S_API_TOKEN": settings.token,
        "PYTHONPATH": os.pathsep.join([src, existing]) if existing else src,
    }


def run_integration_tests(settings: BuildSettings, profile: TargetProfile) -> None:
    """Run the integration module of *profile* with pytest.

    Raises:
        IntegrationTestError: If the module is missing or any test fails.
    """
    path = integration_test_path(settings, profile)
    if not path.is_file():
        raise IntegrationTestError(f"No integration tests for '{profile.name}' at {path}")

    info(f"Running {profile.name} integration tests...")
    result = subprocess.run(
        [sys.executable, "-m", "pytest", "-q", str(path)],
        cwd=settings.root,
        env=integration_env(settings, profile),
    )
    if result.returncode != 0:
        raise IntegrationTestError(f"{profile.name} integration tests failed (exit {result.returncode})")
    success(f"{profile.name} integration tests passed")
