"""Tests for kubeweb.integration -- running the live-apiserver suites."""

from __future__ import annotations

import os
import subprocess
import sys
from unittest.mock import patch

import pytest

from kubeweb.codegen.profiles import ASYNC, SYNC
from kubeweb.exceptions import IntegrationTestError
from kubeweb.integration import integration_env, integration_test_path, run_integration_tests
from kubeweb.models import BuildSettings


@pytest.fixture(autouse=True)
def _quiet(quiet_output):
    yield


@pytest.fixture
def with_suites(settings: BuildSettings) -> BuildSettings:
    for profile in (SYNC, ASYNC):
        path = integration_test_path(settings, profile)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("def test_ok():\n    pass\n")
    return settings


class TestIntegrationEnv:
    def test_points_runtime_at_apiserver(self, settings: BuildSettings) -> None:
        env = integration_env(settings, ASYNC)
        assert env["K8S_API_URL"] == "https://k8s.test:6443"
        assert env["K8S_API_TOKEN"] == "t0k3n"

    def test_pythonpath_prepends_client_src(self, settings: BuildSettings, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PYTHONPATH", "/opt/extra")
        env = integration_env(settings, SYNC)
        assert env["PYTHONPATH"] == os.pathsep.join([str(settings.root / "clients" / "sync" / "src"), "/opt/extra"])

    def test_pythonpath_alone(self, settings: BuildSettings, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PYTHONPATH", raising=False)
        assert integration_env(settings, ASYNC)["PYTHONPATH"] == str(settings.root / "clients" / "async" / "src")


class TestRunIntegrationTests:
    def test_runs_pytest_on_profile_module(self, with_suites: BuildSettings) -> None:
        with patch("kubeweb.integration.subprocess.run", return_value=subprocess.CompletedProcess([], 0)) as run:
            run_integration_tests(with_suites, ASYNC)

        cmd = run.call_args.args[0]
        assert cmd == [
            sys.executable,
            "-m",
            "pytest",
            "-q",
            str(with_suites.root / "integration_tests" / "test_async_client.py"),
        ]
        assert run.call_args.kwargs["cwd"] == with_suites.root

    def test_failure(self, with_suites: BuildSettings) -> None:
        with patch("kubeweb.integration.subprocess.run", return_value=subprocess.CompletedProcess([], 1)):
            with pytest.raises(IntegrationTestError, match="sync integration tests failed") as exc_info:
                run_integration_tests(with_suites, SYNC)
        assert exc_info.value.exit_code == 12

    def test_missing_module(self, settings: BuildSettings) -> None:
        with pytest.raises(IntegrationTestError, match="No integration tests"):
            run_integration_tests(settings, SYNC)
