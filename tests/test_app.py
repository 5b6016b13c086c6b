"""CLI tests for kubeweb.app using Typer's CliRunner.

External effects (docker, the apiserver, ruff, build/twine) are patched
out; everything else runs for real inside the isolated project directory.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest

from kubeweb import __version__
from kubeweb.app import app, main
from kubeweb.exceptions import FetchError, IntegrationTestError, LintError
from kubeweb.postprocess.linter import LintReport

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _copy_fixture_specs(root: Path) -> Path:
    specs = root / "openapi-specs"
    specs.mkdir()
    for name in ("core-v1.json", "apps-v1.json"):
        shutil.copy(FIXTURES_DIR / name, specs / name)
    return specs


@pytest.fixture
def no_revision():
    with patch("kubeweb.release.versioning.git_revision", return_value="3f2c1ab"):
        yield


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"kubeweb {__version__}" in result.output

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "generate" in result.output
        assert "publish-dry-run" in result.output


# ---------------------------------------------------------------------------
# Usage errors
# ---------------------------------------------------------------------------


class TestUsageErrors:
    @pytest.mark.parametrize("command", ["generate", "update-version"])
    @pytest.mark.parametrize("version", ["1.34.0", "v1.34", "latest"])
    def test_invalid_version(self, cli_runner, isolated_config: Path, command: str, version: str) -> None:
        with patch("kubeweb.apiserver.subprocess.run") as run:
            result = cli_runner.invoke(app, ["--no-color", command, version])

        assert result.exit_code == 2
        assert "MAJOR.MINOR" in result.output
        run.assert_not_called()

    def test_unknown_target(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "update-version", "1.34", "--target", "rust"])
        assert result.exit_code == 2
        assert "Unknown target 'rust'" in result.output
        assert not (isolated_config / "clients").exists()


# ---------------------------------------------------------------------------
# update-version
# ---------------------------------------------------------------------------


class TestUpdateVersion:
    def test_prints_stamps(self, cli_runner, isolated_config: Path, no_revision) -> None:
        result = cli_runner.invoke(app, ["--quiet", "update-version", "1.34"])

        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.splitlines() if line.startswith(("sync ", "async "))]
        assert len(lines) == 2
        assert lines[0].startswith("sync 1.34.0+sync.")
        assert lines[0].endswith(".3f2c1ab")
        assert (isolated_config / "clients" / "async" / "pyproject.toml").is_file()

    def test_single_target(self, cli_runner, isolated_config: Path, no_revision) -> None:
        result = cli_runner.invoke(app, ["--quiet", "update-version", "1.30", "--target", "async"])

        assert result.exit_code == 0, result.output
        assert "async 1.30.0+async." in result.output
        assert not (isolated_config / "clients" / "sync").exists()


# ---------------------------------------------------------------------------
# render / clean
# ---------------------------------------------------------------------------


class TestRender:
    def test_missing_specs(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "render"])
        assert result.exit_code == 7
        assert "kubeweb fetch-specs" in result.output

    def test_renders_both_profiles(self, cli_runner, isolated_config: Path) -> None:
        specs = _copy_fixture_specs(isolated_config)

        with patch("kubeweb.pipeline.lint_tree", return_value=LintReport()):
            result = cli_runner.invoke(app, ["--quiet", "render"])

        assert result.exit_code == 0, result.output
        assert json.loads((specs / "_merged.json").read_text())["paths"]
        async_pkg = isolated_config / "clients" / "async" / "src" / "kubeweb_async"
        sync_pkg = isolated_config / "clients" / "sync" / "src" / "kubeweb_sync"
        assert (async_pkg / "generated" / "core_v1.py").is_file()
        assert (async_pkg / "wrappers.py").is_file()
        assert (async_pkg / "runtime" / "transport.py").is_file()
        assert (sync_pkg / "generated" / "apps_v1.py").is_file()
        assert not (sync_pkg / "wrappers.py").exists()

    def test_lint_failure_exit_code(self, cli_runner, isolated_config: Path) -> None:
        _copy_fixture_specs(isolated_config)

        with patch("kubeweb.pipeline.lint_tree", side_effect=LintError("F401 unused")):
            result = cli_runner.invoke(app, ["--no-color", "render", "--target", "sync"])

        assert result.exit_code == 9
        assert "F401 unused" in result.output


class TestClean:
    def test_removes_generated_code_but_keeps_distribution(self, cli_runner, isolated_config: Path) -> None:
        package = isolated_config / "clients" / "async" / "src" / "kubeweb_async"
        (package / "generated").mkdir(parents=True)
        (package / "generated" / "core_v1.py").write_text("")
        (package / "__init__.py").write_text("")
        (package / "wrappers.py").write_text("")
        (isolated_config / "clients" / "async" / "dist").mkdir()
        (isolated_config / "clients" / "async" / "pyproject.toml").write_text("[project]\n")
        specs = _copy_fixture_specs(isolated_config)
        (specs / "_merged.json").write_text("{}")

        result = cli_runner.invoke(app, ["--quiet", "clean"])

        assert result.exit_code == 0, result.output
        assert not (package / "generated").exists()
        assert not (package / "__init__.py").exists()
        assert not (package / "wrappers.py").exists()
        assert not (isolated_config / "clients" / "async" / "dist").exists()
        assert (isolated_config / "clients" / "async" / "pyproject.toml").exists()
        assert not (specs / "_merged.json").exists()
        assert (specs / "core-v1.json").exists()

    def test_clean_all_removes_specs_and_stops_apiserver(self, cli_runner, isolated_config: Path) -> None:
        specs = _copy_fixture_specs(isolated_config)

        with patch("kubeweb.apiserver.stop_apiserver") as stop:
            result = cli_runner.invoke(app, ["--quiet", "clean-all"])

        assert result.exit_code == 0, result.output
        assert not specs.exists()
        stop.assert_called_once()


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_full_flow_order(self, cli_runner, isolated_config: Path, no_revision) -> None:
        calls: list[str] = []

        def record(name):
            return lambda *args, **kwargs: calls.append(name)

        with patch("kubeweb.apiserver.stop_apiserver", side_effect=record("stop")), patch(
            "kubeweb.apiserver.start_apiserver", side_effect=record("start")
        ), patch("kubeweb.apiserver.wait_for_apiserver", side_effect=record("wait")), patch(
            "kubeweb.specs.fetcher.fetch_specs", side_effect=record("fetch")
        ), patch("kubeweb.pipeline.render_clients", side_effect=record("render")), patch(
            "kubeweb.integration.run_integration_tests", side_effect=record("test")
        ):
            result = cli_runner.invoke(app, ["--quiet", "generate", "1.34"])

        assert result.exit_code == 0, result.output
        assert calls == ["stop", "start", "wait", "fetch", "render", "test", "test", "stop"]
        text = (isolated_config / "clients" / "sync" / "pyproject.toml").read_text()
        assert 'version = "1.34.0+sync.' in text

    def test_apiserver_stopped_after_failure(self, cli_runner, isolated_config: Path, no_revision) -> None:
        with patch("kubeweb.apiserver.stop_apiserver") as stop, patch("kubeweb.apiserver.start_apiserver"), patch(
            "kubeweb.apiserver.wait_for_apiserver"
        ), patch("kubeweb.specs.fetcher.fetch_specs", side_effect=FetchError("connection refused")), patch(
            "kubeweb.pipeline.render_clients"
        ) as render:
            result = cli_runner.invoke(app, ["--no-color", "generate", "1.34"])

        assert result.exit_code == 6
        assert "connection refused" in result.output
        assert stop.call_count == 2
        render.assert_not_called()

    def test_skip_apiserver_and_tests(self, cli_runner, isolated_config: Path, no_revision) -> None:
        with patch("kubeweb.apiserver.start_apiserver") as start, patch(
            "kubeweb.apiserver.stop_apiserver"
        ) as stop, patch("kubeweb.specs.fetcher.fetch_specs") as fetch, patch(
            "kubeweb.pipeline.render_clients"
        ) as render, patch("kubeweb.integration.run_integration_tests") as run_tests:
            result = cli_runner.invoke(
                app, ["--quiet", "generate", "1.34", "--target", "async", "--skip-apiserver", "--skip-tests"]
            )

        assert result.exit_code == 0, result.output
        start.assert_not_called()
        stop.assert_not_called()
        run_tests.assert_not_called()
        fetch.assert_called_once()
        profiles = render.call_args.args[1]
        assert [p.name for p in profiles] == ["async"]

    def test_publish_flag(self, cli_runner, isolated_config: Path, no_revision) -> None:
        with patch("kubeweb.specs.fetcher.fetch_specs"), patch("kubeweb.pipeline.render_clients"), patch(
            "kubeweb.release.publish.publish"
        ) as publish:
            result = cli_runner.invoke(
                app, ["--quiet", "generate", "1.34", "--skip-apiserver", "--skip-tests", "--publish"]
            )

        assert result.exit_code == 0, result.output
        publish.assert_called_once()


# ---------------------------------------------------------------------------
# test / publish
# ---------------------------------------------------------------------------


class TestTestCommand:
    def test_failure_stops_apiserver(self, cli_runner, isolated_config: Path) -> None:
        with patch("kubeweb.apiserver.ensure_apiserver") as ensure, patch(
            "kubeweb.apiserver.stop_apiserver"
        ) as stop, patch(
            "kubeweb.integration.run_integration_tests", side_effect=IntegrationTestError("sync integration tests failed")
        ):
            result = cli_runner.invoke(app, ["--no-color", "test", "--target", "sync", "--version", "1.33"])

        assert result.exit_code == 12
        assert ensure.call_args.args[1] == "1.33"
        stop.assert_called_once()


class TestPublishCommands:
    def test_publish_dry_run(self, cli_runner, isolated_config: Path) -> None:
        with patch("kubeweb.release.publish.publish") as publish:
            result = cli_runner.invoke(app, ["--quiet", "publish-dry-run", "--target", "async"])

        assert result.exit_code == 0, result.output
        assert publish.call_args.kwargs["dry_run"] is True
        assert [p.name for p in publish.call_args.args[1]] == ["async"]

    def test_publish(self, cli_runner, isolated_config: Path) -> None:
        with patch("kubeweb.release.publish.publish") as publish:
            result = cli_runner.invoke(app, ["--quiet", "publish"])

        assert result.exit_code == 0, result.output
        assert publish.call_args.kwargs["dry_run"] is False
        assert len(publish.call_args.args[1]) == 2


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestMain:
    def test_crash_log(self, isolated_config: Path, quiet_output) -> None:
        with patch("kubeweb.app._setup_signal_handlers"), patch("kubeweb.app.app", side_effect=RuntimeError("boom")):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "kubeweb" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()
