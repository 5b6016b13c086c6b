"""Typer application and CLI entry point for kubeweb.

Commands mirror the release workflow::

    kubeweb generate 1.34              # apiserver -> stamp -> fetch -> render -> test
    kubeweb generate 1.34 --target async --publish
    kubeweb fetch-specs                # only pull specs from a running apiserver
    kubeweb render                     # only regenerate from fetched specs
    kubeweb test | publish | publish-dry-run | update-version 1.34
    kubeweb clean | clean-all | stop-apiserver

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Pipeline errors (:class:`~kubeweb.exceptions.KubeWebError`)
exit with their mapped code; anything unexpected is written to a crash log
under the data directory.
"""

from __future__ import annotations

import shutil
import signal
import sys
import traceback
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterator, Optional

import typer

from kubeweb import __version__
from kubeweb.exit_codes import EXIT_GENERIC_FAILURE

if TYPE_CHECKING:
    from kubeweb.models import BuildSettings, TargetProfile

app = typer.Typer(
    name="kubeweb",
    help="Generate Python Kubernetes API clients from a live apiserver's OpenAPI v3 specs.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

DEFAULT_TEST_VERSION = "1.35"

_TARGET_HELP = "Target profile: sync, async or all."


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"kubeweb {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    api_server: Optional[str] = typer.Option(
        None, "--api-server", help="kube-apiserver URL used for discovery."
    ),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token for discovery."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~kubeweb.output.OutputManager` and stores
    the discovery overrides in ``ctx.obj`` for :func:`_settings`.
    """
    from kubeweb.output import OutputManager, set_output

    set_output(OutputManager(no_color=no_color, quiet=quiet, verbose=verbose))
    ctx.ensure_object(dict)
    ctx.obj["api_server"] = api_server
    ctx.obj["token"] = token


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _settings(ctx: typer.Context) -> BuildSettings:
    from kubeweb.config import resolve_settings

    obj = ctx.obj or {}
    return resolve_settings(cli_api_server=obj.get("api_server"), cli_token=obj.get("token"))


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Report :class:`KubeWebError` on stderr and exit with its code."""
    from kubeweb.exceptions import KubeWebError
    from kubeweb.output import error

    try:
        yield
    except KubeWebError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


def _profiles(target: str) -> list[TargetProfile]:
    from kubeweb.codegen.profiles import select_profiles

    return select_profiles(target)


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("generate")
def generate_command(
    ctx: typer.Context,
    version: str = typer.Argument(help="Kubernetes MAJOR.MINOR version, e.g. 1.34."),
    target: str = typer.Option("all", "--target", "-t", help=_TARGET_HELP),
    publish: bool = typer.Option(False, "--publish", help="Publish after a successful build."),
    skip_apiserver: bool = typer.Option(
        False, "--skip-apiserver", help="Use an already running apiserver; do not start or stop one."
    ),
    skip_tests: bool = typer.Option(False, "--skip-tests", help="Do not run the integration tests."),
) -> None:
    """Build clients for a Kubernetes version end to end.

    Starts kube-apiserver v<version>.0, stamps the client versions, fetches
    the specs, renders and post-processes every selected profile, runs the
    integration tests and stops the apiserver. With ``--publish`` the
    distributions are then uploaded.

    Example::

        kubeweb generate 1.34
        kubeweb generate 1.34 --target async --publish
    """
    from kubeweb.apiserver import start_apiserver, stop_apiserver, wait_for_apiserver
    from kubeweb.integration import run_integration_tests
    from kubeweb.output import info, success, suggest
    from kubeweb.pipeline import ensure_distribution, render_clients
    from kubeweb.release.publish import publish as publish_profiles
    from kubeweb.release.versioning import update_versions, validate_version
    from kubeweb.specs.fetcher import fetch_specs

    with _cli_errors():
        validate_version(version)
        profiles = _profiles(target)
        settings = _settings(ctx)
        info(f"Building {', '.join(p.name for p in profiles)} client(s) for Kubernetes v{version}...")

        if not skip_apiserver:
            stop_apiserver(settings)
            settings.specs_path.mkdir(parents=True, exist_ok=True)
            start_apiserver(settings, version)
        try:
            if not skip_apiserver:
                wait_for_apiserver(settings)
            for profile in profiles:
                ensure_distribution(settings, profile)
            update_versions(settings, version, profiles)
            fetch_specs(settings)
            render_clients(settings, profiles)
            if not skip_tests:
                for profile in profiles:
                    run_integration_tests(settings, profile)
        finally:
            if not skip_apiserver:
                stop_apiserver(settings)

        success(f"Done! Client libraries generated for Kubernetes v{version}")
        if publish:
            publish_profiles(settings, profiles)
        else:
            suggest("To publish: kubeweb publish-dry-run (preview) or kubeweb publish")


@app.command("fetch-specs")
def fetch_specs_command(ctx: typer.Context) -> None:
    """Fetch one OpenAPI v3 document per API group from the apiserver.

    Prints the written file paths on stdout.
    """
    from kubeweb.output import print_data
    from kubeweb.specs.fetcher import fetch_specs

    with _cli_errors():
        for path in fetch_specs(_settings(ctx)):
            print_data(str(path))


@app.command("render")
def render_command(
    ctx: typer.Context,
    target: str = typer.Option("all", "--target", "-t", help=_TARGET_HELP),
) -> None:
    """Merge the fetched specs and (re)generate the client packages."""
    from kubeweb.pipeline import render_clients

    with _cli_errors():
        render_clients(_settings(ctx), _profiles(target))


@app.command("clean")
def clean_command(ctx: typer.Context) -> None:
    """Remove generated code, built artifacts and the merged spec."""
    from kubeweb.codegen.profiles import PROFILES
    from kubeweb.output import info, success

    with _cli_errors():
        settings = _settings(ctx)
        info("Cleaning generated files and built artifacts...")
        for profile in PROFILES.values():
            package_dir = settings.package_dir(profile)
            for name in ("generated", "runtime"):
                shutil.rmtree(package_dir / name, ignore_errors=True)
            for name in ("__init__.py", "wrappers.py"):
                (package_dir / name).unlink(missing_ok=True)
            shutil.rmtree(settings.profile_dir(profile) / "dist", ignore_errors=True)
        settings.merged_spec_path.unlink(missing_ok=True)
        success("Cleaned generated code and dist directories")


@app.command("clean-all")
def clean_all_command(ctx: typer.Context) -> None:
    """Clean everything, including fetched specs and the apiserver containers."""
    from kubeweb.apiserver import stop_apiserver
    from kubeweb.output import info, success

    clean_command(ctx)
    with _cli_errors():
        settings = _settings(ctx)
        stop_apiserver(settings)
        info("Cleaning OpenAPI specs...")
        shutil.rmtree(settings.specs_path, ignore_errors=True)
        success("Full cleanup complete")


@app.command("stop-apiserver")
def stop_apiserver_command(ctx: typer.Context) -> None:
    """Stop the running kube-apiserver and etcd containers."""
    from kubeweb.apiserver import stop_apiserver

    with _cli_errors():
        stop_apiserver(_settings(ctx))


@app.command("test")
def test_command(
    ctx: typer.Context,
    target: str = typer.Option("all", "--target", "-t", help=_TARGET_HELP),
    version: str = typer.Option(
        DEFAULT_TEST_VERSION, "--version", help="apiserver version to start if none is running."
    ),
) -> None:
    """Run the integration tests, then stop the apiserver."""
    from kubeweb.apiserver import ensure_apiserver, stop_apiserver
    from kubeweb.integration import run_integration_tests
    from kubeweb.output import success

    with _cli_errors():
        profiles = _profiles(target)
        settings = _settings(ctx)
        ensure_apiserver(settings, version)
        try:
            for profile in profiles:
                run_integration_tests(settings, profile)
        finally:
            stop_apiserver(settings)
        success("All integration tests passed!")


@app.command("publish")
def publish_command(
    ctx: typer.Context,
    target: str = typer.Option("all", "--target", "-t", help=_TARGET_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Build and check without uploading."),
) -> None:
    """Publish the client distributions under the shared public name."""
    from kubeweb.release.publish import publish

    with _cli_errors():
        publish(_settings(ctx), _profiles(target), dry_run=dry_run)


@app.command("publish-dry-run")
def publish_dry_run_command(
    ctx: typer.Context,
    target: str = typer.Option("all", "--target", "-t", help=_TARGET_HELP),
) -> None:
    """Build and ``twine check`` the distributions without uploading."""
    publish_command(ctx, target=target, dry_run=True)


@app.command("update-version")
def update_version_command(
    ctx: typer.Context,
    version: str = typer.Argument(help="Kubernetes MAJOR.MINOR version, e.g. 1.34."),
    target: str = typer.Option("all", "--target", "-t", help=_TARGET_HELP),
) -> None:
    """Stamp the client distributions with a version. Prints the stamps."""
    from kubeweb.output import print_data
    from kubeweb.pipeline import ensure_distribution
    from kubeweb.release.versioning import update_versions, validate_version

    with _cli_errors():
        validate_version(version)
        profiles = _profiles(target)
        settings = _settings(ctx)
        for profile in profiles:
            ensure_distribution(settings, profile)
        for name, stamped in update_versions(settings, version, profiles).items():
            print_data(f"{name} {stamped}")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from kubeweb.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``kubeweb`` console script.

    :class:`~kubeweb.exceptions.KubeWebError` escaping a command exits with
    its ``exit_code``; any other exception produces a crash log and a
    generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from kubeweb.exceptions import KubeWebError
        from kubeweb.output import error

        if isinstance(exc, KubeWebError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
