"""The throwaway kube-apiserver used for spec discovery and integration tests.

``docker compose`` (see ``docker-compose.yml`` at the project root) starts etcd
and a ``kube-apiserver`` of the requested version on ``localhost:6443`` with a
static bearer token. These helpers start and stop it and wait for readiness.
"""

from __future__ import annotations

import os
import subprocess
import time
from typing import Callable, Optional

import httpx

from kubeweb.exceptions import SupportError
from kubeweb.models import BuildSettings
from kubeweb.output import debug, info, success, warning

CONTAINER_NAME = "k8s-apiserver"
READY_PATH = "/readyz"


def compose_command(settings: BuildSettings, *args: str) -> list[str]:
    return ["docker", "compose", "-f", str(settings.resolve(settings.compose_file)), *args]


def _docker(cmd: list[str], env: Optional[dict[str, str]] = None) -> subprocess.CompletedProcess:
    debug(f"Running: {' '.join(cmd)}")
    try:
        return subprocess.run(cmd, capture_output=True, text=True, env=env, timeout=600)
    except FileNotFoundError as exc:
        raise SupportError("docker is not installed or not on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise SupportError(f"Timed out running: {' '.join(cmd)}") from exc


def is_apiserver_running() -> bool:
    """True when a container named ``k8s-apiserver`` is up."""
    result = _docker(["docker", "ps", "--format", "{{.Names}}"])
    return result.returncode == 0 and CONTAINER_NAME in result.stdout.split()


def start_apiserver(settings: BuildSettings, version: str) -> None:
    """Start etcd and kube-apiserver ``v<version>.0`` in the background.

    Raises:
        SupportError: If ``docker compose up`` fails (e.g. unknown version).
    """
    info(f"Starting etcd and kube-apiserver v{version}.0 with docker compose...")
    env = {**os.environ, "K8S_VERSION": version}
    result = _docker(compose_command(settings, "up", "-d"), env=env)
    if result.returncode != 0:
        debug(result.stderr)
        raise SupportError(f"Failed to start services. Version v{version}.0 may not exist.")


def stop_apiserver(settings: BuildSettings) -> None:
    """Stop the containers. Never fails; problems are reported as warnings."""
    info("Stopping kube-apiserver and etcd containers...")
    try:
        result = _docker(compose_command(settings, "down"))
    except SupportError as exc:
        warning(str(exc))
        return
    if result.returncode != 0:
        warning(f"docker compose down exited with {result.returncode}")


def wait_for_apiserver(
    settings: BuildSettings,
    timeout: Optional[float] = None,
    interval: float = 2.0,
    transport: Optional[httpx.BaseTransport] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll ``/readyz`` until it answers 200.

    Raises:
        SupportError: If the apiserver is not ready within *timeout* seconds
            (default ``settings.startup_timeout``).
    """
    info("Waiting for kube-apiserver to be ready...")
    deadline = clock() + (settings.startup_timeout if timeout is None else timeout)
    with httpx.Client(
        base_url=settings.api_server,
        headers={"Authorization": f"Bearer {settings.token}"},
        verify=settings.verify_ssl,
        timeout=5.0,
        transport=transport,
    ) as client:
        while True:
            try:
                if client.get(READY_PATH).status_code == 200:
                    success("kube-apiserver is ready")
                    return
            except httpx.TransportError as exc:
                debug(f"Not ready yet: {exc}")
            if clock() >= deadline:
                raise SupportError(f"kube-apiserver at {settings.api_server} not ready after waiting")
            sleep(interval)


def ensure_apiserver(settings: BuildSettings, version: str) -> bool:
    """Start the apiserver unless one is already running.

    Returns:
        True if this call started it.
    """
    if is_apiserver_running():
        success("kube-apiserver is running")
        return False
    info("kube-apiserver is not running, starting it...")
    start_apiserver(settings, version)
    wait_for_apiserver(settings)
    return True
