"""Runtime configuration for the Kubernetes clients.

Every client accepts an explicit :class:`ClientConfig`. Calls made without
one read the process-wide default held here, which is:

* unset at import time, unless ``K8S_API_URL`` is present in the
  environment (``K8S_API_TOKEN`` then supplies the bearer token);
* set with :func:`configure_client`;
* read on every request, so reconfiguring affects in-flight callers.

Example::

    from kubeweb_async import configure_client

    configure_client(base_url="https://my-cluster.example.com", token="sa-token")
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from .errors import ClientNotConfiguredError

__all__ = [
    "ClientConfig",
    "ConfigHolder",
    "ENV_BASE_URL",
    "ENV_TOKEN",
    "configure_client",
    "get_client_config",
    "reset_client_config",
]

ENV_BASE_URL = "K8S_API_URL"
ENV_TOKEN = "K8S_API_TOKEN"

_NOT_CONFIGURED = (
    "K8s client not configured. Call configure_client(base_url=\"...\") before making "
    f"API calls, or set the {ENV_BASE_URL} environment variable."
)


class ClientConfig(BaseModel):
    """Connection settings for a Kubernetes API server."""

    base_url: str = Field(default="", description="e.g. 'https://my-cluster.example.com'")
    token: Optional[str] = Field(default=None, description="Bearer token")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Custom headers sent with every request"
    )
    reject_unauthorized: bool = Field(
        default=False,
        description="Verify the server certificate (off: self-signed clusters work)",
    )

    def require_base_url(self) -> ClientConfig:
        """Return self, or raise :class:`ClientNotConfiguredError` without a base URL."""
        if not self.base_url:
            raise ClientNotConfiguredError(
                "ClientConfig has no base_url; requests cannot be issued."
            )
        return self


class ConfigHolder:
    """Holds a process-default :class:`ClientConfig`.

    Args:
        environ: Environment to read ``K8S_API_URL`` / ``K8S_API_TOKEN`` from.
            Defaults to :data:`os.environ`, read once at construction.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        env = os.environ if environ is None else environ
        self._env_base_url = env.get(ENV_BASE_URL) or ""
        self._env_token = env.get(ENV_TOKEN) or None
        self._config = ClientConfig()
        self._configured = False
        self.reset()

    @property
    def configured(self) -> bool:
        return self._configured

    def configure(self, config: Optional[ClientConfig] = None, **values: Any) -> ClientConfig:
        """Set the default configuration.

        Accepts a :class:`ClientConfig`, keyword fields, or both (keywords
        win). Fields not supplied keep their current value, so
        ``configure(base_url=...)`` preserves an earlier token.

        Raises:
            ClientNotConfiguredError: If the result has no ``base_url``.
        """
        update: dict[str, Any] = config.model_dump(exclude_unset=True) if config else {}
        update.update(values)
        candidate = ClientConfig.model_validate({**self._config.model_dump(), **update})
        self._config = candidate.require_base_url()
        self._configured = True
        return self._config

    def get(self) -> ClientConfig:
        """Return the active configuration.

        Raises:
            ClientNotConfiguredError: If neither :meth:`configure` was called
                nor ``K8S_API_URL`` was set at load.
        """
        if not self._configured:
            raise ClientNotConfiguredError(_NOT_CONFIGURED)
        return self._config.model_copy(deep=True)

    def reset(self) -> None:
        """Return to the load-time state (environment defaults only)."""
        self._config = ClientConfig(base_url=self._env_base_url, token=self._env_token)
        self._configured = bool(self._env_base_url)


_default_holder = ConfigHolder()


def configure_client(config: Optional[ClientConfig] = None, **values: Any) -> ClientConfig:
    """Configure the process-default client. See :meth:`ConfigHolder.configure`."""
    return _default_holder.configure(config, **values)


def get_client_config() -> ClientConfig:
    """Return the process-default configuration or raise if unset."""
    return _default_holder.get()


def reset_client_config() -> None:
    """Reset the process default to its load-time state."""
    _default_holder.reset()
