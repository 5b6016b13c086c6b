"""Runtime support shared by every generated Kubernetes client.

Copied verbatim into each generated distribution; depends only on httpx and
pydantic.
"""

from .async_transport import AsyncKubeClient, default_async_client, set_default_async_client
from .config import (
    ClientConfig,
    ConfigHolder,
    configure_client,
    get_client_config,
    reset_client_config,
)
from .errors import ApiStatusError, ClientError, ClientNotConfiguredError, KubeApiError
from .middleware import ErrorTranslationTransport, RetryConfig, RetryTransport
from .transport import KubeClient, RequestOptions, default_client, expand_path, set_default_client

__all__ = [
    "ApiStatusError",
    "AsyncKubeClient",
    "ClientConfig",
    "ClientError",
    "ClientNotConfiguredError",
    "ConfigHolder",
    "ErrorTranslationTransport",
    "KubeApiError",
    "KubeClient",
    "RequestOptions",
    "RetryConfig",
    "RetryTransport",
    "configure_client",
    "default_async_client",
    "default_client",
    "expand_path",
    "get_client_config",
    "reset_client_config",
    "set_default_async_client",
    "set_default_client",
]
