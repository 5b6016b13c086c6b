"""Request transport for the generated clients.

Generated operations describe a request as :class:`RequestOptions` (method,
relative URL, query parameters, body) and hand it to a client. The client:

1. resolves its :class:`~.config.ClientConfig` (explicit, else the process
   default) and fails before any I/O when no base URL is configured;
2. builds the full URL from the base URL and the relative path;
3. sends ``Content-Type: application/json``, the bearer token and the
   configured custom headers (custom headers win);
4. serializes the body as JSON and appends the query parameters;
5. raises :class:`~.errors.ApiStatusError` for non-2xx responses and
   otherwise returns the decoded JSON body.

This module holds the blocking :class:`KubeClient`; the asyncio variant
lives in :mod:`.async_transport` and shares the helpers below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from .config import ClientConfig, get_client_config
from .errors import ApiStatusError

if TYPE_CHECKING:
    from .middleware import RetryConfig

__all__ = ["RequestOptions", "KubeClient", "default_client", "expand_path", "set_default_client"]

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class RequestOptions:
    """Everything needed to issue one API request, minus the connection."""

    method: str
    url: str
    params: Mapping[str, Any] = field(default_factory=dict)
    data: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)


def build_url(base_url: str, path: str) -> str:
    """Join the configured base URL and a relative API path."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def expand_path(template: str, values: Mapping[str, Any]) -> str:
    """Substitute ``{name}`` placeholders with percent-encoded *values*.

    Example::

        >>> expand_path("/api/v1/namespaces/{namespace}/pods", {"namespace": "kube system"})
        '/api/v1/namespaces/kube%20system/pods'
    """
    path = template
    for name, value in values.items():
        path = path.replace(f"{{{name}}}", quote(str(value), safe=""))
    return path


def build_headers(config: ClientConfig, extra: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"
    headers.update(config.headers)
    headers.update({k: str(v) for k, v in (extra or {}).items() if v is not None})
    return headers


def _param_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_param_value(v) for v in value]
    return str(value)


def encode_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Drop ``None`` values and stringify the rest the way the apiserver expects."""
    return {k: _param_value(v) for k, v in (params or {}).items() if v is not None}


def encode_body(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    return data


def decode_response(response: httpx.Response) -> Any:
    """Raise for error statuses, otherwise return the decoded body (or ``None``)."""
    body: Any = None
    if response.content:
        try:
            body = response.json()
        except ValueError:
            body = response.text
    if not response.is_success:
        raise ApiStatusError(
            f"HTTP error! status: {response.status_code}", response.status_code, body
        )
    return body


class _ClientBase:
    """Configuration handling shared by the sync and async clients."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._explicit_config = config
        self._timeout = timeout

    @property
    def config(self) -> ClientConfig:
        """The effective configuration for the next request.

        Raises:
            ClientNotConfiguredError: When no usable base URL is available.
        """
        config = self._explicit_config if self._explicit_config is not None else get_client_config()
        return config.require_base_url()

    def _base_url(self) -> str:
        return self.config.base_url

    def _prepare(self, options: RequestOptions) -> tuple[ClientConfig, dict[str, Any]]:
        config = self.config
        kwargs: dict[str, Any] = {
            "method": options.method.upper(),
            "url": build_url(config.base_url, options.url),
            "params": encode_params(options.params),
            "headers": build_headers(config, options.headers),
        }
        if options.data is not None:
            kwargs["json"] = encode_body(options.data)
        return config, kwargs


class KubeClient(_ClientBase):
    """Blocking Kubernetes API client backed by :class:`httpx.Client`.

    Usable as a context manager or standalone (call :meth:`close`). The
    underlying connection pool is created on the first request.

    Args:
        config: Explicit configuration. ``None`` reads the process default
            on every request.
        transport: Optional httpx transport (tests, custom adapters).
        retry: Install :class:`~.middleware.RetryTransport` with this policy.
        translate_errors: Install :class:`~.middleware.ErrorTranslationTransport`.
        timeout: Request timeout in seconds.

    Example::

        with KubeClient(ClientConfig(base_url="https://k8s.example.com"),
                        retry=RetryConfig(), translate_errors=True) as client:
            pods = CoreV1Api(client).list_core_v1_namespaced_pod("default")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        retry: Optional[RetryConfig] = None,
        translate_errors: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        super().__init__(config, timeout=timeout)
        self._transport = transport
        self._retry = retry
        self._translate_errors = translate_errors
        self._sleep = sleep
        self._client: Optional[httpx.Client] = None
        self._client_verify: Optional[bool] = None

    def __enter__(self) -> KubeClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _http(self, config: ClientConfig) -> httpx.Client:
        if self._client is not None and self._client_verify == config.reject_unauthorized:
            return self._client
        self.close()
        self._client = httpx.Client(
            timeout=self._timeout,
            verify=config.reject_unauthorized,
            transport=self._build_transport(config),
        )
        self._client_verify = config.reject_unauthorized
        return self._client

    def _build_transport(self, config: ClientConfig) -> Optional[httpx.BaseTransport]:
        if self._retry is None and not self._translate_errors:
            return self._transport
        from .middleware import ErrorTranslationTransport, RetryTransport

        transport = self._transport or httpx.HTTPTransport(verify=config.reject_unauthorized)
        if self._retry is not None:
            kwargs: dict[str, Any] = {"config": self._retry, "base_url": self._base_url}
            if self._sleep is not None:
                kwargs["sleep"] = self._sleep
            transport = RetryTransport(transport, **kwargs)
        if self._translate_errors:
            transport = ErrorTranslationTransport(transport)
        return transport

    def send(self, options: RequestOptions) -> Any:
        """Issue the request described by *options* and return the decoded body.

        Raises:
            ClientNotConfiguredError: Before any I/O when unconfigured.
            ApiStatusError: On a non-2xx response.
            KubeApiError: On a ``Status`` error body with error translation on.
        """
        config, kwargs = self._prepare(options)
        response = self._http(config).request(**kwargs)
        return decode_response(response)

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Convenience wrapper building :class:`RequestOptions` for :meth:`send`."""
        return self.send(
            RequestOptions(method=method, url=url, params=params or {}, data=data, headers=headers or {})
        )

    def get(self, url: str, **kwargs: Any) -> Any:
        return self.request("GET", url, **kwargs)


_default_client: Optional[KubeClient] = None


def default_client() -> KubeClient:
    """Return the shared client that reads the process-default configuration."""
    global _default_client
    if _default_client is None:
        _default_client = KubeClient()
    return _default_client


def set_default_client(client: Optional[KubeClient]) -> None:
    """Replace (or with ``None``, drop) the shared default client."""
    global _default_client
    if _default_client is not None and _default_client is not client:
        _default_client.close()
    _default_client = client
