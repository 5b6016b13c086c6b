"""Asyncio request transport, backed by :class:`httpx.AsyncClient`.

Same contract as :class:`~.transport.KubeClient`; see that module for the
request-building rules. Concurrent calls are independent: no coalescing,
no shared cache, no ordering guarantee.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

import httpx

from .config import ClientConfig
from .transport import DEFAULT_TIMEOUT, RequestOptions, _ClientBase, decode_response

__all__ = ["AsyncKubeClient", "default_async_client", "set_default_async_client"]


class AsyncKubeClient(_ClientBase):
    """Non-blocking Kubernetes API client.

    Args:
        config: Explicit configuration. ``None`` reads the process default
            on every request.
        transport: Optional async httpx transport (tests, custom adapters).
        timeout: Request timeout in seconds.

    Example::

        async with AsyncKubeClient(ClientConfig(base_url=url, token=token)) as client:
            pods = await list_pods("default", client=client)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(config, timeout=timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._client_verify: Optional[bool] = None
        self._client_loop: Optional[asyncio.AbstractEventLoop] = None

    async def __aenter__(self) -> AsyncKubeClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _http(self, config: ClientConfig) -> httpx.AsyncClient:
        loop = asyncio.get_running_loop()
        if self._client is not None and self._client_loop is not loop:
            # pooled connections belong to a loop that is gone or elsewhere
            self._client = None
        if self._client is not None and self._client_verify == config.reject_unauthorized:
            return self._client
        await self.aclose()
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            verify=config.reject_unauthorized,
            transport=self._transport,
        )
        self._client_verify = config.reject_unauthorized
        self._client_loop = loop
        return self._client

    async def send(self, options: RequestOptions) -> Any:
        """Issue the request described by *options* and return the decoded body.

        Raises:
            ClientNotConfiguredError: Before any I/O when unconfigured.
            ApiStatusError: On a non-2xx response.
        """
        config, kwargs = self._prepare(options)
        client = await self._http(config)
        response = await client.request(**kwargs)
        return decode_response(response)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return await self.send(
            RequestOptions(method=method, url=url, params=params or {}, data=data, headers=headers or {})
        )


_default_client: Optional[AsyncKubeClient] = None


def default_async_client() -> AsyncKubeClient:
    """Return the shared async client that reads the process-default configuration.

    The connection pool is rebuilt whenever a different event loop uses the
    client, so successive ``asyncio.run`` calls each get a fresh pool.
    """
    global _default_client
    if _default_client is None:
        _default_client = AsyncKubeClient()
    return _default_client


def set_default_async_client(client: Optional[AsyncKubeClient]) -> None:
    """Replace (or with ``None``, drop) the shared default async client."""
    global _default_client
    _default_client = client
