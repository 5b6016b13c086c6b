"""httpx transports layered under :class:`~.transport.KubeClient`.

:class:`RetryTransport` retries transient failures with exponential backoff;
:class:`ErrorTranslationTransport` turns Kubernetes ``Status`` error bodies
into :class:`~.errors.KubeApiError`. The sync client stacks them as
``ErrorTranslationTransport(RetryTransport(inner))`` so retries see raw
status codes before any translation raises.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable, Optional, Union

import httpx
from pydantic import BaseModel, Field

from .errors import KubeApiError

__all__ = ["RetryConfig", "RetryTransport", "ErrorTranslationTransport", "is_api_url"]

logger = logging.getLogger(__name__)


class RetryConfig(BaseModel):
    """Backoff policy for :class:`RetryTransport`. Delays are in seconds."""

    max_retries: int = Field(default=3, ge=0)
    initial_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)
    retryable_status_codes: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number *attempt* (0-based)."""
        return min(self.initial_delay * self.backoff_multiplier**attempt, self.max_delay)


def is_api_url(url: str, base_url: str) -> bool:
    """True when *url* targets the configured API server's ``/api`` or ``/apis`` tree."""
    if not base_url or not url.startswith(base_url.rstrip("/")):
        return False
    path = httpx.URL(url).path
    return "/api/" in path or "/apis/" in path


class RetryTransport(httpx.BaseTransport):
    """Retry retryable statuses against the Kubernetes API with backoff.

    Args:
        inner: Transport actually sending the request.
        config: Backoff policy; defaults to :class:`RetryConfig()`.
        base_url: Configured base URL, or a callable returning it per request.
        sleep: Called with each delay; replaced in tests.
    """

    def __init__(
        self,
        inner: httpx.BaseTransport,
        config: Optional[RetryConfig] = None,
        base_url: Union[str, Callable[[], str]] = "",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._inner = inner
        self._config = config or RetryConfig()
        self._base_url = base_url
        self._sleep = sleep

    def _current_base(self) -> str:
        return self._base_url() if callable(self._base_url) else self._base_url

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        response = self._inner.handle_request(request)
        if not is_api_url(str(request.url), self._current_base()):
            return response

        attempt = 0
        while (
            response.status_code in self._config.retryable_status_codes
            and attempt < self._config.max_retries
        ):
            delay = self._config.delay_for(attempt)
            attempt += 1
            logger.warning(
                "Retrying %s %s (attempt %d/%d) after %.1fs, status %d",
                request.method,
                request.url,
                attempt,
                self._config.max_retries,
                delay,
                response.status_code,
            )
            response.close()
            self._sleep(delay)
            response = self._inner.handle_request(request)
        return response

    def close(self) -> None:
        self._inner.close()


class ErrorTranslationTransport(httpx.BaseTransport):
    """Raise :class:`KubeApiError` for error responses carrying a ``Status`` body.

    Error responses with any other body pass through untouched and are
    reported by the client as :class:`~.errors.ApiStatusError`.
    """

    def __init__(self, inner: httpx.BaseTransport) -> None:
        self._inner = inner

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        response = self._inner.handle_request(request)
        if response.is_success:
            return response

        content = response.read()
        try:
            body = json.loads(content) if content else None
        except ValueError:
            return response
        if isinstance(body, dict) and body.get("kind") == "Status":
            response.close()
            raise KubeApiError(
                body.get("message") or f"HTTP error! status: {response.status_code}",
                response.status_code,
                reason=body.get("reason"),
                details=body.get("details"),
                body=body,
            )
        return response

    def close(self) -> None:
        self._inner.close()
