"""Errors raised by the Kubernetes client runtime.

Hierarchy::

    ClientError
    +-- ClientNotConfiguredError   request attempted without a base URL
    +-- ApiStatusError             non-2xx HTTP status (``status_code``)
        +-- KubeApiError           body was a Kubernetes ``Status`` object
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = ["ClientError", "ClientNotConfiguredError", "ApiStatusError", "KubeApiError"]


class ClientError(Exception):
    """Base class for all client runtime errors."""


class ClientNotConfiguredError(ClientError):
    """Raised before any network I/O when no base URL is configured."""


class ApiStatusError(ClientError):
    """The API answered with a non-success HTTP status.

    Args:
        message: Human-readable description.
        status_code: The HTTP status code of the response.
        body: The decoded response body, when there was one.
    """

    def __init__(self, message: str, status_code: int, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class KubeApiError(ApiStatusError):
    """A structured Kubernetes API error (``kind: Status``).

    Carries the machine-readable ``reason`` (e.g. ``NotFound``,
    ``AlreadyExists``) and the ``details`` object from the Status body.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message, status_code, body)
        self.reason = reason
        self.details = details or {}
