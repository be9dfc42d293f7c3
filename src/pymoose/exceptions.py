"""Custom exception hierarchy for pymoose."""

from __future__ import annotations


class MooseError(Exception):
    """Base exception for all pymoose errors."""


class MooseConfigError(MooseError):
    """Invalid or missing configuration."""


class MooseValidationError(MooseError):
    """Client-side field checks failed before dispatch.

    Raised at the command boundary; never reaches the network and is never
    written into a store's ``error`` field.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class MooseTransportError(MooseError):
    """Transport failure with no usable HTTP response (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MooseApiError(MooseError):
    """Server rejected the request (non-2xx status or ``success: false`` envelope).

    ``str(exc)`` is the server-provided message so stores can surface it
    unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class MooseNotFoundError(MooseApiError):
    """Requested entity does not exist (HTTP 404)."""


class MooseConflictError(MooseApiError):
    """Request conflicts with server state (HTTP 409), e.g. an existing subscription."""


class MooseRateLimitError(MooseApiError):
    """Too many requests (HTTP 429).

    pymoose never retries automatically; callers decide whether to try again.
    """
