"""HTTP transport with bearer authentication and status-code error mapping."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import aiohttp

from pymoose._redact import redact_for_log
from pymoose.config import MooseConfig
from pymoose.exceptions import (
    MooseApiError,
    MooseConflictError,
    MooseNotFoundError,
    MooseRateLimitError,
    MooseTransportError,
)
from pymoose.session import Session

_logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[MooseApiError]] = {
    404: MooseNotFoundError,
    409: MooseConflictError,
    429: MooseRateLimitError,
}


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]: ...


def api_error_for(status: int, body: Mapping[str, Any], endpoint: str) -> MooseApiError:
    """Build the :class:`MooseApiError` subclass matching an HTTP *status*."""
    message = body.get("message") or body.get("error") or f"HTTP {status}"
    error_cls = _STATUS_ERRORS.get(status, MooseApiError)
    return error_cls(str(message), status_code=status, endpoint=endpoint)


class HttpTransport:
    """aiohttp transport for the ticket-service REST API.

    Reads the bearer token through *session_provider* on every call so a
    token set or cleared mid-session applies to the next request.
    """

    def __init__(
        self,
        config: MooseConfig,
        http_session: aiohttp.ClientSession,
        *,
        session_provider: Callable[[], Session | None] | None = None,
    ) -> None:
        self._config = config
        self._http = http_session
        self._session_provider = session_provider
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": self._config.user_agent,
        }
        session = self._session_provider() if self._session_provider is not None else None
        if session is not None:
            headers["authorization"] = session.authorization_header
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON envelope.

        Raises
        ------
        MooseTransportError
            Connection failure, timeout, or a body that is not a JSON object.
        MooseApiError
            Any non-2xx status (404/409/429 map to dedicated subclasses).
        """
        url = f"{self._config.base_url}{path}"
        if self._config.api_trace_enabled:
            _logger.debug(
                "%s %s params=%s body=%s",
                method,
                url,
                redact_for_log(dict(params or {})),
                redact_for_log(dict(json or {})),
            )
        else:
            _logger.debug("%s %s", method, url)

        try:
            async with self._http.request(
                method,
                url,
                params=dict(params) if params else None,
                json=dict(json) if json is not None else None,
                headers=self._headers(),
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise MooseTransportError(f"Request to {path} failed: {exc}", endpoint=path) from exc
        except asyncio.TimeoutError as exc:
            raise MooseTransportError(f"Request to {path} timed out", endpoint=path) from exc

        body = _decode_body(text, status=status, endpoint=path)
        if self._config.api_trace_enabled:
            _logger.debug("%s %s -> %d %s", method, path, status, redact_for_log(body))

        if not 200 <= status < 300:
            raise api_error_for(status, body, path)
        if not body:
            # 204 / empty body
            return {"success": True}
        return body


def _decode_body(text: str, *, status: int, endpoint: str) -> dict[str, Any]:
    if not text.strip():
        return {}
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as exc:
        if not 200 <= status < 300:
            # Proxies return HTML error pages; keep the status mapping.
            return {"message": f"HTTP {status}"}
        raise MooseTransportError(
            f"Invalid JSON from {endpoint}: {text[:200]}",
            status_code=status,
            endpoint=endpoint,
        ) from exc
    if not isinstance(decoded, dict):
        raise MooseTransportError(
            f"Unexpected {type(decoded).__name__} body from {endpoint}",
            status_code=status,
            endpoint=endpoint,
        )
    return decoded
