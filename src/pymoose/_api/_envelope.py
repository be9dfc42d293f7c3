"""Response envelope decoding.

Every endpoint answers ``{"success": bool, "data": ..., "message": ...,
"pagination": {...}}``. Collections are either a bare list under ``data``
or wrapped one level deeper (``data.tickets``, ``data.items``); pagination
metadata may sit beside ``data``, under ``meta``, or inside ``data``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pymoose.exceptions import MooseApiError

_COLLECTION_KEYS: tuple[str, ...] = ("items", "results", "docs")
_PAGINATION_KEYS: tuple[str, ...] = ("pagination", "meta")


def unwrap_envelope(response: Mapping[str, Any], endpoint: str) -> Any:
    """Return the ``data`` member of a successful envelope.

    Raises
    ------
    MooseApiError
        When ``success`` is false; carries the server's message.
    """
    if response.get("success") is False:
        message = response.get("message") or response.get("error") or f"{endpoint} failed"
        raise MooseApiError(str(message), endpoint=endpoint)
    return response.get("data")


def extract_items(data: Any, endpoint: str, *collection_keys: str) -> list[Any]:
    """Return the list of raw entities inside *data*."""
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, Mapping):
        for key in (*collection_keys, *_COLLECTION_KEYS):
            value = data.get(key)
            if isinstance(value, list):
                return value
    raise MooseApiError(f"Unexpected collection payload from {endpoint}", endpoint=endpoint)


def extract_pagination(response: Mapping[str, Any], data: Any) -> Mapping[str, Any] | None:
    """Locate the pagination block in *response*, falling back to *data*."""
    for source in (response, data):
        if not isinstance(source, Mapping):
            continue
        for key in _PAGINATION_KEYS:
            value = source.get(key)
            if isinstance(value, Mapping):
                return value
    return None
