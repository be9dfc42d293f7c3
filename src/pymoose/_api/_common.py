"""Shared helpers for ticket-service endpoint modules.

This module centralizes the most repeated patterns:
- building query strings from optional filters
- unwrapping the response envelope
- validating entities and pagination into models

It is internal to pymoose and may change at any time.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from pymoose._api._envelope import extract_items, extract_pagination, unwrap_envelope
from pymoose._transport import Transport
from pymoose.exceptions import MooseApiError
from pymoose.models.pagination import Pagination

TModel = TypeVar("TModel", bound=BaseModel)


@dataclasses.dataclass(frozen=True, slots=True)
class Page(Generic[TModel]):
    """One page of a collection as returned by the server."""

    items: tuple[TModel, ...]
    pagination: Pagination | None
    page: int
    limit: int


def build_query(params: Mapping[str, Any]) -> dict[str, str]:
    """Drop empty values and stringify the rest for the query string."""
    query: dict[str, str] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        elif isinstance(value, Enum):
            query[key] = str(value.value)
        elif isinstance(value, datetime):
            query[key] = value.isoformat()
        elif isinstance(value, (list, tuple)):
            if value:
                query[key] = ",".join(str(v) for v in value)
        else:
            query[key] = str(value)
    return query


def parse_model(model: type[TModel], raw: Any, endpoint: str) -> TModel:
    """Validate *raw* into *model*, mapping schema errors to :class:`MooseApiError`."""
    if not isinstance(raw, Mapping):
        raise MooseApiError(f"Unexpected payload from {endpoint}", endpoint=endpoint)
    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        raise MooseApiError(f"Invalid {model.__name__} payload from {endpoint}: {exc.errors()[0]['msg']}", endpoint=endpoint) from exc


async def get_page(
    transport: Transport,
    endpoint: str,
    model: type[TModel],
    *,
    page: int,
    limit: int,
    filters: Mapping[str, Any] | None = None,
    collection_key: str = "",
) -> Page[TModel]:
    """GET a paginated collection and validate every entity."""
    params = build_query({"page": page, "limit": limit, **(filters or {})})
    response = await transport.request("GET", endpoint, params=params)
    data = unwrap_envelope(response, endpoint)
    keys = (collection_key,) if collection_key else ()
    items = tuple(parse_model(model, raw, endpoint) for raw in extract_items(data, endpoint, *keys))
    meta = extract_pagination(response, data)
    pagination = parse_model(Pagination, meta, endpoint) if meta is not None else None
    return Page(items=items, pagination=pagination, page=page, limit=limit)


async def get_list(
    transport: Transport,
    endpoint: str,
    model: type[TModel],
    *,
    params: Mapping[str, Any] | None = None,
    collection_key: str = "",
) -> tuple[TModel, ...]:
    """GET an unpaginated collection."""
    response = await transport.request("GET", endpoint, params=build_query(params or {}))
    data = unwrap_envelope(response, endpoint)
    keys = (collection_key,) if collection_key else ()
    return tuple(parse_model(model, raw, endpoint) for raw in extract_items(data, endpoint, *keys))


async def call_one(
    transport: Transport,
    method: str,
    endpoint: str,
    model: type[TModel],
    *,
    body: Mapping[str, Any] | None = None,
    params: Mapping[str, Any] | None = None,
    entity_key: str = "",
) -> TModel:
    """Send a request whose ``data`` is a single entity (optionally nested under *entity_key*)."""
    response = await transport.request(method, endpoint, params=build_query(params or {}), json=body)
    data = unwrap_envelope(response, endpoint)
    if entity_key and isinstance(data, Mapping) and isinstance(data.get(entity_key), Mapping):
        data = data[entity_key]
    return parse_model(model, data, endpoint)


async def call_optional(
    transport: Transport,
    method: str,
    endpoint: str,
    model: type[TModel],
) -> TModel | None:
    """Like :func:`call_one` but a null ``data`` yields ``None``."""
    response = await transport.request(method, endpoint)
    data = unwrap_envelope(response, endpoint)
    if data is None:
        return None
    return parse_model(model, data, endpoint)


async def call_no_content(
    transport: Transport,
    method: str,
    endpoint: str,
    *,
    body: Mapping[str, Any] | None = None,
) -> None:
    """Send a request whose success carries no entity (deletes, bulk ops)."""
    response = await transport.request(method, endpoint, json=body)
    unwrap_envelope(response, endpoint)
