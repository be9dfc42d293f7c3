"""Infraction-type catalog endpoints.

Endpoints:
  - GET /infraction-types
  - GET /infraction-types/{id}
  - GET /infraction-types/categories
"""

from __future__ import annotations

from pymoose._api._common import Page, call_one, get_page
from pymoose._api._envelope import extract_items, unwrap_envelope
from pymoose._constants import INFRACTION_CATEGORIES, INFRACTION_TYPES, detail_path
from pymoose._transport import Transport
from pymoose.models.infraction_type import InfractionCategory, InfractionType
from pymoose.models.requests import InfractionTypeQuery


async def fetch_infraction_types(transport: Transport, query: InfractionTypeQuery) -> Page[InfractionType]:
    filters = query.model_dump(by_alias=True, exclude={"page", "limit"}, exclude_none=True)
    return await get_page(
        transport,
        INFRACTION_TYPES,
        InfractionType,
        page=query.page,
        limit=query.limit,
        filters=filters,
        collection_key="infractionTypes",
    )


async def fetch_infraction_type(transport: Transport, infraction_type_id: str) -> InfractionType:
    return await call_one(
        transport,
        "GET",
        detail_path(INFRACTION_TYPES, infraction_type_id),
        InfractionType,
        entity_key="infractionType",
    )


async def fetch_categories(transport: Transport) -> tuple[InfractionCategory, ...]:
    """Return the distinct categories present in the catalog."""
    response = await transport.request("GET", INFRACTION_CATEGORIES)
    data = unwrap_envelope(response, INFRACTION_CATEGORIES)
    raw = extract_items(data, INFRACTION_CATEGORIES, "categories")
    return tuple(InfractionCategory(str(value)) for value in raw)
