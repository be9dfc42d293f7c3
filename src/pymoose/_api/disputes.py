"""Dispute endpoints.

Endpoints:
  - GET /disputes
  - GET /disputes/{id}
  - POST /disputes/{id}/evidence
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pymoose._api._common import Page, call_one, get_page
from pymoose._constants import DISPUTES, detail_path
from pymoose._transport import Transport
from pymoose.models.dispute import Dispute
from pymoose.models.requests import EvidenceUpload


async def fetch_disputes(
    transport: Transport,
    *,
    page: int,
    limit: int,
    filters: Mapping[str, Any] | None = None,
) -> Page[Dispute]:
    return await get_page(transport, DISPUTES, Dispute, page=page, limit=limit, filters=filters, collection_key="disputes")


async def fetch_dispute(transport: Transport, dispute_id: str) -> Dispute:
    return await call_one(transport, "GET", detail_path(DISPUTES, dispute_id), Dispute, entity_key="dispute")


async def add_evidence(transport: Transport, dispute_id: str, upload: EvidenceUpload) -> Dispute:
    """Attach an uploaded file; the server answers with the updated dispute."""
    return await call_one(
        transport,
        "POST",
        detail_path(DISPUTES, dispute_id, "evidence"),
        Dispute,
        body=upload.to_payload(),
        entity_key="dispute",
    )
