"""Ticket endpoints.

Endpoints:
  - GET/POST /tickets
  - GET/PUT/DELETE /tickets/{id}
  - POST /tickets/{id}/pay
  - POST /tickets/{id}/dispute
  - PATCH /tickets/bulk
  - POST /tickets/bulk-delete
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pymoose._api._common import Page, call_no_content, call_one, get_page
from pymoose._constants import TICKETS, TICKETS_BULK, TICKETS_BULK_DELETE, detail_path
from pymoose._transport import Transport
from pymoose.models.dispute import Dispute
from pymoose.models.payment import Payment
from pymoose.models.requests import (
    BulkDeleteRequest,
    BulkUpdateRequest,
    CreateDisputeRequest,
    CreateTicketRequest,
    PaymentRequest,
    UpdateTicketRequest,
)
from pymoose.models.ticket import Ticket


async def fetch_tickets(
    transport: Transport,
    *,
    page: int,
    limit: int,
    filters: Mapping[str, Any] | None = None,
) -> Page[Ticket]:
    return await get_page(transport, TICKETS, Ticket, page=page, limit=limit, filters=filters, collection_key="tickets")


async def fetch_ticket(transport: Transport, ticket_id: str) -> Ticket:
    return await call_one(transport, "GET", detail_path(TICKETS, ticket_id), Ticket, entity_key="ticket")


async def create_ticket(transport: Transport, request: CreateTicketRequest) -> Ticket:
    return await call_one(transport, "POST", TICKETS, Ticket, body=request.to_payload(), entity_key="ticket")


async def update_ticket(transport: Transport, ticket_id: str, request: UpdateTicketRequest) -> Ticket:
    return await call_one(
        transport,
        "PUT",
        detail_path(TICKETS, ticket_id),
        Ticket,
        body=request.to_payload(),
        entity_key="ticket",
    )


async def delete_ticket(transport: Transport, ticket_id: str) -> None:
    await call_no_content(transport, "DELETE", detail_path(TICKETS, ticket_id))


async def pay_ticket(transport: Transport, request: PaymentRequest) -> Payment:
    """Charge *request.amount* against the ticket; returns the confirmed payment."""
    return await call_one(
        transport,
        "POST",
        detail_path(TICKETS, request.ticket_id, "pay"),
        Payment,
        body=request.to_payload(),
        entity_key="payment",
    )


async def dispute_ticket(transport: Transport, request: CreateDisputeRequest) -> Dispute:
    return await call_one(
        transport,
        "POST",
        detail_path(TICKETS, request.ticket_id, "dispute"),
        Dispute,
        body=request.to_payload(),
        entity_key="dispute",
    )


async def bulk_update_tickets(transport: Transport, request: BulkUpdateRequest) -> None:
    await call_no_content(transport, "PATCH", TICKETS_BULK, body=request.to_payload())


async def bulk_delete_tickets(transport: Transport, request: BulkDeleteRequest) -> None:
    await call_no_content(transport, "POST", TICKETS_BULK_DELETE, body=request.to_payload())
