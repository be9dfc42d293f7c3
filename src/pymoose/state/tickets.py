"""Ticket store (tickets and their disputes).

Disputes are kept in this store because every dispute hangs off one
ticket and creating one changes that ticket's status.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pymoose._api import disputes as dispute_api
from pymoose._api import tickets as ticket_api
from pymoose.exceptions import MooseValidationError
from pymoose.models.dispute import Dispute, advance_dispute
from pymoose.models.requests import (
    BulkDeleteRequest,
    BulkUpdateRequest,
    CreateDisputeRequest,
    CreateTicketRequest,
    EvidenceUpload,
    UpdateTicketRequest,
)
from pymoose.models.ticket import PaymentHistoryEntry, Ticket, TicketStatus
from pymoose.result import Err, Result
from pymoose.state.events import (
    CurrentCleared,
    DisputeCreated,
    DisputeLoaded,
    DisputesLoaded,
    DisputeUpdated,
    FiltersChanged,
    Reset,
    StoreEvent,
    TicketCreated,
    TicketDeleted,
    TicketLoaded,
    TicketMarkedDisputed,
    TicketMarkedPaid,
    TicketsBulkDeleted,
    TicketsBulkUpdated,
    TicketsLoaded,
    TicketUpdated,
)
from pymoose.state.filters import DisputeFilters, TicketFilters
from pymoose.state.pagination import PageState, merge_page
from pymoose.state.store import EntityStore, find_by_id, prepend, remove_ids, replace_by_id, same_id

_logger = logging.getLogger(__name__)


class TicketOp(StrEnum):
    """Operation kinds tracked by the ticket store."""

    FETCH_TICKETS = "fetch_tickets"
    FETCH_TICKET = "fetch_ticket"
    CREATE_TICKET = "create_ticket"
    UPDATE_TICKET = "update_ticket"
    DELETE_TICKET = "delete_ticket"
    BULK_UPDATE = "bulk_update"
    BULK_DELETE = "bulk_delete"
    FETCH_DISPUTES = "fetch_disputes"
    FETCH_DISPUTE = "fetch_dispute"
    CREATE_DISPUTE = "create_dispute"
    ADD_EVIDENCE = "add_evidence"


class TicketState(BaseModel):
    model_config = ConfigDict(frozen=True)

    tickets: tuple[Ticket, ...] = ()
    current_ticket: Ticket | None = None
    pagination: PageState = Field(default_factory=PageState)
    filters: TicketFilters = Field(default_factory=TicketFilters)
    disputes: tuple[Dispute, ...] = ()
    current_dispute: Dispute | None = None
    dispute_pagination: PageState = Field(default_factory=PageState)
    dispute_filters: DisputeFilters = Field(default_factory=DisputeFilters)
    last_updated: datetime | None = None


class TicketStats(BaseModel):
    """Counts and amounts by status bucket, derived from the cached tickets."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    paid: int = 0
    outstanding: int = 0
    disputed: int = 0
    total_amount: float = 0.0
    paid_amount: float = 0.0
    outstanding_amount: float = 0.0


def compute_stats(tickets: Sequence[Ticket]) -> TicketStats:
    paid = [t for t in tickets if t.status is TicketStatus.PAID]
    open_ = [t for t in tickets if t.is_open]
    return TicketStats(
        total=len(tickets),
        paid=len(paid),
        outstanding=len(open_),
        disputed=sum(1 for t in tickets if t.status is TicketStatus.DISPUTED),
        total_amount=round(sum(t.amount for t in tickets), 2),
        paid_amount=round(sum(t.amount for t in paid), 2),
        outstanding_amount=round(sum(t.amount for t in open_), 2),
    )


# ------------------------------------------------------------------
# Reducer
# ------------------------------------------------------------------


def _patch_ticket(state: TicketState, ticket_id: str, changes: Mapping[str, Any]) -> dict[str, Any]:
    """Apply *changes* to the cached copies of one ticket (collection and current slot)."""
    update: dict[str, Any] = {}
    target = find_by_id(state.tickets, ticket_id)
    if target is not None:
        update["tickets"] = replace_by_id(state.tickets, target.model_copy(update=dict(changes)))
    if same_id(state.current_ticket, ticket_id):
        assert state.current_ticket is not None
        update["current_ticket"] = state.current_ticket.model_copy(update=dict(changes))
    return update


def _with_history(ticket: Ticket, entry: PaymentHistoryEntry) -> dict[str, Any]:
    return {
        "status": TicketStatus.PAID,
        "payment_history": (*ticket.payment_history, entry),
        "updated_at": entry.payment_date or ticket.updated_at,
    }


def _mark_paid(state: TicketState, ticket_id: str, entry: PaymentHistoryEntry) -> dict[str, Any]:
    update: dict[str, Any] = {}
    target = find_by_id(state.tickets, ticket_id)
    if target is not None:
        update["tickets"] = replace_by_id(state.tickets, target.model_copy(update=_with_history(target, entry)))
    current = state.current_ticket
    if current is not None and current.id == ticket_id:
        update["current_ticket"] = current.model_copy(update=_with_history(current, entry))
    return update


def _sync_dispute_ref(state: TicketState, dispute: Dispute) -> dict[str, Any]:
    """Mirror a dispute's review status onto the ticket reference that points at it."""
    if not dispute.ticket_id:
        return {}
    ticket = find_by_id(state.tickets, dispute.ticket_id) or (
        state.current_ticket if same_id(state.current_ticket, dispute.ticket_id) else None
    )
    if ticket is None or ticket.dispute is None or ticket.dispute.dispute_id != dispute.id:
        return {}
    if ticket.dispute.status is dispute.status:
        return {}
    ref = ticket.dispute.model_copy(update={"status": dispute.status})
    return _patch_ticket(state, dispute.ticket_id, {"dispute": ref})


def _store_dispute(state: TicketState, dispute: Dispute) -> TicketState:
    merged = advance_dispute(find_by_id(state.disputes, dispute.id), dispute)
    update: dict[str, Any] = {"disputes": replace_by_id(state.disputes, merged)}
    if same_id(state.current_dispute, merged.id):
        update["current_dispute"] = advance_dispute(state.current_dispute, merged)
    state = state.model_copy(update=update)
    return state.model_copy(update=_sync_dispute_ref(state, merged))


def reduce_tickets(state: TicketState, event: StoreEvent) -> TicketState:
    """Pure reducer for :class:`TicketState`."""
    if isinstance(event, Reset):
        return TicketState()

    if isinstance(event, TicketsLoaded):
        return state.model_copy(
            update={
                "tickets": merge_page(state.tickets, event.items, event.mode),
                "pagination": event.page_state,
                "last_updated": event.observed_at,
            }
        )
    if isinstance(event, TicketLoaded):
        return state.model_copy(update={"current_ticket": event.ticket})
    if isinstance(event, TicketCreated):
        pagination = state.pagination.model_copy(update={"total": state.pagination.total + 1})
        return state.model_copy(update={"tickets": prepend(state.tickets, event.ticket), "pagination": pagination})
    if isinstance(event, TicketUpdated):
        update: dict[str, Any] = {"tickets": replace_by_id(state.tickets, event.ticket)}
        if same_id(state.current_ticket, event.ticket.id):
            update["current_ticket"] = event.ticket
        return state.model_copy(update=update)
    if isinstance(event, (TicketDeleted, TicketsBulkDeleted)):
        ids = (event.ticket_id,) if isinstance(event, TicketDeleted) else event.ticket_ids
        remaining = remove_ids(state.tickets, ids)
        removed = len(state.tickets) - len(remaining)
        update = {
            "tickets": remaining,
            "pagination": state.pagination.model_copy(update={"total": max(0, state.pagination.total - removed)}),
        }
        if state.current_ticket is not None and state.current_ticket.id in ids:
            update["current_ticket"] = None
        return state.model_copy(update=update)
    if isinstance(event, TicketsBulkUpdated):
        for ticket_id in event.ticket_ids:
            state = state.model_copy(update=_patch_ticket(state, ticket_id, event.changes))
        return state
    if isinstance(event, TicketMarkedPaid):
        return state.model_copy(update=_mark_paid(state, event.ticket_id, event.entry))
    if isinstance(event, TicketMarkedDisputed):
        return state.model_copy(
            update=_patch_ticket(state, event.ticket_id, {"status": TicketStatus.DISPUTED, "dispute": event.dispute})
        )

    if isinstance(event, DisputesLoaded):
        incoming = tuple(advance_dispute(find_by_id(state.disputes, d.id), d) for d in event.items)
        state = state.model_copy(
            update={
                "disputes": merge_page(state.disputes, incoming, event.mode),
                "dispute_pagination": event.page_state,
            }
        )
        for dispute in incoming:
            state = state.model_copy(update=_sync_dispute_ref(state, dispute))
        return state
    if isinstance(event, DisputeLoaded):
        return state.model_copy(update={"current_dispute": advance_dispute(state.current_dispute, event.dispute)})
    if isinstance(event, DisputeUpdated):
        return _store_dispute(state, event.dispute)
    if isinstance(event, DisputeCreated):
        pagination = state.dispute_pagination.model_copy(update={"total": state.dispute_pagination.total + 1})
        return state.model_copy(
            update={
                "disputes": prepend(state.disputes, event.dispute),
                "current_dispute": event.dispute,
                "dispute_pagination": pagination,
            }
        )

    if isinstance(event, FiltersChanged):
        if event.collection == "disputes":
            return state.model_copy(update={"dispute_filters": event.filters})
        return state.model_copy(update={"filters": event.filters})
    if isinstance(event, CurrentCleared):
        return state.model_copy(update={f"current_{event.slot}": None})

    return state


# ------------------------------------------------------------------
# Store
# ------------------------------------------------------------------


class TicketStore(EntityStore[TicketState]):
    """Cache of the user's tickets and disputes."""

    name = "tickets"
    reducer = reduce_tickets

    def _initial_state(self) -> TicketState:
        return TicketState()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def tickets(self) -> tuple[Ticket, ...]:
        return self._state.tickets

    @property
    def current_ticket(self) -> Ticket | None:
        return self._state.current_ticket

    @property
    def filtered_tickets(self) -> tuple[Ticket, ...]:
        return self._projected("tickets", self._state.tickets, self._state.filters)

    @property
    def disputes(self) -> tuple[Dispute, ...]:
        return self._state.disputes

    @property
    def current_dispute(self) -> Dispute | None:
        return self._state.current_dispute

    @property
    def filtered_disputes(self) -> tuple[Dispute, ...]:
        return self._projected("disputes", self._state.disputes, self._state.dispute_filters)

    @property
    def pagination(self) -> PageState:
        return self._state.pagination

    @property
    def is_loading(self) -> bool:
        return self._tracker.is_loading(TicketOp.FETCH_TICKETS)

    @property
    def is_loading_more(self) -> bool:
        return self._tracker.is_loading_more(TicketOp.FETCH_TICKETS)

    @property
    def is_loading_disputes(self) -> bool:
        return self._tracker.is_loading(TicketOp.FETCH_DISPUTES)

    @property
    def stats(self) -> TicketStats:
        return compute_stats(self._state.tickets)

    def get(self, ticket_id: str) -> Ticket | None:
        return find_by_id(self._state.tickets, ticket_id)

    def upcoming_due(self, *, now: datetime | None = None, days: int = 7) -> tuple[Ticket, ...]:
        """Open tickets due within *days* of *now*, soonest first."""
        start = now or datetime.now(UTC)
        end = start + timedelta(days=days)
        due = [t for t in self._state.tickets if t.is_open and t.due_date is not None and start <= t.due_date <= end]
        return tuple(sorted(due, key=lambda t: t.due_date or start))

    def active_dispute_for(self, ticket_id: str) -> Dispute | None:
        """The non-rejected dispute cached for *ticket_id*, if any."""
        return next(
            (d for d in self._state.disputes if d.ticket_id == ticket_id and d.status.is_active),
            None,
        )

    def has_active_dispute(self, ticket_id: str) -> bool:
        if self.active_dispute_for(ticket_id) is not None:
            return True
        ticket = self.get(ticket_id)
        if ticket is None and same_id(self._state.current_ticket, ticket_id):
            ticket = self._state.current_ticket
        return ticket is not None and ticket.dispute is not None and ticket.dispute.status.is_active

    # ------------------------------------------------------------------
    # Tickets
    # ------------------------------------------------------------------

    async def fetch_tickets(
        self,
        page: int = 1,
        page_size: int | None = None,
        filters: TicketFilters | None = None,
    ) -> Result[tuple[Ticket, ...]]:
        """Load a page of tickets; page 1 replaces the cache, later pages append."""
        query = (filters or self._state.filters).to_query()
        return await self._load_page(
            TicketOp.FETCH_TICKETS,
            page=page,
            limit=page_size or self._config.page_size,
            page_state=self._state.pagination,
            fetch=lambda p, n: ticket_api.fetch_tickets(self._transport, page=p, limit=n, filters=query),
            to_event=lambda items, ps, mode: TicketsLoaded(items=items, page_state=ps, mode=mode),
            collection=lambda: self._state.tickets,
        )

    async def load_more_tickets(self) -> Result[tuple[Ticket, ...]]:
        return await self.fetch_tickets(page=self._state.pagination.next_page, page_size=self._state.pagination.limit)

    async def refresh(self) -> Result[tuple[Ticket, ...]]:
        return await self.fetch_tickets(page=1)

    async def fetch_ticket(self, ticket_id: str) -> Result[Ticket]:
        if (bad := self._check_id(ticket_id, "ticket_id")) is not None:
            return bad
        return await self._run(
            TicketOp.FETCH_TICKET,
            lambda: ticket_api.fetch_ticket(self._transport, ticket_id),
            lambda ticket: TicketLoaded(ticket=ticket),
            discard_stale=True,
        )

    async def create_ticket(self, payload: CreateTicketRequest | Mapping[str, Any]) -> Result[Ticket]:
        request = self._validated(CreateTicketRequest, payload)
        if isinstance(request, Err):
            return request
        return await self._run(
            TicketOp.CREATE_TICKET,
            lambda: ticket_api.create_ticket(self._transport, request),
            lambda ticket: TicketCreated(ticket=ticket),
        )

    async def update_ticket(self, ticket_id: str, patch: UpdateTicketRequest | Mapping[str, Any]) -> Result[Ticket]:
        if (bad := self._check_id(ticket_id, "ticket_id")) is not None:
            return bad
        request = self._validated(UpdateTicketRequest, patch)
        if isinstance(request, Err):
            return request
        return await self._run(
            TicketOp.UPDATE_TICKET,
            lambda: ticket_api.update_ticket(self._transport, ticket_id, request),
            lambda ticket: TicketUpdated(ticket=ticket),
        )

    async def delete_ticket(self, ticket_id: str) -> Result[str]:
        if (bad := self._check_id(ticket_id, "ticket_id")) is not None:
            return bad

        async def _call() -> str:
            await ticket_api.delete_ticket(self._transport, ticket_id)
            return ticket_id

        return await self._run(TicketOp.DELETE_TICKET, _call, lambda deleted: TicketDeleted(ticket_id=deleted))

    async def bulk_update(
        self,
        ticket_ids: Sequence[str],
        patch: UpdateTicketRequest | Mapping[str, Any],
    ) -> Result[tuple[str, ...]]:
        """Apply the same field changes to several tickets in one request."""
        updates = self._validated(UpdateTicketRequest, patch)
        if isinstance(updates, Err):
            return updates
        request = self._validated(BulkUpdateRequest, {"ticket_ids": tuple(ticket_ids), "updates": updates})
        if isinstance(request, Err):
            return request

        async def _call() -> tuple[str, ...]:
            await ticket_api.bulk_update_tickets(self._transport, request)
            return request.ticket_ids

        return await self._run(
            TicketOp.BULK_UPDATE,
            _call,
            lambda ids: TicketsBulkUpdated(ticket_ids=ids, changes=updates.local_patch()),
        )

    async def bulk_delete(self, ticket_ids: Sequence[str]) -> Result[tuple[str, ...]]:
        request = self._validated(BulkDeleteRequest, {"ticket_ids": tuple(ticket_ids)})
        if isinstance(request, Err):
            return request

        async def _call() -> tuple[str, ...]:
            await ticket_api.bulk_delete_tickets(self._transport, request)
            return request.ticket_ids

        return await self._run(TicketOp.BULK_DELETE, _call, lambda ids: TicketsBulkDeleted(ticket_ids=ids))

    # ------------------------------------------------------------------
    # Disputes
    # ------------------------------------------------------------------

    async def create_dispute(self, payload: CreateDisputeRequest | Mapping[str, Any]) -> Result[Dispute]:
        """Dispute a ticket. A ticket can carry only one active dispute at a time."""
        request = self._validated(CreateDisputeRequest, payload)
        if isinstance(request, Err):
            return request
        if self.has_active_dispute(request.ticket_id):
            _logger.debug("Refusing second dispute for ticket %s", request.ticket_id)
            exc = MooseValidationError("ticket already has an active dispute", field="ticket_id")
            return Err(str(exc), error=exc)

        def _created(dispute: Dispute) -> DisputeCreated:
            if not dispute.ticket_id:
                dispute = dispute.model_copy(update={"ticket_id": request.ticket_id})
            return DisputeCreated(dispute=dispute)

        return await self._run(
            TicketOp.CREATE_DISPUTE,
            lambda: ticket_api.dispute_ticket(self._transport, request),
            _created,
        )

    async def fetch_disputes(
        self,
        page: int = 1,
        page_size: int | None = None,
        filters: DisputeFilters | None = None,
    ) -> Result[tuple[Dispute, ...]]:
        query = (filters or self._state.dispute_filters).to_query()
        return await self._load_page(
            TicketOp.FETCH_DISPUTES,
            page=page,
            limit=page_size or self._config.page_size,
            page_state=self._state.dispute_pagination,
            fetch=lambda p, n: dispute_api.fetch_disputes(self._transport, page=p, limit=n, filters=query),
            to_event=lambda items, ps, mode: DisputesLoaded(items=items, page_state=ps, mode=mode),
            collection=lambda: self._state.disputes,
        )

    async def load_more_disputes(self) -> Result[tuple[Dispute, ...]]:
        pagination = self._state.dispute_pagination
        return await self.fetch_disputes(page=pagination.next_page, page_size=pagination.limit)

    async def fetch_dispute(self, dispute_id: str) -> Result[Dispute]:
        if (bad := self._check_id(dispute_id, "dispute_id")) is not None:
            return bad
        return await self._run(
            TicketOp.FETCH_DISPUTE,
            lambda: dispute_api.fetch_dispute(self._transport, dispute_id),
            lambda dispute: DisputeLoaded(dispute=dispute),
            discard_stale=True,
        )

    async def add_evidence(self, dispute_id: str, upload: EvidenceUpload | Mapping[str, Any]) -> Result[Dispute]:
        if (bad := self._check_id(dispute_id, "dispute_id")) is not None:
            return bad
        request = self._validated(EvidenceUpload, upload)
        if isinstance(request, Err):
            return request
        return await self._run(
            TicketOp.ADD_EVIDENCE,
            lambda: dispute_api.add_evidence(self._transport, dispute_id, request),
            lambda dispute: DisputeUpdated(dispute=dispute),
        )

    # ------------------------------------------------------------------
    # Local commands
    # ------------------------------------------------------------------

    def set_filter(self, key: str, value: Any) -> Result[TicketFilters]:
        return self._change_filters("tickets", self._state.filters, key, value)

    def clear_filters(self) -> Result[TicketFilters]:
        return self._change_filters("tickets", self._state.filters)

    def set_dispute_filter(self, key: str, value: Any) -> Result[DisputeFilters]:
        return self._change_filters("disputes", self._state.dispute_filters, key, value)

    def clear_dispute_filters(self) -> Result[DisputeFilters]:
        return self._change_filters("disputes", self._state.dispute_filters)

    def clear_current_ticket(self) -> None:
        self.apply(CurrentCleared(slot="ticket"))

    def clear_current_dispute(self) -> None:
        self.apply(CurrentCleared(slot="dispute"))


__all__ = [
    "TicketOp",
    "TicketState",
    "TicketStats",
    "TicketStore",
    "compute_stats",
    "reduce_tickets",
]
