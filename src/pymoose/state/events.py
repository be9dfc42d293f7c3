"""Typed store events.

Every state change in every store is one of these events passed through
that store's pure reducer. Commands emit events after a successful
terminal transition; the coordinator emits the cross-store events
(``TicketMarkedPaid``, ``TicketMarkedDisputed``, ``DefaultPaymentMethodSet``).
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny

from pymoose.models.dispute import Dispute
from pymoose.models.infraction_type import InfractionCategory, InfractionType
from pymoose.models.payment import Payment, PaymentMethod
from pymoose.models.subscription import BillingRecord, Subscription, SubscriptionPlan, UsageQuota
from pymoose.models.ticket import PaymentHistoryEntry, Ticket, TicketDisputeRef
from pymoose.state.filters import FilterSpec
from pymoose.state.pagination import LoadMode, PageState


class EventSource(StrEnum):
    SERVER = "server"
    LOCAL = "local"
    COORDINATOR = "coordinator"


class StoreEvent(BaseModel):
    """Base for all store events."""

    model_config = ConfigDict(frozen=True)

    source: EventSource = EventSource.SERVER
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class PageLoaded(StoreEvent):
    """A page of some collection arrived; ``mode`` says replace or append."""

    page_state: PageState
    mode: LoadMode


class Reset(StoreEvent):
    source: EventSource = EventSource.LOCAL


class FiltersChanged(StoreEvent):
    source: EventSource = EventSource.LOCAL
    collection: str
    filters: SerializeAsAny[FilterSpec]  # type: ignore[type-arg]


class CurrentCleared(StoreEvent):
    source: EventSource = EventSource.LOCAL
    slot: str


# ------------------------------------------------------------------
# Tickets and disputes
# ------------------------------------------------------------------


class TicketsLoaded(PageLoaded):
    items: tuple[Ticket, ...]


class TicketLoaded(StoreEvent):
    ticket: Ticket


class TicketCreated(StoreEvent):
    ticket: Ticket


class TicketUpdated(StoreEvent):
    ticket: Ticket


class TicketDeleted(StoreEvent):
    ticket_id: str


class TicketsBulkUpdated(StoreEvent):
    ticket_ids: tuple[str, ...]
    changes: dict[str, Any]


class TicketsBulkDeleted(StoreEvent):
    ticket_ids: tuple[str, ...]


class TicketMarkedPaid(StoreEvent):
    source: EventSource = EventSource.COORDINATOR
    ticket_id: str
    entry: PaymentHistoryEntry


class TicketMarkedDisputed(StoreEvent):
    source: EventSource = EventSource.COORDINATOR
    ticket_id: str
    dispute: TicketDisputeRef


class DisputesLoaded(PageLoaded):
    items: tuple[Dispute, ...]


class DisputeLoaded(StoreEvent):
    dispute: Dispute


class DisputeCreated(StoreEvent):
    dispute: Dispute


class DisputeUpdated(StoreEvent):
    dispute: Dispute


# ------------------------------------------------------------------
# Payments
# ------------------------------------------------------------------


class PaymentMethodsLoaded(PageLoaded):
    items: tuple[PaymentMethod, ...]


class PaymentMethodCreated(StoreEvent):
    method: PaymentMethod


class PaymentMethodUpdated(StoreEvent):
    method: PaymentMethod


class PaymentMethodDeleted(StoreEvent):
    method_id: str


class DefaultPaymentMethodConfirmed(StoreEvent):
    """Server accepted a new default; the coordinator applies the effect."""

    method: PaymentMethod


class DefaultPaymentMethodSet(StoreEvent):
    source: EventSource = EventSource.COORDINATOR
    method: PaymentMethod


class PaymentsLoaded(PageLoaded):
    items: tuple[Payment, ...]


class PaymentLoaded(StoreEvent):
    payment: Payment


class PaymentRecorded(StoreEvent):
    payment: Payment


class PaymentUpdated(StoreEvent):
    payment: Payment


# ------------------------------------------------------------------
# Subscriptions
# ------------------------------------------------------------------


class PlansLoaded(StoreEvent):
    plans: tuple[SubscriptionPlan, ...]


class SubscriptionsLoaded(PageLoaded):
    items: tuple[Subscription, ...]


class CurrentSubscriptionLoaded(StoreEvent):
    subscription: Subscription | None


class SubscriptionLoaded(StoreEvent):
    subscription: Subscription


class SubscriptionCreated(StoreEvent):
    subscription: Subscription


class SubscriptionUpdated(StoreEvent):
    subscription: Subscription


class BillingHistoryLoaded(PageLoaded):
    items: tuple[BillingRecord, ...]


class UsageLoaded(StoreEvent):
    usage: UsageQuota


class PlanSelected(StoreEvent):
    source: EventSource = EventSource.LOCAL
    plan: SubscriptionPlan | None


# ------------------------------------------------------------------
# Infraction types
# ------------------------------------------------------------------


class InfractionTypesLoaded(PageLoaded):
    items: tuple[InfractionType, ...]


class InfractionTypeLoaded(StoreEvent):
    infraction_type: InfractionType


class InfractionCategoriesLoaded(StoreEvent):
    categories: tuple[InfractionCategory, ...]
