"""Cross-store consistency rules.

Each rule is triggered by one store's successful terminal transition and
mutates another store's cached entity without a network round-trip:

``payment_succeeded``
    ``PaymentRecorded`` (payment store) marks the ticket paid and appends a
    payment-history entry (ticket store).
``dispute_created``
    ``DisputeCreated`` (ticket store) marks the ticket disputed and stores
    the dispute reference.
``default_payment_method_set``
    A create/update claiming ``is_default`` or a confirmed set-default
    (payment store) makes that method the only default.

A rule whose target is not cached is a no-op: it returns ``False``, logs
at DEBUG and never fetches on behalf of the trigger.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from pymoose.models.dispute import Dispute
from pymoose.models.payment import Payment, PaymentMethod, PaymentStatus
from pymoose.models.ticket import PaymentHistoryEntry, TicketDisputeRef
from pymoose.state.events import (
    DefaultPaymentMethodConfirmed,
    DefaultPaymentMethodSet,
    DisputeCreated,
    PaymentMethodCreated,
    PaymentMethodUpdated,
    PaymentRecorded,
    StoreEvent,
    TicketMarkedDisputed,
    TicketMarkedPaid,
)
from pymoose.state.payments import PaymentStore
from pymoose.state.store import find_by_id, same_id
from pymoose.state.tickets import TicketStore

_logger = logging.getLogger(__name__)


class Coordinator:
    """Wires the named consistency rules to the stores' event streams."""

    def __init__(self, tickets: TicketStore, payments: PaymentStore) -> None:
        self._tickets = tickets
        self._payments = payments
        self._detach: list[Callable[[], None]] = [
            tickets.add_effect(self.handle),
            payments.add_effect(self.handle),
        ]

    def close(self) -> None:
        """Stop reacting to store events."""
        for detach in self._detach:
            detach()
        self._detach.clear()

    def handle(self, event: StoreEvent) -> bool:
        """Run the rule *event* triggers, if any; return whether a store changed."""
        if isinstance(event, PaymentRecorded):
            return self.payment_succeeded(event.payment)
        if isinstance(event, DisputeCreated):
            return self.dispute_created(event.dispute)
        if isinstance(event, DefaultPaymentMethodConfirmed):
            return self.default_payment_method_set(event.method)
        if isinstance(event, (PaymentMethodCreated, PaymentMethodUpdated)) and event.method.is_default:
            return self.default_payment_method_set(event.method)
        return False

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _has_ticket(self, ticket_id: str) -> bool:
        state = self._tickets.state
        return find_by_id(state.tickets, ticket_id) is not None or same_id(state.current_ticket, ticket_id)

    def payment_succeeded(self, payment: Payment) -> bool:
        ticket_id = payment.ticket_id
        if not ticket_id:
            _logger.debug("Payment %s carries no ticket; nothing to mark paid", payment.id)
            return False
        if payment.status is PaymentStatus.FAILED:
            _logger.debug("Payment %s failed; ticket %s left unchanged", payment.id, ticket_id)
            return False
        if not self._has_ticket(ticket_id):
            _logger.debug("Ticket %s not cached; skipping paid transition", ticket_id)
            return False
        entry = PaymentHistoryEntry(
            transaction_id=payment.transaction_id or payment.id,
            amount=payment.amount,
            payment_date=payment.confirmed_at or datetime.now(UTC),
            status=payment.status,
        )
        self._tickets.apply(TicketMarkedPaid(ticket_id=ticket_id, entry=entry))
        return True

    def dispute_created(self, dispute: Dispute) -> bool:
        ticket_id = dispute.ticket_id
        if not ticket_id or not self._has_ticket(ticket_id):
            _logger.debug("Ticket %s not cached; skipping disputed transition", ticket_id)
            return False
        ref = TicketDisputeRef(dispute_id=dispute.id, status=dispute.status, submitted_at=dispute.submitted_at)
        self._tickets.apply(TicketMarkedDisputed(ticket_id=ticket_id, dispute=ref))
        return True

    def default_payment_method_set(self, method: PaymentMethod) -> bool:
        if find_by_id(self._payments.state.payment_methods, method.id) is None:
            _logger.debug("Payment method %s not cached; default pointer unchanged", method.id)
            return False
        self._payments.apply(DefaultPaymentMethodSet(method=method))
        return True
