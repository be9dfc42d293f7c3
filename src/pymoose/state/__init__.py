"""State/store layer.

Per-domain entity stores, the lifecycle tracker they share, and the
coordinator that keeps tickets consistent with payments and disputes.
"""

from pymoose.state.coordinator import Coordinator
from pymoose.state.filters import DisputeFilters, FilterSpec, InfractionTypeFilters, PaymentFilters, TicketFilters
from pymoose.state.infraction_types import InfractionTypeState, InfractionTypeStore
from pymoose.state.lifecycle import LifecycleTracker, OperationTicket
from pymoose.state.pagination import LoadMode, PageState
from pymoose.state.payments import PaymentAnalytics, PaymentState, PaymentStore
from pymoose.state.store import EntityStore
from pymoose.state.subscriptions import SubscriptionState, SubscriptionStore
from pymoose.state.tickets import TicketState, TicketStats, TicketStore

__all__ = [
    "Coordinator",
    "DisputeFilters",
    "EntityStore",
    "FilterSpec",
    "InfractionTypeFilters",
    "InfractionTypeState",
    "InfractionTypeStore",
    "LifecycleTracker",
    "LoadMode",
    "OperationTicket",
    "PageState",
    "PaymentAnalytics",
    "PaymentFilters",
    "PaymentState",
    "PaymentStore",
    "SubscriptionState",
    "SubscriptionStore",
    "TicketFilters",
    "TicketState",
    "TicketStats",
    "TicketStore",
]
