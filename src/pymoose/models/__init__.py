"""Data models for ticket-service API payloads."""

from pymoose.models._base import EntityRef, MooseBaseModel, MooseEnum
from pymoose.models.dispute import Dispute, DisputeStatus, Evidence, advance_dispute
from pymoose.models.infraction_type import (
    InfractionCategory,
    InfractionType,
    LocalizedText,
    Municipality,
)
from pymoose.models.pagination import Pagination
from pymoose.models.payment import Payment, PaymentMethod, PaymentMethodType, PaymentStatus
from pymoose.models.requests import (
    BulkDeleteRequest,
    BulkUpdateRequest,
    CancelSubscriptionRequest,
    CreateDisputeRequest,
    CreatePaymentMethodRequest,
    CreateSubscriptionRequest,
    CreateTicketRequest,
    EvidenceUpload,
    InfractionTypeQuery,
    PageRequest,
    PaymentRequest,
    RefundRequest,
    UpdatePaymentMethodRequest,
    UpdateSubscriptionRequest,
    UpdateTicketRequest,
    validate_request,
)
from pymoose.models.subscription import (
    BillingCycle,
    BillingRecord,
    PlanPrice,
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
    UsageQuota,
)
from pymoose.models.ticket import (
    Address,
    PaymentHistoryEntry,
    Ticket,
    TicketDisputeRef,
    TicketLocation,
    TicketStatus,
)

__all__ = [
    "Address",
    "BillingCycle",
    "BillingRecord",
    "BulkDeleteRequest",
    "BulkUpdateRequest",
    "CancelSubscriptionRequest",
    "CreateDisputeRequest",
    "CreatePaymentMethodRequest",
    "CreateSubscriptionRequest",
    "CreateTicketRequest",
    "Dispute",
    "DisputeStatus",
    "EntityRef",
    "Evidence",
    "EvidenceUpload",
    "InfractionCategory",
    "InfractionType",
    "InfractionTypeQuery",
    "LocalizedText",
    "MooseBaseModel",
    "MooseEnum",
    "Municipality",
    "PageRequest",
    "Pagination",
    "Payment",
    "PaymentHistoryEntry",
    "PaymentMethod",
    "PaymentMethodType",
    "PaymentRequest",
    "PaymentStatus",
    "PlanPrice",
    "RefundRequest",
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "Ticket",
    "TicketDisputeRef",
    "TicketLocation",
    "TicketStatus",
    "UpdatePaymentMethodRequest",
    "UpdateSubscriptionRequest",
    "UpdateTicketRequest",
    "UsageQuota",
    "advance_dispute",
    "validate_request",
]
