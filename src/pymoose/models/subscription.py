"""Subscription, plan, billing and usage models."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from pymoose._constants import DEFAULT_CURRENCY
from pymoose.models._base import EntityRef, MooseBaseModel, MooseEnum

_LEGACY_STATUS: dict[str, str] = {
    "trial": "trialing",
    "canceled": "cancelled",
    "expired": "inactive",
}

_LEGACY_CYCLE: dict[str, str] = {
    "month": "monthly",
    "year": "annually",
    "yearly": "annually",
    "annual": "annually",
}


class SubscriptionStatus(MooseEnum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"
    UNPAID = "unpaid"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> MooseEnum:
        if isinstance(value, str) and value.strip().lower() in _LEGACY_STATUS:
            return cls(_LEGACY_STATUS[value.strip().lower()])
        return super()._missing_(value)

    @property
    def is_current(self) -> bool:
        """Eligible to be the session's current subscription."""
        return self in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


class BillingCycle(MooseEnum):
    MONTHLY = "monthly"
    ANNUALLY = "annually"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> MooseEnum:
        if isinstance(value, str) and value.strip().lower() in _LEGACY_CYCLE:
            return cls(_LEGACY_CYCLE[value.strip().lower()])
        return super()._missing_(value)


class PlanPrice(MooseBaseModel):
    monthly: float = 0.0
    annually: float = 0.0
    currency: str = DEFAULT_CURRENCY

    def for_cycle(self, cycle: BillingCycle) -> float:
        return self.annually if cycle is BillingCycle.ANNUALLY else self.monthly


class PlanLimits(MooseBaseModel):
    max_tickets: int = 0
    max_vehicles: int = 0
    max_disputes: int = 0
    support_level: str = "basic"


class SubscriptionPlan(MooseBaseModel):
    id: str
    name: str = ""
    description: str = ""
    price: PlanPrice = Field(default_factory=PlanPrice)
    features: tuple[str, ...] = Field(default_factory=tuple)
    limits: PlanLimits = Field(default_factory=PlanLimits)
    tier: str = "basic"
    is_active: bool = True
    is_popular: bool = False


class SubscriptionBilling(MooseBaseModel):
    next_billing_date: datetime | None = None
    last_billing_date: datetime | None = None
    amount: float = 0.0
    currency: str = DEFAULT_CURRENCY


class Subscription(MooseBaseModel):
    """A user's subscription to a plan."""

    id: str
    plan_id: EntityRef = None
    plan: SubscriptionPlan | None = None
    status: SubscriptionStatus = SubscriptionStatus.INACTIVE
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False
    cancelled_at: datetime | None = None
    trial_start: datetime | None = None
    trial_end: datetime | None = None
    payment_method_id: EntityRef = None
    billing: SubscriptionBilling | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_current(self) -> bool:
        return self.status.is_current


class BillingRecord(MooseBaseModel):
    """One invoice in a subscription's billing history."""

    id: str
    subscription_id: EntityRef = None
    type: str = "subscription"
    status: str = "pending"
    amount: float = 0.0
    total_amount: float = 0.0
    currency: str = DEFAULT_CURRENCY
    invoice_number: str = ""
    due_date: datetime | None = None
    paid_date: datetime | None = None
    failure_reason: str = ""
    created_at: datetime | None = None


class QuotaUsage(MooseBaseModel):
    used: int = 0
    limit: int = 0
    percentage: float = 0.0

    @property
    def exhausted(self) -> bool:
        return self.limit > 0 and self.used >= self.limit


class UsageQuota(MooseBaseModel):
    tickets: QuotaUsage = Field(default_factory=QuotaUsage)
    vehicles: QuotaUsage = Field(default_factory=QuotaUsage)
    disputes: QuotaUsage = Field(default_factory=QuotaUsage)
