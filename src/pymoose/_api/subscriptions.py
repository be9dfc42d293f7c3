"""Subscription endpoints.

Endpoints:
  - GET /subscriptions/plans
  - GET/POST /subscriptions
  - GET /subscriptions/current
  - GET/PUT /subscriptions/{id}
  - POST /subscriptions/{id}/cancel
  - POST /subscriptions/{id}/reactivate
  - GET /subscriptions/{id}/billing
  - GET /subscriptions/usage
"""

from __future__ import annotations

from pymoose._api._common import Page, call_one, call_optional, get_list, get_page
from pymoose._constants import (
    SUBSCRIPTION_CURRENT,
    SUBSCRIPTION_PLANS,
    SUBSCRIPTION_USAGE,
    SUBSCRIPTIONS,
    detail_path,
)
from pymoose._transport import Transport
from pymoose.models.requests import (
    CancelSubscriptionRequest,
    CreateSubscriptionRequest,
    UpdateSubscriptionRequest,
)
from pymoose.models.subscription import BillingRecord, Subscription, SubscriptionPlan, UsageQuota


async def fetch_plans(transport: Transport) -> tuple[SubscriptionPlan, ...]:
    return await get_list(transport, SUBSCRIPTION_PLANS, SubscriptionPlan, collection_key="plans")


async def fetch_subscriptions(transport: Transport, *, page: int, limit: int) -> Page[Subscription]:
    return await get_page(
        transport,
        SUBSCRIPTIONS,
        Subscription,
        page=page,
        limit=limit,
        collection_key="subscriptions",
    )


async def fetch_current_subscription(transport: Transport) -> Subscription | None:
    """Return the user's current subscription, or ``None`` when they have none."""
    return await call_optional(transport, "GET", SUBSCRIPTION_CURRENT, Subscription)


async def fetch_subscription(transport: Transport, subscription_id: str) -> Subscription:
    return await call_one(
        transport,
        "GET",
        detail_path(SUBSCRIPTIONS, subscription_id),
        Subscription,
        entity_key="subscription",
    )


async def create_subscription(transport: Transport, request: CreateSubscriptionRequest) -> Subscription:
    return await call_one(
        transport,
        "POST",
        SUBSCRIPTIONS,
        Subscription,
        body=request.to_payload(),
        entity_key="subscription",
    )


async def update_subscription(
    transport: Transport,
    subscription_id: str,
    request: UpdateSubscriptionRequest,
) -> Subscription:
    return await call_one(
        transport,
        "PUT",
        detail_path(SUBSCRIPTIONS, subscription_id),
        Subscription,
        body=request.to_payload(),
        entity_key="subscription",
    )


async def cancel_subscription(
    transport: Transport,
    subscription_id: str,
    request: CancelSubscriptionRequest,
) -> Subscription:
    return await call_one(
        transport,
        "POST",
        detail_path(SUBSCRIPTIONS, subscription_id, "cancel"),
        Subscription,
        body=request.to_payload(),
        entity_key="subscription",
    )


async def reactivate_subscription(transport: Transport, subscription_id: str) -> Subscription:
    return await call_one(
        transport,
        "POST",
        detail_path(SUBSCRIPTIONS, subscription_id, "reactivate"),
        Subscription,
        entity_key="subscription",
    )


async def fetch_billing_history(
    transport: Transport,
    subscription_id: str,
    *,
    page: int,
    limit: int,
) -> Page[BillingRecord]:
    return await get_page(
        transport,
        detail_path(SUBSCRIPTIONS, subscription_id, "billing"),
        BillingRecord,
        page=page,
        limit=limit,
        collection_key="billingHistory",
    )


async def fetch_usage(transport: Transport) -> UsageQuota:
    return await call_one(transport, "GET", SUBSCRIPTION_USAGE, UsageQuota)
