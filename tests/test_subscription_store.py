from __future__ import annotations

# pylint: disable=redefined-outer-name

from datetime import UTC, datetime

import pytest
from conftest import FakeTransport, ok, subscription_json

from pymoose.config import MooseConfig
from pymoose.exceptions import MooseConflictError, MooseValidationError
from pymoose.models.subscription import BillingCycle, SubscriptionStatus
from pymoose.result import Err, Ok
from pymoose.state.subscriptions import SubscriptionStore

PLANS = [
    {"_id": "plan-basic", "name": "Basic", "price": {"monthly": 4.99, "annually": 49.0}, "limits": {"maxTickets": 10}},
    {"_id": "plan-pro", "name": "Pro", "price": {"monthly": 9.99, "annually": 99.0}, "isPopular": True},
]


@pytest.fixture
def store(transport: FakeTransport, config: MooseConfig) -> SubscriptionStore:
    return SubscriptionStore(transport, config=config)


async def _with_plans(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions/plans", ok({"plans": PLANS}))
    assert (await store.fetch_plans()).ok


@pytest.mark.asyncio
async def test_fetch_plans(store: SubscriptionStore, transport: FakeTransport) -> None:
    await _with_plans(store, transport)

    assert [p.id for p in store.plans] == ["plan-basic", "plan-pro"]
    assert store.plans[0].limits.max_tickets == 10
    assert store.plans[1].price.for_cycle(BillingCycle.ANNUALLY) == 99.0


@pytest.mark.asyncio
async def test_collection_refresh_picks_active_subscription_as_current(
    store: SubscriptionStore, transport: FakeTransport
) -> None:
    transport.on(
        "GET",
        "/subscriptions",
        ok({"subscriptions": [subscription_json("s-old", status="cancelled"), subscription_json("s1")]}),
    )

    await store.fetch_subscriptions()

    assert store.current_subscription is not None
    assert store.current_subscription.id == "s1"
    assert store.has_active_subscription


@pytest.mark.asyncio
async def test_no_current_subscription_is_ok_none(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions/current", ok(subscription_json("s1")))
    await store.fetch_current()
    transport.on("GET", "/subscriptions/current", ok(None))

    result = await store.fetch_current()

    assert result == Ok(None)
    assert store.current_subscription is None
    assert not store.has_active_subscription


@pytest.mark.asyncio
async def test_fetch_subscription_fills_current_only(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions", ok({"subscriptions": [subscription_json("s1")]}))
    await store.fetch_subscriptions()
    before = store.subscriptions
    transport.on("GET", "/subscriptions/s1", ok({"subscription": subscription_json("s1", cancelAtPeriodEnd=True)}))

    result = await store.fetch_subscription("s1")

    assert result.ok
    assert store.current_subscription is not None
    assert store.current_subscription.cancel_at_period_end
    assert store.subscriptions == before


@pytest.mark.asyncio
async def test_create_becomes_current_and_clears_selection(store: SubscriptionStore, transport: FakeTransport) -> None:
    await _with_plans(store, transport)
    store.select_plan("plan-pro")
    transport.on("POST", "/subscriptions", ok({"subscription": subscription_json("s2", planId="plan-pro")}))

    result = await store.create({"plan_id": "plan-pro", "billing_cycle": "annual", "promo_code": "spring"})

    assert result.ok
    assert store.current_subscription is not None
    assert store.current_subscription.id == "s2"
    assert store.selected_plan is None
    assert store.current_plan is not None
    assert store.current_plan.name == "Pro"
    assert transport.calls[-1].json == {"planId": "plan-pro", "billingCycle": "annually", "promoCode": "SPRING"}


@pytest.mark.asyncio
async def test_existing_subscription_conflict_surfaces_server_message(
    store: SubscriptionStore, transport: FakeTransport
) -> None:
    transport.on(
        "POST",
        "/subscriptions",
        MooseConflictError("User already has an active subscription", status_code=409, endpoint="/subscriptions"),
    )

    result = await store.create({"plan_id": "plan-basic"})

    assert isinstance(result, Err)
    assert store.error == "User already has an active subscription"
    assert store.current_subscription is None


@pytest.mark.asyncio
async def test_cancel_at_period_end_updates_current(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions/current", ok(subscription_json("s1")))
    await store.fetch_current()
    transport.on("POST", "/subscriptions/s1/cancel", ok({"subscription": subscription_json("s1", cancelAtPeriodEnd=True)}))

    result = await store.cancel("s1", reason="Moving abroad")

    assert result.ok
    assert store.current_subscription is not None
    assert store.current_subscription.cancel_at_period_end
    assert store.current_subscription.status is SubscriptionStatus.ACTIVE
    assert transport.calls[-1].json == {"cancelAtPeriodEnd": True, "reason": "Moving abroad"}


@pytest.mark.asyncio
async def test_reactivate(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions/current", ok(subscription_json("s1", cancelAtPeriodEnd=True)))
    await store.fetch_current()
    transport.on("POST", "/subscriptions/s1/reactivate", ok(subscription_json("s1")))

    await store.reactivate("s1")

    assert store.current_subscription is not None
    assert not store.current_subscription.cancel_at_period_end


@pytest.mark.asyncio
async def test_update_payment_method_targets_current(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions/current", ok(subscription_json("s1")))
    await store.fetch_current()
    transport.on("PUT", "/subscriptions/s1", ok(subscription_json("s1", paymentMethodId="pm-2")))

    await store.update_payment_method("pm-2")

    assert store.current_subscription is not None
    assert store.current_subscription.payment_method_id == "pm-2"
    assert transport.calls[-1].json == {"paymentMethodId": "pm-2"}


@pytest.mark.asyncio
async def test_billing_history_requires_current_subscription(store: SubscriptionStore, transport: FakeTransport) -> None:
    result = await store.fetch_billing_history()

    assert isinstance(result, Err)
    assert isinstance(result.error, MooseValidationError)
    assert transport.calls == []


@pytest.mark.asyncio
async def test_billing_history_pages(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions/current", ok(subscription_json("s1")))
    await store.fetch_current()
    transport.on(
        "GET",
        "/subscriptions/s1/billing",
        ok({"billingHistory": [{"_id": "inv-1", "amount": 4.99, "status": "paid"}]}, pagination={"page": 1, "totalPages": 1}),
    )

    await store.fetch_billing_history()

    assert [r.id for r in store.state.billing_history] == ["inv-1"]


@pytest.mark.asyncio
async def test_usage(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions/usage", ok({"tickets": {"used": 10, "limit": 10}, "vehicles": {"used": 1, "limit": 3}}))

    await store.fetch_usage()

    assert store.usage is not None
    assert store.usage.tickets.exhausted
    assert not store.usage.vehicles.exhausted


def test_days_remaining(store: SubscriptionStore) -> None:
    assert store.days_remaining() is None


@pytest.mark.asyncio
async def test_days_remaining_in_period(store: SubscriptionStore, transport: FakeTransport) -> None:
    transport.on("GET", "/subscriptions/current", ok(subscription_json("s1")))
    await store.fetch_current()

    assert store.days_remaining(now=datetime(2026, 3, 21, tzinfo=UTC)) == 11
    assert store.days_remaining(now=datetime(2026, 5, 1, tzinfo=UTC)) == 0


@pytest.mark.asyncio
async def test_select_plan(store: SubscriptionStore, transport: FakeTransport) -> None:
    await _with_plans(store, transport)
    notified: list[object] = []
    store.subscribe(notified.append)

    assert isinstance(store.select_plan("plan-gold"), Err)
    store.select_plan("plan-basic")
    store.select_plan(store.plans[0])

    assert store.selected_plan is not None
    assert store.selected_plan.id == "plan-basic"
    assert len(notified) == 1

    store.select_plan(None)
    assert store.selected_plan is None
