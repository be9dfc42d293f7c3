"""Subscription store (plans, subscriptions, billing history, usage)."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pymoose._api import subscriptions as subscription_api
from pymoose.exceptions import MooseValidationError
from pymoose.models.requests import (
    CancelSubscriptionRequest,
    CreateSubscriptionRequest,
    UpdateSubscriptionRequest,
)
from pymoose.models.subscription import BillingRecord, Subscription, SubscriptionPlan, UsageQuota
from pymoose.result import Err, Ok, Result
from pymoose.state.events import (
    BillingHistoryLoaded,
    CurrentSubscriptionLoaded,
    PlanSelected,
    PlansLoaded,
    Reset,
    StoreEvent,
    SubscriptionCreated,
    SubscriptionLoaded,
    SubscriptionsLoaded,
    SubscriptionUpdated,
    UsageLoaded,
)
from pymoose.state.pagination import PageState, merge_page
from pymoose.state.store import EntityStore, find_by_id, prepend, replace_by_id, same_id

_logger = logging.getLogger(__name__)


class SubscriptionOp(StrEnum):
    FETCH_PLANS = "fetch_plans"
    FETCH_SUBSCRIPTIONS = "fetch_subscriptions"
    FETCH_CURRENT = "fetch_current_subscription"
    FETCH_SUBSCRIPTION = "fetch_subscription"
    CREATE = "create_subscription"
    UPDATE = "update_subscription"
    CANCEL = "cancel_subscription"
    REACTIVATE = "reactivate_subscription"
    FETCH_BILLING = "fetch_billing_history"
    FETCH_USAGE = "fetch_usage"


class SubscriptionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    plans: tuple[SubscriptionPlan, ...] = ()
    subscriptions: tuple[Subscription, ...] = ()
    current_subscription: Subscription | None = None
    selected_plan: SubscriptionPlan | None = None
    pagination: PageState = Field(default_factory=PageState)
    billing_history: tuple[BillingRecord, ...] = ()
    billing_pagination: PageState = Field(default_factory=PageState)
    usage: UsageQuota | None = None
    last_updated: datetime | None = None


# ------------------------------------------------------------------
# Reducer
# ------------------------------------------------------------------


def _pick_current(subscriptions: Sequence[Subscription], previous: Subscription | None) -> Subscription | None:
    """First active or trialing entry; otherwise the refreshed copy of *previous*."""
    candidate = next((s for s in subscriptions if s.is_current), None)
    if candidate is not None:
        return candidate
    if previous is None:
        return None
    return find_by_id(subscriptions, previous.id) or previous


def _replace_subscription(state: SubscriptionState, subscription: Subscription) -> SubscriptionState:
    update: dict[str, Any] = {"subscriptions": replace_by_id(state.subscriptions, subscription)}
    if same_id(state.current_subscription, subscription.id):
        update["current_subscription"] = subscription
    return state.model_copy(update=update)


def reduce_subscriptions(state: SubscriptionState, event: StoreEvent) -> SubscriptionState:
    """Pure reducer for :class:`SubscriptionState`."""
    if isinstance(event, Reset):
        return SubscriptionState()

    if isinstance(event, PlansLoaded):
        return state.model_copy(update={"plans": event.plans})
    if isinstance(event, SubscriptionsLoaded):
        subscriptions = merge_page(state.subscriptions, event.items, event.mode)
        return state.model_copy(
            update={
                "subscriptions": subscriptions,
                "current_subscription": _pick_current(subscriptions, state.current_subscription),
                "pagination": event.page_state,
                "last_updated": event.observed_at,
            }
        )
    if isinstance(event, CurrentSubscriptionLoaded):
        return state.model_copy(update={"current_subscription": event.subscription})
    if isinstance(event, SubscriptionLoaded):
        return state.model_copy(update={"current_subscription": event.subscription})
    if isinstance(event, SubscriptionCreated):
        return state.model_copy(
            update={
                "subscriptions": prepend(state.subscriptions, event.subscription),
                "current_subscription": event.subscription,
                "selected_plan": None,
            }
        )
    if isinstance(event, SubscriptionUpdated):
        return _replace_subscription(state, event.subscription)
    if isinstance(event, BillingHistoryLoaded):
        return state.model_copy(
            update={
                "billing_history": merge_page(state.billing_history, event.items, event.mode),
                "billing_pagination": event.page_state,
            }
        )
    if isinstance(event, UsageLoaded):
        return state.model_copy(update={"usage": event.usage})
    if isinstance(event, PlanSelected):
        return state.model_copy(update={"selected_plan": event.plan})

    return state


# ------------------------------------------------------------------
# Store
# ------------------------------------------------------------------


class SubscriptionStore(EntityStore[SubscriptionState]):
    """Cache of plans and the user's subscriptions.

    At most one subscription is current: a newly created one, the one
    returned by ``GET /subscriptions/current``, or after a collection
    refresh the first active or trialing entry.
    """

    name = "subscriptions"
    reducer = reduce_subscriptions

    def _initial_state(self) -> SubscriptionState:
        return SubscriptionState()

    @property
    def plans(self) -> tuple[SubscriptionPlan, ...]:
        return self._state.plans

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return self._state.subscriptions

    @property
    def current_subscription(self) -> Subscription | None:
        return self._state.current_subscription

    @property
    def selected_plan(self) -> SubscriptionPlan | None:
        return self._state.selected_plan

    @property
    def usage(self) -> UsageQuota | None:
        return self._state.usage

    @property
    def is_loading(self) -> bool:
        return self._tracker.is_loading(SubscriptionOp.FETCH_SUBSCRIPTIONS)

    @property
    def has_active_subscription(self) -> bool:
        current = self._state.current_subscription
        return current is not None and current.is_current

    @property
    def current_plan(self) -> SubscriptionPlan | None:
        """Plan of the current subscription, from the embedded copy or the plan catalog."""
        current = self._state.current_subscription
        if current is None:
            return None
        if current.plan is not None:
            return current.plan
        if current.plan_id is None:
            return None
        return find_by_id(self._state.plans, current.plan_id)

    def days_remaining(self, *, now: datetime | None = None) -> int | None:
        """Whole days left in the current billing period."""
        current = self._state.current_subscription
        if current is None or current.current_period_end is None:
            return None
        end = current.current_period_end
        if end.tzinfo is None:
            end = end.replace(tzinfo=UTC)
        return max(0, (end - (now or datetime.now(UTC))).days)

    def _require_current(self) -> Subscription | Err:
        current = self._state.current_subscription
        if current is None:
            exc = MooseValidationError("no current subscription", field="subscription_id")
            return Err(str(exc), error=exc)
        return current

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def fetch_plans(self) -> Result[tuple[SubscriptionPlan, ...]]:
        return await self._run(
            SubscriptionOp.FETCH_PLANS,
            lambda: subscription_api.fetch_plans(self._transport),
            lambda plans: PlansLoaded(plans=plans),
            discard_stale=True,
        )

    async def fetch_subscriptions(self, page: int = 1, page_size: int | None = None) -> Result[tuple[Subscription, ...]]:
        return await self._load_page(
            SubscriptionOp.FETCH_SUBSCRIPTIONS,
            page=page,
            limit=page_size or self._config.page_size,
            page_state=self._state.pagination,
            fetch=lambda p, n: subscription_api.fetch_subscriptions(self._transport, page=p, limit=n),
            to_event=lambda items, ps, mode: SubscriptionsLoaded(items=items, page_state=ps, mode=mode),
            collection=lambda: self._state.subscriptions,
        )

    async def fetch_current(self) -> Result[Subscription | None]:
        """Load the user's current subscription (``Ok(None)`` when they have none)."""
        return await self._run(
            SubscriptionOp.FETCH_CURRENT,
            lambda: subscription_api.fetch_current_subscription(self._transport),
            lambda subscription: CurrentSubscriptionLoaded(subscription=subscription),
            discard_stale=True,
        )

    async def fetch_subscription(self, subscription_id: str) -> Result[Subscription]:
        if (bad := self._check_id(subscription_id, "subscription_id")) is not None:
            return bad
        return await self._run(
            SubscriptionOp.FETCH_SUBSCRIPTION,
            lambda: subscription_api.fetch_subscription(self._transport, subscription_id),
            lambda subscription: SubscriptionLoaded(subscription=subscription),
            discard_stale=True,
        )

    async def fetch_billing_history(self, page: int = 1, page_size: int | None = None) -> Result[tuple[BillingRecord, ...]]:
        """Invoices of the current subscription."""
        current = self._require_current()
        if isinstance(current, Err):
            return current
        return await self._load_page(
            SubscriptionOp.FETCH_BILLING,
            page=page,
            limit=page_size or self._config.page_size,
            page_state=self._state.billing_pagination,
            fetch=lambda p, n: subscription_api.fetch_billing_history(self._transport, current.id, page=p, limit=n),
            to_event=lambda items, ps, mode: BillingHistoryLoaded(items=items, page_state=ps, mode=mode),
            collection=lambda: self._state.billing_history,
        )

    async def fetch_usage(self) -> Result[UsageQuota]:
        return await self._run(
            SubscriptionOp.FETCH_USAGE,
            lambda: subscription_api.fetch_usage(self._transport),
            lambda usage: UsageLoaded(usage=usage),
            discard_stale=True,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, payload: CreateSubscriptionRequest | Mapping[str, Any]) -> Result[Subscription]:
        request = self._validated(CreateSubscriptionRequest, payload)
        if isinstance(request, Err):
            return request
        return await self._run(
            SubscriptionOp.CREATE,
            lambda: subscription_api.create_subscription(self._transport, request),
            lambda subscription: SubscriptionCreated(subscription=subscription),
        )

    async def update(
        self,
        subscription_id: str,
        patch: UpdateSubscriptionRequest | Mapping[str, Any],
    ) -> Result[Subscription]:
        if (bad := self._check_id(subscription_id, "subscription_id")) is not None:
            return bad
        request = self._validated(UpdateSubscriptionRequest, patch)
        if isinstance(request, Err):
            return request
        return await self._run(
            SubscriptionOp.UPDATE,
            lambda: subscription_api.update_subscription(self._transport, subscription_id, request),
            lambda subscription: SubscriptionUpdated(subscription=subscription),
        )

    async def cancel(
        self,
        subscription_id: str,
        *,
        cancel_at_period_end: bool = True,
        reason: str | None = None,
    ) -> Result[Subscription]:
        """Cancel now, or at the end of the paid period (the default)."""
        if (bad := self._check_id(subscription_id, "subscription_id")) is not None:
            return bad
        request = self._validated(
            CancelSubscriptionRequest,
            {"cancel_at_period_end": cancel_at_period_end, "reason": reason},
        )
        if isinstance(request, Err):
            return request
        return await self._run(
            SubscriptionOp.CANCEL,
            lambda: subscription_api.cancel_subscription(self._transport, subscription_id, request),
            lambda subscription: SubscriptionUpdated(subscription=subscription),
        )

    async def reactivate(self, subscription_id: str) -> Result[Subscription]:
        if (bad := self._check_id(subscription_id, "subscription_id")) is not None:
            return bad
        return await self._run(
            SubscriptionOp.REACTIVATE,
            lambda: subscription_api.reactivate_subscription(self._transport, subscription_id),
            lambda subscription: SubscriptionUpdated(subscription=subscription),
        )

    async def update_payment_method(self, payment_method_id: str) -> Result[Subscription]:
        """Bill the current subscription to another stored payment method."""
        current = self._require_current()
        if isinstance(current, Err):
            return current
        if (bad := self._check_id(payment_method_id, "payment_method_id")) is not None:
            return bad
        return await self.update(current.id, {"payment_method_id": payment_method_id})

    # ------------------------------------------------------------------
    # Local commands
    # ------------------------------------------------------------------

    def select_plan(self, plan: SubscriptionPlan | str | None) -> Result[SubscriptionPlan | None]:
        """Remember the plan the user is about to subscribe to (by model or id)."""
        if isinstance(plan, str):
            found = find_by_id(self._state.plans, plan)
            if found is None:
                exc = MooseValidationError(f"unknown plan {plan!r}", field="plan_id")
                return Err(str(exc), error=exc)
            plan = found
        if plan == self._state.selected_plan:
            return Ok(plan)
        _logger.debug("Selected plan %s", plan.id if plan is not None else None)
        self.apply(PlanSelected(plan=plan))
        return Ok(plan)


__all__ = [
    "SubscriptionOp",
    "SubscriptionState",
    "SubscriptionStore",
    "reduce_subscriptions",
]
