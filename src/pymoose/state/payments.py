"""Payment store (payments and stored payment methods).

The default-method flag is owned by the coordinator: a create, update or
set-default that claims ``is_default`` is cached with the flag cleared,
and :class:`~pymoose.state.coordinator.Coordinator` then applies
``DefaultPaymentMethodSet`` in the same synchronous step. Readers never
see two defaults at once.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pymoose._api import payments as payment_api
from pymoose._api import tickets as ticket_api
from pymoose.models.payment import Payment, PaymentMethod, PaymentStatus
from pymoose.models.requests import (
    CreatePaymentMethodRequest,
    PaymentRequest,
    RefundRequest,
    UpdatePaymentMethodRequest,
)
from pymoose.result import Err, Result
from pymoose.state.events import (
    CurrentCleared,
    DefaultPaymentMethodConfirmed,
    DefaultPaymentMethodSet,
    FiltersChanged,
    PaymentLoaded,
    PaymentMethodCreated,
    PaymentMethodDeleted,
    PaymentMethodsLoaded,
    PaymentMethodUpdated,
    PaymentRecorded,
    PaymentsLoaded,
    PaymentUpdated,
    Reset,
    StoreEvent,
)
from pymoose.state.filters import PaymentFilters
from pymoose.state.pagination import PageState, merge_page
from pymoose.state.store import EntityStore, find_by_id, prepend, remove_ids, replace_by_id, same_id


class PaymentOp(StrEnum):
    FETCH_METHODS = "fetch_payment_methods"
    CREATE_METHOD = "create_payment_method"
    UPDATE_METHOD = "update_payment_method"
    DELETE_METHOD = "delete_payment_method"
    SET_DEFAULT = "set_default_payment_method"
    PAY_TICKET = "pay_ticket"
    FETCH_PAYMENTS = "fetch_payments"
    FETCH_PAYMENT = "fetch_payment"
    REFUND = "refund_payment"


class PaymentState(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_methods: tuple[PaymentMethod, ...] = ()
    default_payment_method: PaymentMethod | None = None
    method_pagination: PageState = Field(default_factory=PageState)
    payments: tuple[Payment, ...] = ()
    current_payment: Payment | None = None
    pagination: PageState = Field(default_factory=PageState)
    filters: PaymentFilters = Field(default_factory=PaymentFilters)
    last_updated: datetime | None = None


class PaymentAnalytics(BaseModel):
    """Spending summary over the cached payments."""

    model_config = ConfigDict(frozen=True)

    total_paid: float = 0.0
    total_refunded: float = 0.0
    total_pending: float = 0.0
    completed_count: int = 0
    average_ticket_cost: float = 0.0
    monthly_spending: float = 0.0
    yearly_spending: float = 0.0


def compute_analytics(payments: Sequence[Payment], *, now: datetime | None = None) -> PaymentAnalytics:
    """Totals by status plus completed spending for the month and year of *now*."""
    now = now or datetime.now(UTC)
    completed = [p for p in payments if p.status is PaymentStatus.COMPLETED]
    total_paid = sum(p.amount for p in completed)

    def _in(year: int, month: int | None, payment: Payment) -> bool:
        when = payment.confirmed_at
        if when is None:
            return False
        return when.year == year and (month is None or when.month == month)

    return PaymentAnalytics(
        total_paid=round(total_paid, 2),
        total_refunded=round(sum(p.amount for p in payments if p.status is PaymentStatus.REFUNDED), 2),
        total_pending=round(sum(p.amount for p in payments if p.status is PaymentStatus.PENDING), 2),
        completed_count=len(completed),
        average_ticket_cost=round(total_paid / len(completed), 2) if completed else 0.0,
        monthly_spending=round(sum(p.amount for p in completed if _in(now.year, now.month, p)), 2),
        yearly_spending=round(sum(p.amount for p in completed if _in(now.year, None, p)), 2),
    )


# ------------------------------------------------------------------
# Reducer
# ------------------------------------------------------------------


def _single_default(methods: Sequence[PaymentMethod]) -> tuple[tuple[PaymentMethod, ...], PaymentMethod | None]:
    """Keep the first ``is_default`` entry and clear the flag on any later one."""
    chosen: PaymentMethod | None = None
    result: list[PaymentMethod] = []
    for method in methods:
        if method.is_default:
            if chosen is None:
                chosen = method
            else:
                method = method.model_copy(update={"is_default": False})
        result.append(method)
    return tuple(result), chosen


def _without_default_claim(state: PaymentState, method: PaymentMethod) -> PaymentMethod:
    """Cache *method* without a default claim the coordinator has not applied yet."""
    if method.is_default and not same_id(state.default_payment_method, method.id):
        return method.model_copy(update={"is_default": False})
    return method


def _set_default(state: PaymentState, method_id: str) -> PaymentState:
    if find_by_id(state.payment_methods, method_id) is None:
        return state
    methods = tuple(
        m if m.is_default == (m.id == method_id) else m.model_copy(update={"is_default": m.id == method_id})
        for m in state.payment_methods
    )
    return state.model_copy(
        update={"payment_methods": methods, "default_payment_method": find_by_id(methods, method_id)}
    )


def reduce_payments(state: PaymentState, event: StoreEvent) -> PaymentState:
    """Pure reducer for :class:`PaymentState`."""
    if isinstance(event, Reset):
        return PaymentState()

    if isinstance(event, PaymentMethodsLoaded):
        methods, default = _single_default(merge_page(state.payment_methods, event.items, event.mode))
        return state.model_copy(
            update={
                "payment_methods": methods,
                "default_payment_method": default,
                "method_pagination": event.page_state,
            }
        )
    if isinstance(event, PaymentMethodCreated):
        return state.model_copy(
            update={"payment_methods": prepend(state.payment_methods, _without_default_claim(state, event.method))}
        )
    if isinstance(event, PaymentMethodUpdated):
        method = _without_default_claim(state, event.method)
        update: dict[str, Any] = {"payment_methods": replace_by_id(state.payment_methods, method)}
        if same_id(state.default_payment_method, method.id):
            update["default_payment_method"] = method if method.is_default else None
        return state.model_copy(update=update)
    if isinstance(event, PaymentMethodDeleted):
        update = {"payment_methods": remove_ids(state.payment_methods, (event.method_id,))}
        if same_id(state.default_payment_method, event.method_id):
            update["default_payment_method"] = None
        return state.model_copy(update=update)
    if isinstance(event, DefaultPaymentMethodSet):
        return _set_default(state, event.method.id)
    if isinstance(event, DefaultPaymentMethodConfirmed):
        return state

    if isinstance(event, PaymentsLoaded):
        return state.model_copy(
            update={
                "payments": merge_page(state.payments, event.items, event.mode),
                "pagination": event.page_state,
                "last_updated": event.observed_at,
            }
        )
    if isinstance(event, PaymentLoaded):
        return state.model_copy(update={"current_payment": event.payment})
    if isinstance(event, PaymentRecorded):
        pagination = state.pagination.model_copy(update={"total": state.pagination.total + 1})
        return state.model_copy(
            update={
                "payments": prepend(state.payments, event.payment),
                "current_payment": event.payment,
                "pagination": pagination,
            }
        )
    if isinstance(event, PaymentUpdated):
        update = {"payments": replace_by_id(state.payments, event.payment)}
        if same_id(state.current_payment, event.payment.id):
            update["current_payment"] = event.payment
        return state.model_copy(update=update)

    if isinstance(event, FiltersChanged):
        return state.model_copy(update={"filters": event.filters})
    if isinstance(event, CurrentCleared):
        return state.model_copy(update={"current_payment": None})

    return state


# ------------------------------------------------------------------
# Store
# ------------------------------------------------------------------


class PaymentStore(EntityStore[PaymentState]):
    """Cache of the user's payments and stored payment methods."""

    name = "payments"
    reducer = reduce_payments

    def _initial_state(self) -> PaymentState:
        return PaymentState()

    @property
    def payment_methods(self) -> tuple[PaymentMethod, ...]:
        return self._state.payment_methods

    @property
    def default_payment_method(self) -> PaymentMethod | None:
        return self._state.default_payment_method

    @property
    def payments(self) -> tuple[Payment, ...]:
        return self._state.payments

    @property
    def current_payment(self) -> Payment | None:
        return self._state.current_payment

    @property
    def filtered_payments(self) -> tuple[Payment, ...]:
        return self._projected("payments", self._state.payments, self._state.filters)

    @property
    def is_loading(self) -> bool:
        return self._tracker.is_loading(PaymentOp.FETCH_PAYMENTS)

    @property
    def is_loading_more(self) -> bool:
        return self._tracker.is_loading_more(PaymentOp.FETCH_PAYMENTS)

    @property
    def is_processing(self) -> bool:
        """A charge against a ticket is in flight."""
        return self._tracker.is_busy(PaymentOp.PAY_TICKET)

    def analytics(self, *, now: datetime | None = None) -> PaymentAnalytics:
        return compute_analytics(self._state.payments, now=now)

    def payments_for_ticket(self, ticket_id: str) -> tuple[Payment, ...]:
        return tuple(p for p in self._state.payments if p.ticket_id == ticket_id)

    # ------------------------------------------------------------------
    # Payment methods
    # ------------------------------------------------------------------

    async def fetch_payment_methods(self, page: int = 1, page_size: int | None = None) -> Result[tuple[PaymentMethod, ...]]:
        return await self._load_page(
            PaymentOp.FETCH_METHODS,
            page=page,
            limit=page_size or self._config.page_size,
            page_state=self._state.method_pagination,
            fetch=lambda p, n: payment_api.fetch_payment_methods(self._transport, page=p, limit=n),
            to_event=lambda items, ps, mode: PaymentMethodsLoaded(items=items, page_state=ps, mode=mode),
            collection=lambda: self._state.payment_methods,
        )

    async def create_payment_method(
        self,
        payload: CreatePaymentMethodRequest | Mapping[str, Any],
    ) -> Result[PaymentMethod]:
        """Store a new card. The raw card number never leaves the request model."""
        request = self._validated(CreatePaymentMethodRequest, payload)
        if isinstance(request, Err):
            return request
        return await self._run(
            PaymentOp.CREATE_METHOD,
            lambda: payment_api.create_payment_method(self._transport, request),
            lambda method: PaymentMethodCreated(method=method),
        )

    async def update_payment_method(
        self,
        method_id: str,
        patch: UpdatePaymentMethodRequest | Mapping[str, Any],
    ) -> Result[PaymentMethod]:
        if (bad := self._check_id(method_id, "method_id")) is not None:
            return bad
        request = self._validated(UpdatePaymentMethodRequest, patch)
        if isinstance(request, Err):
            return request
        return await self._run(
            PaymentOp.UPDATE_METHOD,
            lambda: payment_api.update_payment_method(self._transport, method_id, request),
            lambda method: PaymentMethodUpdated(method=method),
        )

    async def delete_payment_method(self, method_id: str) -> Result[str]:
        """Remove a stored method. Deleting the default leaves no default."""
        if (bad := self._check_id(method_id, "method_id")) is not None:
            return bad

        async def _call() -> str:
            await payment_api.delete_payment_method(self._transport, method_id)
            return method_id

        return await self._run(PaymentOp.DELETE_METHOD, _call, lambda deleted: PaymentMethodDeleted(method_id=deleted))

    async def set_default_payment_method(self, method_id: str) -> Result[PaymentMethod]:
        if (bad := self._check_id(method_id, "method_id")) is not None:
            return bad
        return await self._run(
            PaymentOp.SET_DEFAULT,
            lambda: payment_api.set_default_payment_method(self._transport, method_id),
            lambda method: DefaultPaymentMethodConfirmed(method=method),
        )

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def pay_ticket(self, payload: PaymentRequest | Mapping[str, Any]) -> Result[Payment]:
        """Charge a ticket.

        On success the confirmed payment is prepended and becomes the
        current payment; the coordinator marks the ticket paid.
        """
        request = self._validated(PaymentRequest, payload)
        if isinstance(request, Err):
            return request

        def _recorded(payment: Payment) -> PaymentRecorded:
            missing = {"ticket_id", "amount", "currency"} - payment.model_fields_set
            if not payment.ticket_id:
                missing.add("ticket_id")
            if missing:
                payment = payment.model_copy(update={name: getattr(request, name) for name in missing})
            return PaymentRecorded(payment=payment)

        return await self._run(
            PaymentOp.PAY_TICKET,
            lambda: ticket_api.pay_ticket(self._transport, request),
            _recorded,
        )

    async def fetch_payments(
        self,
        page: int = 1,
        page_size: int | None = None,
        filters: PaymentFilters | None = None,
    ) -> Result[tuple[Payment, ...]]:
        query = (filters or self._state.filters).to_query()
        return await self._load_page(
            PaymentOp.FETCH_PAYMENTS,
            page=page,
            limit=page_size or self._config.page_size,
            page_state=self._state.pagination,
            fetch=lambda p, n: payment_api.fetch_payments(self._transport, page=p, limit=n, filters=query),
            to_event=lambda items, ps, mode: PaymentsLoaded(items=items, page_state=ps, mode=mode),
            collection=lambda: self._state.payments,
        )

    async def load_more_payments(self) -> Result[tuple[Payment, ...]]:
        return await self.fetch_payments(page=self._state.pagination.next_page, page_size=self._state.pagination.limit)

    async def fetch_payment(self, payment_id: str) -> Result[Payment]:
        if (bad := self._check_id(payment_id, "payment_id")) is not None:
            return bad
        return await self._run(
            PaymentOp.FETCH_PAYMENT,
            lambda: payment_api.fetch_payment(self._transport, payment_id),
            lambda payment: PaymentLoaded(payment=payment),
            discard_stale=True,
        )

    async def refund_payment(self, payment_id: str, reason: str | None = None) -> Result[Payment]:
        if (bad := self._check_id(payment_id, "payment_id")) is not None:
            return bad
        request = self._validated(RefundRequest, {"reason": reason})
        if isinstance(request, Err):
            return request
        return await self._run(
            PaymentOp.REFUND,
            lambda: payment_api.refund_payment(self._transport, payment_id, request),
            lambda payment: PaymentUpdated(payment=payment),
        )

    # ------------------------------------------------------------------
    # Local commands
    # ------------------------------------------------------------------

    def set_filter(self, key: str, value: Any) -> Result[PaymentFilters]:
        return self._change_filters("payments", self._state.filters, key, value)

    def clear_filters(self) -> Result[PaymentFilters]:
        return self._change_filters("payments", self._state.filters)

    def clear_current_payment(self) -> None:
        self.apply(CurrentCleared(slot="payment"))


__all__ = [
    "PaymentAnalytics",
    "PaymentOp",
    "PaymentState",
    "PaymentStore",
    "compute_analytics",
    "reduce_payments",
]
