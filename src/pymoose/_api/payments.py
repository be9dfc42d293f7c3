"""Payment and payment-method endpoints.

Endpoints:
  - GET/POST /payment-methods
  - PUT/DELETE /payment-methods/{id}
  - POST /payment-methods/{id}/default
  - GET /payments
  - GET /payments/{id}
  - POST /payments/{id}/refund
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pymoose._api._common import Page, call_no_content, call_one, get_page
from pymoose._constants import PAYMENT_METHODS, PAYMENTS, detail_path
from pymoose._transport import Transport
from pymoose.models.payment import Payment, PaymentMethod
from pymoose.models.requests import CreatePaymentMethodRequest, RefundRequest, UpdatePaymentMethodRequest


async def fetch_payment_methods(transport: Transport, *, page: int, limit: int) -> Page[PaymentMethod]:
    return await get_page(
        transport,
        PAYMENT_METHODS,
        PaymentMethod,
        page=page,
        limit=limit,
        collection_key="paymentMethods",
    )


async def create_payment_method(transport: Transport, request: CreatePaymentMethodRequest) -> PaymentMethod:
    return await call_one(
        transport,
        "POST",
        PAYMENT_METHODS,
        PaymentMethod,
        body=request.to_payload(),
        entity_key="paymentMethod",
    )


async def update_payment_method(
    transport: Transport,
    method_id: str,
    request: UpdatePaymentMethodRequest,
) -> PaymentMethod:
    return await call_one(
        transport,
        "PUT",
        detail_path(PAYMENT_METHODS, method_id),
        PaymentMethod,
        body=request.to_payload(),
        entity_key="paymentMethod",
    )


async def delete_payment_method(transport: Transport, method_id: str) -> None:
    await call_no_content(transport, "DELETE", detail_path(PAYMENT_METHODS, method_id))


async def set_default_payment_method(transport: Transport, method_id: str) -> PaymentMethod:
    return await call_one(
        transport,
        "POST",
        detail_path(PAYMENT_METHODS, method_id, "default"),
        PaymentMethod,
        entity_key="paymentMethod",
    )


async def fetch_payments(
    transport: Transport,
    *,
    page: int,
    limit: int,
    filters: Mapping[str, Any] | None = None,
) -> Page[Payment]:
    return await get_page(transport, PAYMENTS, Payment, page=page, limit=limit, filters=filters, collection_key="payments")


async def fetch_payment(transport: Transport, payment_id: str) -> Payment:
    return await call_one(transport, "GET", detail_path(PAYMENTS, payment_id), Payment, entity_key="payment")


async def refund_payment(transport: Transport, payment_id: str, request: RefundRequest) -> Payment:
    return await call_one(
        transport,
        "POST",
        detail_path(PAYMENTS, payment_id, "refund"),
        Payment,
        body=request.to_payload(),
        entity_key="payment",
    )
