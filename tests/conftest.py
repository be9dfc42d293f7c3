from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pymoose.config import MooseConfig
from pymoose.exceptions import MooseNotFoundError

# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Call:
    method: str
    path: str
    params: dict[str, Any]
    json: dict[str, Any] | None


@dataclass
class FakeTransport:
    """In-process stand-in for :class:`pymoose._transport.HttpTransport`.

    A route answers with a dict (the envelope), an exception instance to
    raise, a list consumed one entry per call, or a (sync or async)
    callable taking ``(params, json)``.
    """

    routes: dict[tuple[str, str], Any] = field(default_factory=dict)
    calls: list[Call] = field(default_factory=list)

    def on(self, method: str, path: str, response: Any) -> None:
        self.routes[(method, path)] = response

    def count(self, method: str, path: str) -> int:
        return sum(1 for c in self.calls if c.method == method and c.path == path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        self.calls.append(Call(method, path, dict(params or {}), dict(json) if json is not None else None))
        response = self.routes.get((method, path))
        if isinstance(response, list):
            response = response.pop(0)
        if callable(response) and not isinstance(response, BaseException):
            response = response(dict(params or {}), dict(json) if json is not None else None)
            if inspect.isawaitable(response):
                response = await response
        if response is None:
            raise MooseNotFoundError(f"no route for {method} {path}", status_code=404, endpoint=path)
        if isinstance(response, BaseException):
            raise response
        return response


def ok(data: Any = None, **extra: Any) -> dict[str, Any]:
    return {"success": True, "data": data, **extra}


def fail(message: str) -> dict[str, Any]:
    return {"success": False, "message": message}


# ---------------------------------------------------------------------------
# Raw server payloads
# ---------------------------------------------------------------------------


def ticket_json(ticket_id: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "_id": ticket_id,
        "ticketNumber": f"TN-{ticket_id}",
        "licensePlate": "ABC123",
        "amount": 75.0,
        "currency": "CAD",
        "status": "outstanding",
        "violationDate": "2026-03-01T10:00:00Z",
        "dueDate": "2026-04-01T10:00:00Z",
        "location": {"address": {"city": "Montreal"}},
        "paymentHistory": [],
    }
    payload.update(overrides)
    return payload


def dispute_json(dispute_id: str, ticket_id: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "_id": dispute_id,
        "disputeNumber": f"DSP-{dispute_id}",
        "ticketId": ticket_id,
        "reason": "Signage was missing",
        "status": "submitted",
        "submittedAt": "2026-03-05T09:00:00Z",
    }
    payload.update(overrides)
    return payload


def payment_json(payment_id: str, ticket_id: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "_id": payment_id,
        "ticketId": ticket_id,
        "paymentMethodId": "pm-1",
        "amount": 75.0,
        "currency": "CAD",
        "status": "completed",
        "transactionId": f"txn-{payment_id}",
        "processedAt": "2026-03-10T12:00:00Z",
    }
    payload.update(overrides)
    return payload


def method_json(method_id: str, *, is_default: bool = False, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "_id": method_id,
        "type": "card",
        "cardBrand": "visa",
        "cardLast4": "4242",
        "cardExpiry": "12/29",
        "isDefault": is_default,
    }
    payload.update(overrides)
    return payload


def subscription_json(subscription_id: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "_id": subscription_id,
        "planId": "plan-basic",
        "status": "active",
        "billingCycle": "monthly",
        "currentPeriodStart": "2026-03-01T00:00:00Z",
        "currentPeriodEnd": "2026-04-01T00:00:00Z",
        "cancelAtPeriodEnd": False,
    }
    payload.update(overrides)
    return payload


def infraction_json(infraction_id: str, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "_id": infraction_id,
        "code": f"P-{infraction_id}",
        "type": {"en": "Parking", "fr": "Stationnement"},
        "violation": {"en": "Expired meter", "fr": "Parcomètre expiré"},
        "category": "stationary",
        "baseFine": 52.0,
        "points": 0,
        "isActive": True,
        "municipality": {"_id": "mun-1", "city": "Montreal", "municipality": "Ville-Marie", "province": "QC"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def config() -> MooseConfig:
    return MooseConfig(base_url="http://tickets.test/api", page_size=2)
