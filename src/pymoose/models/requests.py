"""Pydantic request models for store commands.

These models provide a consistent "validate → normalize → execute" flow.
Stores validate caller input through :func:`validate_request` before any
lifecycle transition, so a :class:`~pymoose.exceptions.MooseValidationError`
never reaches the network or a store's ``error`` field.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

from pymoose._constants import DEFAULT_CURRENCY, MAX_PAGE_SIZE
from pymoose.exceptions import MooseValidationError
from pymoose.models.subscription import BillingCycle
from pymoose.models.ticket import TicketStatus

TRequest = TypeVar("TRequest", bound="ApiRequest")

_PLATE_RE = re.compile(r"^[A-Z0-9]{2,8}$")
_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/(\d{2})$")


def _luhn_ok(digits: str) -> bool:
    total = 0
    for index, char in enumerate(reversed(digits)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def _require_text(value: str, name: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError(f"{name} must be non-empty")
    return text


class ApiRequest(BaseModel):
    """Base for request bodies; serialises to the server's camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def validate_request(model: type[TRequest], payload: TRequest | Mapping[str, Any]) -> TRequest:
    """Return *payload* as a validated *model* instance.

    Raises
    ------
    MooseValidationError
        With the first failing field's message.
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = str(first.get("msg", "invalid value")).removeprefix("Value error, ")
        raise MooseValidationError(f"{field}: {message}" if field else message, field=field or None) from exc


class PageRequest(ApiRequest):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)


# ------------------------------------------------------------------
# Tickets and disputes
# ------------------------------------------------------------------


class CreateTicketRequest(ApiRequest):
    license_plate: str
    infraction_id: str
    amount: float = Field(gt=0)
    currency: str = DEFAULT_CURRENCY
    violation_date: datetime
    due_date: datetime | None = None
    city: str | None = None
    description: str | None = None

    @field_validator("license_plate")
    @classmethod
    def _plate_format(cls, value: str) -> str:
        plate = re.sub(r"\s", "", value).upper()
        if not _PLATE_RE.match(plate):
            raise ValueError("license plate must be 2-8 alphanumeric characters")
        return plate

    @field_validator("infraction_id")
    @classmethod
    def _infraction_non_empty(cls, value: str) -> str:
        return _require_text(value, "infraction_id")


class UpdateTicketRequest(ApiRequest):
    license_plate: str | None = None
    amount: float | None = Field(default=None, gt=0)
    status: TicketStatus | None = None
    due_date: datetime | None = None
    description: str | None = None

    @model_validator(mode="after")
    def _at_least_one_field(self) -> UpdateTicketRequest:
        if not self.model_fields_set:
            raise ValueError("update must change at least one field")
        return self

    def local_patch(self) -> dict[str, Any]:
        """Fields to apply to the cached ticket, keyed by model attribute."""
        return self.model_dump(exclude_none=True)


class BulkUpdateRequest(ApiRequest):
    ticket_ids: tuple[str, ...] = Field(min_length=1)
    updates: UpdateTicketRequest


class BulkDeleteRequest(ApiRequest):
    ticket_ids: tuple[str, ...] = Field(min_length=1)


class CreateDisputeRequest(ApiRequest):
    ticket_id: str
    reason: str
    reason_code: str | None = None
    description: str = ""
    evidence: tuple[str, ...] = ()

    @field_validator("ticket_id", "reason")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


class EvidenceUpload(ApiRequest):
    """Reference to a file already uploaded by the file service."""

    filename: str
    url: str
    type: str = "document"
    description: str | None = None

    @field_validator("filename", "url")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


# ------------------------------------------------------------------
# Payments
# ------------------------------------------------------------------


class PaymentRequest(ApiRequest):
    ticket_id: str
    payment_method_id: str
    amount: float = Field(gt=0)
    currency: str = DEFAULT_CURRENCY

    @field_validator("ticket_id", "payment_method_id")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


class RefundRequest(ApiRequest):
    reason: str | None = None


class BillingAddress(ApiRequest):
    full_name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    postal_code: str | None = None


class CreatePaymentMethodRequest(ApiRequest):
    type: str = "card"
    card_number: str
    card_expiry: str
    card_cvv: str
    cardholder_name: str
    billing_address: BillingAddress | None = None
    is_default: bool = False

    @field_validator("card_number")
    @classmethod
    def _card_number(cls, value: str) -> str:
        digits = re.sub(r"[\s-]", "", value)
        if not digits.isdigit():
            raise ValueError("card number must contain only digits")
        if not 13 <= len(digits) <= 19:
            raise ValueError("card number must be between 13-19 digits")
        if not _luhn_ok(digits):
            raise ValueError("invalid card number")
        return digits

    @field_validator("card_expiry")
    @classmethod
    def _card_expiry(cls, value: str) -> str:
        if not _EXPIRY_RE.match(value):
            raise ValueError("card expiry must be MM/YY")
        return value

    @field_validator("card_cvv")
    @classmethod
    def _card_cvv(cls, value: str) -> str:
        if not value.isdigit() or len(value) not in (3, 4):
            raise ValueError("CVV must be 3 or 4 digits")
        return value

    @field_validator("cardholder_name")
    @classmethod
    def _cardholder(cls, value: str) -> str:
        return _require_text(value, "cardholder_name")


class UpdatePaymentMethodRequest(ApiRequest):
    card_expiry: str | None = None
    cardholder_name: str | None = None
    billing_address: BillingAddress | None = None
    is_default: bool | None = None

    @field_validator("card_expiry")
    @classmethod
    def _card_expiry(cls, value: str | None) -> str | None:
        if value is not None and not _EXPIRY_RE.match(value):
            raise ValueError("card expiry must be MM/YY")
        return value


# ------------------------------------------------------------------
# Subscriptions
# ------------------------------------------------------------------


class CreateSubscriptionRequest(ApiRequest):
    plan_id: str
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    payment_method_id: str | None = None
    trial_days: int | None = Field(default=None, ge=0)
    promo_code: str | None = None

    @field_validator("plan_id")
    @classmethod
    def _plan_non_empty(cls, value: str) -> str:
        return _require_text(value, "plan_id")

    @field_validator("billing_cycle")
    @classmethod
    def _known_cycle(cls, value: BillingCycle) -> BillingCycle:
        if value is BillingCycle.UNKNOWN:
            raise ValueError("billing cycle must be monthly or annually")
        return value

    @field_validator("promo_code")
    @classmethod
    def _promo_upper(cls, value: str | None) -> str | None:
        return value.upper() if value else None


class UpdateSubscriptionRequest(ApiRequest):
    plan_id: str | None = None
    billing_cycle: BillingCycle | None = None
    payment_method_id: str | None = None

    @model_validator(mode="after")
    def _at_least_one_field(self) -> UpdateSubscriptionRequest:
        if not self.model_fields_set:
            raise ValueError("update must change at least one field")
        return self


class CancelSubscriptionRequest(ApiRequest):
    cancel_at_period_end: bool = True
    reason: str | None = None


# ------------------------------------------------------------------
# Infraction types
# ------------------------------------------------------------------


class InfractionTypeQuery(ApiRequest):
    category: str | None = None
    search: str | None = None
    is_active: bool | None = True
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=100, ge=1, le=MAX_PAGE_SIZE)
    province: str | None = None
    municipality: str | None = None
