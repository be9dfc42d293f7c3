"""Filter/search projection over cached collections.

A filtered view is a pure function of ``(collection, filter spec)``: it
never mutates its input and is recomputed whenever either side changes.
Each domain declares its filter spec here together with the fields its
free-text search looks at.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from pymoose.exceptions import MooseValidationError
from pymoose.models.dispute import Dispute, DisputeStatus
from pymoose.models.infraction_type import InfractionCategory, InfractionType
from pymoose.models.payment import Payment, PaymentStatus
from pymoose.models.ticket import Ticket, TicketStatus

T = TypeVar("T")
TSpec = TypeVar("TSpec", bound="FilterSpec[Any]")


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def text_matches(term: str, fields: Iterable[str | None]) -> bool:
    """Case-insensitive substring match of *term* against any of *fields*.

    An empty term matches everything.
    """
    needle = term.strip().casefold()
    if not needle:
        return True
    return any(needle in value.casefold() for value in fields if value)


class FilterSpec(BaseModel, Generic[T]):
    """Base for per-domain filter specs."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_assignment=True)

    search: str = ""

    def matches(self, item: T) -> bool:
        """Return ``True`` when *item* belongs in the filtered view."""
        return text_matches(self.search, self.search_fields(item))

    def search_fields(self, item: T) -> tuple[str | None, ...]:
        return ()

    def with_value(self: TSpec, key: str, value: Any) -> TSpec:
        """Return a copy with *key* set to *value* (validated).

        Raises
        ------
        MooseValidationError
            Unknown filter key or a value of the wrong type.
        """
        if key not in type(self).model_fields:
            raise MooseValidationError(f"unknown filter {key!r}", field=key)
        try:
            return type(self).model_validate({**self.model_dump(), key: value})
        except ValidationError as exc:
            message = exc.errors()[0].get("msg", "invalid value")
            raise MooseValidationError(f"{key}: {message}", field=key) from exc

    def to_query(self) -> dict[str, Any]:
        """Server-side query parameters for the fields that differ from the defaults."""
        return {to_camel(key): value for key, value in self.model_dump(exclude_defaults=True).items()}


def project(items: Sequence[T], spec: FilterSpec[T]) -> tuple[T, ...]:
    """Return the items of *items* that *spec* matches, in their original order."""
    return tuple(item for item in items if spec.matches(item))


class TicketFilters(FilterSpec[Ticket]):
    status: TicketStatus | None = None
    license_plate: str = ""
    city: str = ""
    date_from: datetime | None = None
    date_to: datetime | None = None
    min_amount: float | None = None
    max_amount: float | None = None

    def search_fields(self, item: Ticket) -> tuple[str | None, ...]:
        return (item.ticket_number, item.license_plate, item.city, item.description)

    def matches(self, item: Ticket) -> bool:
        if self.status is not None and item.status is not self.status:
            return False
        if self.license_plate and self.license_plate.replace(" ", "").upper() != item.license_plate.upper():
            return False
        if self.city and self.city.casefold() != item.city.casefold():
            return False
        if self.date_from is not None or self.date_to is not None:
            if item.violation_date is None:
                return False
            when = _aware(item.violation_date)
            if self.date_from is not None and when < _aware(self.date_from):
                return False
            if self.date_to is not None and when > _aware(self.date_to):
                return False
        if self.min_amount is not None and item.amount < self.min_amount:
            return False
        if self.max_amount is not None and item.amount > self.max_amount:
            return False
        return super().matches(item)


class DisputeFilters(FilterSpec[Dispute]):
    status: DisputeStatus | None = None
    ticket_id: str = ""

    def search_fields(self, item: Dispute) -> tuple[str | None, ...]:
        return (item.dispute_number, item.reason, item.description)

    def matches(self, item: Dispute) -> bool:
        if self.status is not None and item.status is not self.status:
            return False
        if self.ticket_id and item.ticket_id != self.ticket_id:
            return False
        return super().matches(item)


class PaymentFilters(FilterSpec[Payment]):
    status: PaymentStatus | None = None
    ticket_id: str = ""

    def search_fields(self, item: Payment) -> tuple[str | None, ...]:
        return (item.transaction_id,)

    def matches(self, item: Payment) -> bool:
        if self.status is not None and item.status is not self.status:
            return False
        if self.ticket_id and item.ticket_id != self.ticket_id:
            return False
        return super().matches(item)


class InfractionTypeFilters(FilterSpec[InfractionType]):
    category: InfractionCategory | None = None
    is_active: bool | None = True

    def search_fields(self, item: InfractionType) -> tuple[str | None, ...]:
        fields: list[str | None] = [item.code, *item.type.all_labels, *item.violation.all_labels]
        if item.municipality is not None:
            fields.extend((item.municipality.city, item.municipality.municipality))
        return tuple(fields)

    def matches(self, item: InfractionType) -> bool:
        if self.category is not None and item.category is not self.category:
            return False
        if self.is_active is not None and item.is_active is not self.is_active:
            return False
        return super().matches(item)
