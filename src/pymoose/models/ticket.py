"""Ticket models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import Field, model_validator

from pymoose._constants import DEFAULT_CURRENCY
from pymoose.models._base import EntityRef, MooseBaseModel, MooseEnum
from pymoose.models.dispute import DisputeStatus
from pymoose.models.payment import PaymentStatus


class TicketStatus(MooseEnum):
    OUTSTANDING = "outstanding"
    PENDING = "pending"
    UNPAID = "unpaid"
    OVERDUE = "overdue"
    PAID = "paid"
    DISPUTED = "disputed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @property
    def is_open(self) -> bool:
        """Still owes money and is not under dispute."""
        return self in _OPEN_STATUSES


_OPEN_STATUSES = frozenset(
    {
        TicketStatus.OUTSTANDING,
        TicketStatus.PENDING,
        TicketStatus.UNPAID,
        TicketStatus.OVERDUE,
    }
)


class Address(MooseBaseModel):
    street1: str = ""
    street2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


class Coordinates(MooseBaseModel):
    lat: float
    lng: float


class TicketLocation(MooseBaseModel):
    address: Address | None = None
    coordinates: Coordinates | None = None


class PaymentHistoryEntry(MooseBaseModel):
    """One payment attempt recorded on a ticket. Only ever appended locally."""

    transaction_id: str = ""
    amount: float = 0.0
    payment_date: datetime | None = None
    status: PaymentStatus = PaymentStatus.COMPLETED


class TicketDisputeRef(MooseBaseModel):
    """Summary of the dispute attached to a ticket."""

    dispute_id: EntityRef = None
    status: DisputeStatus = DisputeStatus.SUBMITTED
    submitted_at: datetime | None = None


class Ticket(MooseBaseModel):
    """A traffic/parking ticket issued to one of the user's vehicles."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {
        "fineAmount": "amount",
        "totalAmount": "amount",
        "issueDate": "violationDate",
    }

    id: str
    ticket_number: str = ""
    license_plate: str = ""
    infraction_id: EntityRef = None
    vehicle_id: EntityRef = None
    amount: float = 0.0
    currency: str = DEFAULT_CURRENCY
    status: TicketStatus = TicketStatus.OUTSTANDING
    violation_date: datetime | None = None
    due_date: datetime | None = None
    location: TicketLocation | None = None
    description: str = ""
    dispute: TicketDisputeRef | None = None
    payment_history: tuple[PaymentHistoryEntry, ...] = Field(default_factory=tuple)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _lift_populated_refs(cls, values: Any) -> Any:
        """Pull flat fields out of populated ``vehicle``/``infractionType`` sub-documents."""
        if not isinstance(values, dict):
            return values
        working = dict(values)
        vehicle = working.get("vehicle")
        if isinstance(vehicle, dict):
            if not working.get("licensePlate") and not working.get("license_plate"):
                working["licensePlate"] = vehicle.get("licensePlate")
            if not working.get("vehicleId") and not working.get("vehicle_id"):
                working["vehicleId"] = vehicle.get("_id") or vehicle.get("id")
        infraction = working.get("infractionType")
        if isinstance(infraction, dict) and not working.get("infractionId") and not working.get("infraction_id"):
            working["infractionId"] = infraction.get("_id") or infraction.get("id")
        return working

    @property
    def city(self) -> str:
        if self.location is None or self.location.address is None:
            return ""
        return self.location.address.city

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    @property
    def amount_paid(self) -> float:
        """Sum of completed payment-history entries."""
        return sum(e.amount for e in self.payment_history if e.status is PaymentStatus.COMPLETED)
