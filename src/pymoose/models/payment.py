"""Payment and payment-method models."""

from __future__ import annotations

from datetime import datetime

from pymoose._constants import DEFAULT_CURRENCY
from pymoose.models._base import EntityRef, MooseBaseModel, MooseEnum


class PaymentStatus(MooseEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    UNKNOWN = "unknown"


class PaymentMethodType(MooseEnum):
    CARD = "card"
    PAYPAL = "paypal"
    APPLE_PAY = "apple_pay"
    GOOGLE_PAY = "google_pay"
    UNKNOWN = "unknown"


class PaymentMethod(MooseBaseModel):
    """A stored card or wallet. At most one is the user's default."""

    id: str
    type: PaymentMethodType = PaymentMethodType.CARD
    card_brand: str = ""
    card_last4: str = ""
    card_expiry: str = ""
    cardholder_name: str = ""
    is_default: bool = False
    created_at: datetime | None = None

    @property
    def label(self) -> str:
        """Short display label, e.g. ``"visa ••4242"``."""
        if self.card_last4:
            brand = self.card_brand or self.type.value
            return f"{brand} ••{self.card_last4}"
        return self.type.value


class Payment(MooseBaseModel):
    """Server-confirmed payment of a ticket."""

    id: str
    ticket_id: EntityRef = None
    payment_method_id: EntityRef = None
    amount: float = 0.0
    currency: str = DEFAULT_CURRENCY
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str = ""
    processed_at: datetime | None = None
    created_at: datetime | None = None
    refunded_at: datetime | None = None
    refund_reason: str = ""

    @property
    def confirmed_at(self) -> datetime | None:
        """Timestamp the server attached to the payment outcome."""
        return self.processed_at or self.created_at
