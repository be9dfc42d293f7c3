"""pymoose - Async entity synchronization layer for the traffic-ticket service."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pymoose")
except PackageNotFoundError:
    __version__ = "0+local"
from pymoose.client import MooseClient
from pymoose.config import MooseConfig
from pymoose.exceptions import (
    MooseApiError,
    MooseConfigError,
    MooseConflictError,
    MooseError,
    MooseNotFoundError,
    MooseRateLimitError,
    MooseTransportError,
    MooseValidationError,
)
from pymoose.models import (
    Dispute,
    DisputeStatus,
    InfractionCategory,
    InfractionType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
    Ticket,
    TicketStatus,
)
from pymoose.result import Err, Ok, Result
from pymoose.session import MemoryTokenStore, TokenStore

__all__ = [
    "__version__",
    "Dispute",
    "DisputeStatus",
    "Err",
    "InfractionCategory",
    "InfractionType",
    "MemoryTokenStore",
    "MooseApiError",
    "MooseClient",
    "MooseConfig",
    "MooseConfigError",
    "MooseConflictError",
    "MooseError",
    "MooseNotFoundError",
    "MooseRateLimitError",
    "MooseTransportError",
    "MooseValidationError",
    "Ok",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Result",
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "Ticket",
    "TicketStatus",
    "TokenStore",
]
