"""Internal constants shared across the library."""

BASE_URL = "http://localhost:3001/api"
USER_AGENT = "pymoose"

#: Key under which the bearer token lives in the token store.
TOKEN_STORAGE_KEY = "userToken"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_INFRACTION_PAGE_SIZE = 100
DEFAULT_CURRENCY = "CAD"
DEFAULT_REQUEST_TIMEOUT = 30.0

# ------------------------------------------------------------------
# Endpoint paths (relative to the configured base URL)
# ------------------------------------------------------------------

TICKETS = "/tickets"
TICKETS_BULK = "/tickets/bulk"
TICKETS_BULK_DELETE = "/tickets/bulk-delete"
DISPUTES = "/disputes"
PAYMENTS = "/payments"
PAYMENT_METHODS = "/payment-methods"
SUBSCRIPTIONS = "/subscriptions"
SUBSCRIPTION_PLANS = "/subscriptions/plans"
SUBSCRIPTION_CURRENT = "/subscriptions/current"
SUBSCRIPTION_USAGE = "/subscriptions/usage"
INFRACTION_TYPES = "/infraction-types"
INFRACTION_CATEGORIES = "/infraction-types/categories"


def detail_path(collection: str, entity_id: str, action: str | None = None) -> str:
    """Build ``{collection}/{id}[/{action}]``.

    Raises :class:`ValueError` when *entity_id* is blank.
    """
    ident = str(entity_id).strip()
    if not ident:
        raise ValueError(f"{collection}: id must be non-empty")
    path = f"{collection}/{ident}"
    if action:
        path = f"{path}/{action}"
    return path
