"""High-level async client wiring the stores to the ticket-service API."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pymoose._transport import HttpTransport, Transport
from pymoose.config import MooseConfig
from pymoose.exceptions import MooseTransportError, MooseValidationError
from pymoose.session import MemoryTokenStore, Session, TokenStore, load_session
from pymoose.state.coordinator import Coordinator
from pymoose.state.infraction_types import InfractionTypeStore
from pymoose.state.payments import PaymentStore
from pymoose.state.subscriptions import SubscriptionStore
from pymoose.state.tickets import TicketStore

_logger = logging.getLogger(__name__)


class _DeferredTransport:
    """Forwards to the transport created on ``__aenter__``."""

    def __init__(self, client: MooseClient) -> None:
        self._client = client

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self._client._require_transport().request(method, path, **kwargs)


class MooseClient:
    """Async client for the ticket service.

    Usage::

        async with MooseClient(MooseConfig.from_env()) as client:
            client.set_token(token)
            result = await client.tickets.fetch_tickets()
            if result.ok:
                ...

    The stores exist as soon as the client is constructed so readers can
    subscribe early; commands issued before ``async with`` fail with a
    :class:`~pymoose.exceptions.MooseTransportError` recorded as the store
    error.
    """

    def __init__(
        self,
        config: MooseConfig | None = None,
        *,
        token_store: TokenStore | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config or MooseConfig()
        self._token_store: TokenStore = token_store or MemoryTokenStore()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None

        routed: Transport = _DeferredTransport(self)
        self.tickets = TicketStore(routed, config=self._config)
        self.payments = PaymentStore(routed, config=self._config)
        self.subscriptions = SubscriptionStore(routed, config=self._config)
        self.infraction_types = InfractionTypeStore(routed, config=self._config)
        self.coordinator = Coordinator(self.tickets, self.payments)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MooseClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(
            self._config,
            self._http_session,
            session_provider=self.current_session,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_transport:
            self._transport = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise MooseTransportError("Client not initialized. Use 'async with MooseClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Token
    # ------------------------------------------------------------------

    @property
    def config(self) -> MooseConfig:
        return self._config

    def current_session(self) -> Session | None:
        return load_session(self._token_store, self._config.token_storage_key)

    @property
    def is_authenticated(self) -> bool:
        return self.current_session() is not None

    def set_token(self, token: str) -> None:
        """Persist the bearer token obtained by the auth flow."""
        if not token.strip():
            raise MooseValidationError("token must be non-empty", field="token")
        self._token_store.set(self._config.token_storage_key, token.strip())

    def clear_token(self) -> None:
        """Forget the bearer token and drop every cached entity (logout)."""
        self._token_store.delete(self._config.token_storage_key)
        self.reset()

    def reset(self) -> None:
        """Clear every store wholesale."""
        for store in (self.tickets, self.payments, self.subscriptions, self.infraction_types):
            store.reset()
        _logger.debug("All stores reset")
