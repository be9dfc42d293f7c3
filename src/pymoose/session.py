"""Bearer-token persistence.

The only state pymoose keeps outside memory is the bearer token, held in a
key-value store under a fixed key. Entity data is never persisted.
"""

from __future__ import annotations

import time
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field


class TokenStore(Protocol):
    """Key-value storage for the bearer token.

    Mobile shells plug in their secure storage here; tests use
    :class:`MemoryTokenStore`.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryTokenStore:
    """Process-local :class:`TokenStore`."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class Session(BaseModel):
    """Bearer token resolved for the current user session.

    Parameters
    ----------
    token : str
        Opaque bearer token issued by the auth service.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the session was
        resolved.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    token: str = Field(min_length=1)
    created_at: float = Field(default_factory=time.monotonic)

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.token}"

    @property
    def age(self) -> float:
        """Seconds since the session was resolved."""
        return time.monotonic() - self.created_at


def load_session(store: TokenStore, key: str) -> Session | None:
    """Return a :class:`Session` for the stored token, or ``None`` when absent/blank."""
    token = store.get(key)
    if token is None or not token.strip():
        return None
    return Session(token=token)
