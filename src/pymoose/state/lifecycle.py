"""Three-phase bookkeeping for asynchronous store operations.

Every network-backed command runs ``begin() → succeed() | fail()``. The
tracker turns those transitions into the busy flags and last-error value
readers observe, and it decides which terminal transitions are stale.

Staleness is decided by sequence number: each ``begin()`` draws the next
number from one monotonic counter and records it as the latest for its
operation kind. A terminal transition whose number is older than the
latest for its kind is still recorded (the in-flight count drops) but is
reported as stale so the store can discard the payload.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
from collections.abc import Iterator

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class OperationTicket:
    """Handle for one in-flight operation, returned by :meth:`LifecycleTracker.begin`."""

    kind: str
    seq: int
    load_more: bool = False


class LifecycleTracker:
    """Per-store lifecycle bookkeeping keyed by operation kind."""

    def __init__(self) -> None:
        self._counter: Iterator[int] = itertools.count(1)
        self._latest: dict[str, int] = {}
        self._in_flight: dict[str, dict[int, OperationTicket]] = {}
        self._errors: dict[str, str] = {}
        self._floor = 0

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin(self, kind: str, *, load_more: bool = False) -> OperationTicket:
        """Start an operation of *kind* and clear that kind's recorded error."""
        ticket = OperationTicket(kind=kind, seq=next(self._counter), load_more=load_more)
        self._latest[kind] = ticket.seq
        self._in_flight.setdefault(kind, {})[ticket.seq] = ticket
        self._errors.pop(kind, None)
        _logger.debug("begin %s seq=%d load_more=%s", kind, ticket.seq, load_more)
        return ticket

    def succeed(self, ticket: OperationTicket) -> bool:
        """Record success; return ``True`` when *ticket* is still the latest of its kind."""
        current = self._finish(ticket)
        _logger.debug("succeed %s seq=%d current=%s", ticket.kind, ticket.seq, current)
        return current

    def fail(self, ticket: OperationTicket, message: str, *, drop_if_stale: bool = True) -> bool:
        """Record failure and return whether *ticket* is current.

        A stale failure leaves the error untouched when *drop_if_stale* is
        set; failures that predate a :meth:`reset` are always dropped.
        """
        current = self._finish(ticket)
        if (current or not drop_if_stale) and not self.predates_reset(ticket):
            self._errors.pop(ticket.kind, None)
            self._errors[ticket.kind] = message
        _logger.debug("fail %s seq=%d current=%s: %s", ticket.kind, ticket.seq, current, message)
        return current

    def _finish(self, ticket: OperationTicket) -> bool:
        pending = self._in_flight.get(ticket.kind, {})
        if pending.pop(ticket.seq, None) is None:
            raise RuntimeError(f"{ticket.kind} seq={ticket.seq} already finished")
        return self._latest.get(ticket.kind) == ticket.seq

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------

    def is_busy(self, kind: str) -> bool:
        return bool(self._in_flight.get(kind))

    def is_loading(self, kind: str) -> bool:
        """A fresh (non-continuation) load of *kind* is in flight."""
        return any(not t.load_more for t in self._in_flight.get(kind, {}).values())

    def is_loading_more(self, kind: str) -> bool:
        """A pagination continuation of *kind* is in flight and no fresh load is."""
        pending = self._in_flight.get(kind, {}).values()
        return any(t.load_more for t in pending) and not self.is_loading(kind)

    def is_current(self, ticket: OperationTicket) -> bool:
        return self._latest.get(ticket.kind) == ticket.seq

    def predates_reset(self, ticket: OperationTicket) -> bool:
        """*ticket* was issued before the last :meth:`reset`."""
        return ticket.seq < self._floor

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    @property
    def error(self) -> str | None:
        """Most recently recorded error across all kinds."""
        if not self._errors:
            return None
        return next(reversed(self._errors.values()))

    def error_for(self, kind: str) -> str | None:
        return self._errors.get(kind)

    def clear_error(self, kind: str | None = None) -> None:
        if kind is None:
            self._errors.clear()
        else:
            self._errors.pop(kind, None)

    def reset(self) -> None:
        """Forget errors and sequence history; in-flight results become stale."""
        self._latest.clear()
        self._errors.clear()
        self._floor = next(self._counter)
