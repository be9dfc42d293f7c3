"""Reactive entity store base.

A store owns one frozen state model, a :class:`LifecycleTracker` and the
transport it calls. Every command follows the same path:

1. validate caller input (failures return ``Err`` and touch nothing),
2. ``begin()`` on the tracker,
3. await the endpoint call,
4. ``succeed()``/``fail()`` and, on success, reduce the resulting event
   into a new state that replaces the old one in a single assignment.

Step 4's bookkeeping and reduction happen without an ``await`` in between,
so readers on the event loop never observe a half-applied transition.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from pymoose._api._common import Page
from pymoose._transport import Transport
from pymoose.config import MooseConfig
from pymoose.exceptions import MooseError, MooseValidationError
from pymoose.models.requests import PageRequest, TRequest, validate_request
from pymoose.result import Err, Ok, Result
from pymoose.state.events import FiltersChanged, PageLoaded, Reset, StoreEvent
from pymoose.state.filters import FilterSpec, project
from pymoose.state.lifecycle import LifecycleTracker
from pymoose.state.pagination import HasId, LoadMode, PageState, plan_load, resolve_page_state

_logger = logging.getLogger(__name__)

TState = TypeVar("TState", bound=BaseModel)
T = TypeVar("T")
TEntity = TypeVar("TEntity", bound=HasId)
TSpec = TypeVar("TSpec", bound="FilterSpec[Any]")

Listener = Callable[[Any], None]
Effect = Callable[[StoreEvent], None]
Reducer = Callable[[Any, StoreEvent], Any]


# ------------------------------------------------------------------
# Collection helpers shared by the domain reducers
# ------------------------------------------------------------------


def replace_by_id(items: Sequence[TEntity], updated: TEntity) -> tuple[TEntity, ...]:
    """Swap the entry whose id matches *updated*; unknown ids leave *items* as-is."""
    return tuple(updated if item.id == updated.id else item for item in items)


def remove_ids(items: Sequence[TEntity], ids: Sequence[str] | frozenset[str]) -> tuple[TEntity, ...]:
    drop = frozenset(ids)
    return tuple(item for item in items if item.id not in drop)


def prepend(items: Sequence[TEntity], created: TEntity) -> tuple[TEntity, ...]:
    """Put *created* first, dropping any older copy with the same id."""
    return (created, *(item for item in items if item.id != created.id))


def find_by_id(items: Sequence[TEntity], entity_id: str) -> TEntity | None:
    return next((item for item in items if item.id == entity_id), None)


def same_id(current: HasId | None, entity_id: str) -> bool:
    return current is not None and current.id == entity_id


# ------------------------------------------------------------------
# Store base
# ------------------------------------------------------------------


class EntityStore(Generic[TState]):
    """Base class for the per-domain stores."""

    name: ClassVar[str] = "store"
    reducer: ClassVar[Reducer]

    def __init__(self, transport: Transport, *, config: MooseConfig | None = None) -> None:
        self._transport = transport
        self._config = config or MooseConfig()
        self._tracker = LifecycleTracker()
        self._state: TState = self._initial_state()
        self._listeners: list[Listener] = []
        self._effects: list[Effect] = []
        self._views: dict[str, tuple[Any, Any, tuple[Any, ...]]] = {}

    def _initial_state(self) -> TState:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def state(self) -> TState:
        return self._state

    @property
    def error(self) -> str | None:
        """Most recent failure message, until cleared by a new attempt of that operation."""
        return self._tracker.error

    def error_for(self, kind: str) -> str | None:
        return self._tracker.error_for(kind)

    def is_busy(self, kind: str) -> bool:
        return self._tracker.is_busy(kind)

    def _projected(self, key: str, items: tuple[Any, ...], spec: FilterSpec[Any]) -> tuple[Any, ...]:
        """Filtered view of *items*, recomputed only when *items* or *spec* changed."""
        cached = self._views.get(key)
        if cached is not None and cached[0] is items and cached[1] is spec:
            return cached[2]
        view = project(items, spec)
        self._views[key] = (items, spec, view)
        return view

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the new state after every transition.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def add_effect(self, effect: Effect) -> Callable[[], None]:
        """Run *effect* with every event this store reduces (used by the coordinator)."""
        self._effects.append(effect)

        def _remove() -> None:
            if effect in self._effects:
                self._effects.remove(effect)

        return _remove

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # noqa: BLE001
                _logger.exception("%s listener failed", self.name)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def apply(self, event: StoreEvent) -> TState:
        """Reduce *event* into the state and notify listeners."""
        self._dispatch(event)
        self._notify()
        return self._state

    def _dispatch(self, event: StoreEvent) -> None:
        self._state = type(self).reducer(self._state, event)
        _logger.debug("%s applied %s", self.name, type(event).__name__)
        for effect in list(self._effects):
            effect(event)

    def clear_error(self) -> None:
        self._tracker.clear_error()
        self._notify()

    def reset(self) -> None:
        """Drop every cached entity, error and in-flight result (session teardown)."""
        self._tracker.reset()
        self.apply(Reset())

    # ------------------------------------------------------------------
    # Command plumbing
    # ------------------------------------------------------------------

    def _validated(self, model: type[TRequest], payload: TRequest | Mapping[str, Any]) -> TRequest | Err:
        try:
            return validate_request(model, payload)
        except MooseValidationError as exc:
            _logger.debug("%s rejected %s: %s", self.name, model.__name__, exc)
            return Err(str(exc), error=exc)

    def _change_filters(self, collection: str, current: TSpec, key: str | None = None, value: Any = None) -> Result[TSpec]:
        """Set one filter key (or reset all when *key* is ``None``).

        An unchanged spec produces no transition and no notification.
        """
        try:
            updated = current.with_value(key, value) if key is not None else type(current)()
        except MooseValidationError as exc:
            return Err(str(exc), error=exc)
        if updated == current:
            return Ok(current)
        self.apply(FiltersChanged(collection=collection, filters=updated))
        return Ok(updated)

    @staticmethod
    def _check_id(value: str, name: str = "id") -> Err | None:
        if not isinstance(value, str) or not value.strip():
            exc = MooseValidationError(f"{name} must be non-empty", field=name)
            return Err(str(exc), error=exc)
        return None

    async def _run(
        self,
        kind: str,
        call: Callable[[], Awaitable[T]],
        on_success: Callable[[T], StoreEvent | Sequence[StoreEvent] | None] | None = None,
        *,
        load_more: bool = False,
        discard_stale: bool = False,
    ) -> Result[T]:
        """Run one network-backed operation through the lifecycle.

        Transport and API failures are converted to ``Err`` and recorded as
        the store error; they never propagate. With *discard_stale*, a result
        superseded by a newer operation of the same kind is returned but
        not applied.
        """
        ticket = self._tracker.begin(kind, load_more=load_more)
        self._notify()
        try:
            value = await call()
        except MooseError as exc:
            self._tracker.fail(ticket, str(exc), drop_if_stale=discard_stale)
            _logger.debug("%s %s failed: %s", self.name, kind, exc)
            self._notify()
            return Err(str(exc), error=exc)

        current = self._tracker.succeed(ticket)
        if self._tracker.predates_reset(ticket) or (discard_stale and not current):
            _logger.debug("%s discarding stale %s result (seq=%d)", self.name, kind, ticket.seq)
        elif on_success is not None:
            events = on_success(value)
            if isinstance(events, StoreEvent):
                events = (events,)
            for event in events or ():
                self._dispatch(event)
        self._notify()
        return Ok(value)

    async def _load_page(
        self,
        kind: str,
        *,
        page: int,
        limit: int,
        page_state: PageState,
        fetch: Callable[[int, int], Awaitable[Page[Any]]],
        to_event: Callable[[tuple[Any, ...], PageState, LoadMode], PageLoaded],
        collection: Callable[[], tuple[Any, ...]],
    ) -> Result[tuple[Any, ...]]:
        """Fetch *page* of a collection with fresh/continuation semantics.

        A continuation with no next page, or issued while another load of
        the same collection is in flight, is a no-op that returns the
        cached collection without touching the network.
        """
        request = self._validated(PageRequest, {"page": page, "limit": limit})
        if isinstance(request, Err):
            return request

        mode = plan_load(page_state, request.page, busy=self._tracker.is_busy(kind))
        if mode is None:
            _logger.debug("%s skipping %s page %d (has_next=%s)", self.name, kind, page, page_state.has_next_page)
            return Ok(collection())

        def _event(result: Page[Any]) -> PageLoaded:
            new_state = resolve_page_state(
                result.pagination,
                page=request.page,
                limit=request.limit,
                returned=len(result.items),
            )
            return to_event(result.items, new_state, mode)

        outcome = await self._run(
            kind,
            lambda: fetch(request.page, request.limit),
            _event,
            load_more=mode is LoadMode.MORE,
            discard_stale=True,
        )
        if isinstance(outcome, Err):
            return outcome
        return Ok(collection())
