"""Infraction-type catalog store.

The catalog is read-only from the client's side: it is fetched in large
pages (``infraction_page_size``) and searched locally.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pymoose._api import infraction_types as infraction_api
from pymoose.models.infraction_type import InfractionCategory, InfractionType
from pymoose.models.requests import InfractionTypeQuery
from pymoose.result import Err, Result
from pymoose.state.events import (
    CurrentCleared,
    FiltersChanged,
    InfractionCategoriesLoaded,
    InfractionTypeLoaded,
    InfractionTypesLoaded,
    Reset,
    StoreEvent,
)
from pymoose.state.filters import InfractionTypeFilters
from pymoose.state.pagination import LoadMode, PageState, merge_page
from pymoose.state.store import EntityStore, find_by_id


class InfractionTypeOp(StrEnum):
    FETCH_TYPES = "fetch_infraction_types"
    FETCH_TYPE = "fetch_infraction_type"
    FETCH_CATEGORIES = "fetch_categories"


class InfractionTypeState(BaseModel):
    model_config = ConfigDict(frozen=True)

    infraction_types: tuple[InfractionType, ...] = ()
    current: InfractionType | None = None
    categories: tuple[InfractionCategory, ...] = ()
    pagination: PageState = Field(default_factory=PageState)
    filters: InfractionTypeFilters = Field(default_factory=InfractionTypeFilters)
    last_fetched: datetime | None = None


def reduce_infraction_types(state: InfractionTypeState, event: StoreEvent) -> InfractionTypeState:
    if isinstance(event, Reset):
        return InfractionTypeState()
    if isinstance(event, InfractionTypesLoaded):
        return state.model_copy(
            update={
                "infraction_types": merge_page(state.infraction_types, event.items, event.mode),
                "pagination": event.page_state,
                "last_fetched": event.observed_at,
            }
        )
    if isinstance(event, InfractionTypeLoaded):
        return state.model_copy(update={"current": event.infraction_type})
    if isinstance(event, InfractionCategoriesLoaded):
        return state.model_copy(update={"categories": event.categories})
    if isinstance(event, FiltersChanged):
        return state.model_copy(update={"filters": event.filters})
    if isinstance(event, CurrentCleared):
        return state.model_copy(update={"current": None})
    return state


class InfractionTypeStore(EntityStore[InfractionTypeState]):
    """Cache of the infraction-type catalog."""

    name = "infraction_types"
    reducer = reduce_infraction_types

    _last_query: InfractionTypeQuery | None = None

    def _initial_state(self) -> InfractionTypeState:
        return InfractionTypeState()

    @property
    def infraction_types(self) -> tuple[InfractionType, ...]:
        return self._state.infraction_types

    @property
    def current(self) -> InfractionType | None:
        return self._state.current

    @property
    def categories(self) -> tuple[InfractionCategory, ...]:
        return self._state.categories

    @property
    def filtered(self) -> tuple[InfractionType, ...]:
        return self._projected("infraction_types", self._state.infraction_types, self._state.filters)

    @property
    def is_loading(self) -> bool:
        return self._tracker.is_loading(InfractionTypeOp.FETCH_TYPES)

    @property
    def is_loading_more(self) -> bool:
        return self._tracker.is_loading_more(InfractionTypeOp.FETCH_TYPES)

    def by_id(self, infraction_type_id: str) -> InfractionType | None:
        return find_by_id(self._state.infraction_types, infraction_type_id)

    def by_code(self, code: str) -> InfractionType | None:
        wanted = code.strip().casefold()
        return next((t for t in self._state.infraction_types if t.code.casefold() == wanted), None)

    def by_category(self, category: InfractionCategory | str) -> tuple[InfractionType, ...]:
        """Active catalog entries in *category*."""
        wanted = InfractionCategory(category)
        return tuple(t for t in self._state.infraction_types if t.category is wanted and t.is_active)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def fetch_infraction_types(
        self,
        query: InfractionTypeQuery | Mapping[str, Any] | None = None,
    ) -> Result[tuple[InfractionType, ...]]:
        """Load one page of the catalog.

        Without an explicit ``limit`` the configured catalog page size is
        used; ``is_active`` defaults to ``True``.
        """
        if query is None or isinstance(query, Mapping):
            query = {"limit": self._config.infraction_page_size, **(query or {})}
        request = self._validated(InfractionTypeQuery, query)
        if isinstance(request, Err):
            return request

        def _loaded(items: tuple[InfractionType, ...], ps: PageState, mode: LoadMode) -> InfractionTypesLoaded:
            if mode is LoadMode.FRESH:
                self._last_query = request
            return InfractionTypesLoaded(items=items, page_state=ps, mode=mode)

        return await self._load_page(
            InfractionTypeOp.FETCH_TYPES,
            page=request.page,
            limit=request.limit,
            page_state=self._state.pagination,
            fetch=lambda p, n: infraction_api.fetch_infraction_types(
                self._transport, request.model_copy(update={"page": p, "limit": n})
            ),
            to_event=_loaded,
            collection=lambda: self._state.infraction_types,
        )

    async def load_more(self) -> Result[tuple[InfractionType, ...]]:
        """Fetch the next page with the server-side query of the last load."""
        pagination = self._state.pagination
        base = self._last_query or InfractionTypeQuery(limit=pagination.limit)
        return await self.fetch_infraction_types(base.model_copy(update={"page": pagination.next_page}))

    async def fetch_infraction_type(self, infraction_type_id: str) -> Result[InfractionType]:
        if (bad := self._check_id(infraction_type_id, "infraction_type_id")) is not None:
            return bad
        return await self._run(
            InfractionTypeOp.FETCH_TYPE,
            lambda: infraction_api.fetch_infraction_type(self._transport, infraction_type_id),
            lambda infraction_type: InfractionTypeLoaded(infraction_type=infraction_type),
            discard_stale=True,
        )

    async def fetch_categories(self) -> Result[tuple[InfractionCategory, ...]]:
        return await self._run(
            InfractionTypeOp.FETCH_CATEGORIES,
            lambda: infraction_api.fetch_categories(self._transport),
            lambda categories: InfractionCategoriesLoaded(categories=categories),
            discard_stale=True,
        )

    def set_filter(self, key: str, value: Any) -> Result[InfractionTypeFilters]:
        return self._change_filters("infraction_types", self._state.filters, key, value)

    def clear_filters(self) -> Result[InfractionTypeFilters]:
        return self._change_filters("infraction_types", self._state.filters)

    def reset(self) -> None:
        self._last_query = None
        super().reset()

    def clear_current(self) -> None:
        self.apply(CurrentCleared(slot="infraction_type"))
