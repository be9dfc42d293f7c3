"""Incremental collection loading.

Page 1 is a fresh load that replaces the collection; any later page is a
continuation that appends to it. Continuations are planned here, before
any network call, so a request for a page that does not exist (or one
issued while another load of the same collection is in flight) never
leaves the store.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Sequence
from typing import Protocol, TypeVar

from pydantic import BaseModel, ConfigDict

from pymoose._constants import DEFAULT_PAGE_SIZE
from pymoose.models.pagination import Pagination


class HasId(Protocol):
    @property
    def id(self) -> str: ...


TEntity = TypeVar("TEntity", bound=HasId)


class LoadMode(enum.StrEnum):
    FRESH = "fresh"
    MORE = "more"


class PageState(BaseModel):
    """Pagination position of one cached collection.

    ``page`` is the last page merged into the collection (``0`` before the
    first load).
    """

    model_config = ConfigDict(frozen=True)

    page: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    total: int = 0
    total_pages: int = 0
    server_has_next: bool | None = None

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages or bool(self.server_has_next)

    @property
    def next_page(self) -> int:
        return self.page + 1


def plan_load(state: PageState, page: int, *, busy: bool) -> LoadMode | None:
    """Decide how a request for *page* is served.

    Returns ``None`` when the request must be a no-op: a continuation while
    there is no next page or while any load of the collection is in flight.
    A fresh load always proceeds; it supersedes whatever is in flight.
    """
    if page <= 1:
        return LoadMode.FRESH
    if busy or not state.has_next_page:
        return None
    return LoadMode.MORE


def resolve_page_state(meta: Pagination | None, *, page: int, limit: int, returned: int) -> PageState:
    """Build the new :class:`PageState` after *returned* items arrived for *page*.

    Without server metadata the page is taken as the last one unless it
    came back full, in which case one more page is assumed to exist.
    """
    full = returned >= limit
    if meta is None:
        return PageState(
            page=page,
            limit=limit,
            total=(page - 1) * limit + returned,
            total_pages=page + 1 if full else page,
            server_has_next=full,
        )

    effective_limit = meta.limit or limit
    total = meta.total if meta.total is not None else (page - 1) * effective_limit + returned
    total_pages = meta.total_pages
    if total_pages is None:
        if meta.total is not None:
            total_pages = math.ceil(meta.total / effective_limit)
        elif meta.has_next_page is not None:
            total_pages = page + 1 if meta.has_next_page else page
        else:
            total_pages = page + 1 if full else page
    return PageState(
        page=meta.page or page,
        limit=effective_limit,
        total=total,
        total_pages=total_pages,
        server_has_next=meta.has_next_page,
    )


def merge_page(existing: Sequence[TEntity], incoming: Sequence[TEntity], mode: LoadMode) -> tuple[TEntity, ...]:
    """Merge a fetched page into a cached collection.

    A fresh load replaces the collection. A continuation appends, except
    that an entity already cached (same ``id``) is replaced in place, so
    a page that overlaps the previous one never duplicates entries.
    """
    if mode is LoadMode.FRESH:
        return tuple(incoming)
    merged = list(existing)
    index = {item.id: i for i, item in enumerate(merged)}
    for item in incoming:
        position = index.get(item.id)
        if position is None:
            index[item.id] = len(merged)
            merged.append(item)
        else:
            merged[position] = item
    return tuple(merged)
