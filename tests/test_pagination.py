from __future__ import annotations

from dataclasses import dataclass

import pytest

from pymoose.models.pagination import Pagination
from pymoose.state.pagination import LoadMode, PageState, merge_page, plan_load, resolve_page_state


@dataclass(frozen=True)
class Item:
    id: str
    label: str = ""


def test_has_next_page_from_page_count_or_server_flag() -> None:
    assert PageState(page=1, total_pages=3).has_next_page
    assert not PageState(page=3, total_pages=3).has_next_page
    assert PageState(page=3, total_pages=3, server_has_next=True).has_next_page
    assert not PageState().has_next_page


def test_first_page_is_always_a_fresh_load() -> None:
    assert plan_load(PageState(), 1, busy=False) is LoadMode.FRESH
    assert plan_load(PageState(page=4, total_pages=4), 1, busy=True) is LoadMode.FRESH


@pytest.mark.parametrize(
    ("state", "busy"),
    [
        (PageState(page=2, total_pages=2), False),
        (PageState(page=1, total_pages=3), True),
    ],
)
def test_continuation_is_a_noop_without_next_page_or_while_busy(state: PageState, busy: bool) -> None:
    assert plan_load(state, state.next_page, busy=busy) is None


def test_continuation_planned_when_more_pages_exist() -> None:
    assert plan_load(PageState(page=1, total_pages=2), 2, busy=False) is LoadMode.MORE


def test_resolve_uses_server_metadata() -> None:
    meta = Pagination.model_validate({"page": 2, "limit": 10, "total": 35, "totalPages": 4, "hasNextPage": True})
    state = resolve_page_state(meta, page=2, limit=10, returned=10)

    assert state == PageState(page=2, limit=10, total=35, total_pages=4, server_has_next=True)


def test_resolve_catalog_metadata_shape() -> None:
    meta = Pagination.model_validate({"currentPage": 1, "itemsPerPage": 100, "totalItems": 250})
    state = resolve_page_state(meta, page=1, limit=100, returned=100)

    assert state.total == 250
    assert state.total_pages == 3
    assert state.has_next_page


def test_resolve_without_metadata_treats_short_page_as_last() -> None:
    state = resolve_page_state(None, page=2, limit=20, returned=7)

    assert state.total_pages == 2
    assert state.total == 27
    assert not state.has_next_page


def test_resolve_without_metadata_assumes_more_after_full_page() -> None:
    state = resolve_page_state(None, page=1, limit=20, returned=20)

    assert state.has_next_page
    assert state.next_page == 2


def test_fresh_merge_replaces_collection() -> None:
    existing = (Item("a"), Item("b"))
    assert merge_page(existing, (Item("c"),), LoadMode.FRESH) == (Item("c"),)


def test_continuation_appends_in_order() -> None:
    page1 = (Item("a"), Item("b"))
    page2 = (Item("c"), Item("d"))

    assert merge_page(page1, page2, LoadMode.MORE) == page1 + page2


def test_continuation_replaces_overlapping_entries_in_place() -> None:
    merged = merge_page((Item("a"), Item("b")), (Item("b", "new"), Item("c")), LoadMode.MORE)

    assert [i.id for i in merged] == ["a", "b", "c"]
    assert merged[1].label == "new"
