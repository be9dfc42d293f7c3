from __future__ import annotations

# pylint: disable=redefined-outer-name

import pytest
from conftest import FakeTransport, fail, infraction_json, ok

from pymoose.config import MooseConfig
from pymoose.models.infraction_type import InfractionCategory
from pymoose.result import Err
from pymoose.state.infraction_types import InfractionTypeStore


@pytest.fixture
def store(transport: FakeTransport, config: MooseConfig) -> InfractionTypeStore:
    return InfractionTypeStore(transport, config=config)


def _catalog() -> list[dict[str, object]]:
    return [
        infraction_json("1"),
        infraction_json("2", code="m-77", category="moving", type="Speeding", violation={"en": "Over limit"}),
        infraction_json("3", category="moving", isActive=False),
    ]


@pytest.mark.asyncio
async def test_default_query_uses_catalog_page_size(store: InfractionTypeStore, transport: FakeTransport) -> None:
    transport.on("GET", "/infraction-types", ok({"infractionTypes": _catalog()}))

    result = await store.fetch_infraction_types()

    assert result.ok
    assert transport.calls[0].params == {"page": "1", "limit": "100", "isActive": "true"}
    assert [t.id for t in store.infraction_types] == ["1", "2", "3"]
    assert store.state.last_fetched is not None


@pytest.mark.asyncio
async def test_load_more_reuses_last_query(store: InfractionTypeStore, transport: FakeTransport) -> None:
    transport.on(
        "GET",
        "/infraction-types",
        [
            ok({"infractionTypes": [infraction_json("2", category="moving")]}, pagination={"currentPage": 1, "itemsPerPage": 1, "totalItems": 2}),
            ok({"infractionTypes": [infraction_json("3", category="moving")]}, pagination={"currentPage": 2, "itemsPerPage": 1, "totalItems": 2}),
        ],
    )

    await store.fetch_infraction_types({"category": "moving", "limit": 1})
    await store.load_more()

    assert [t.id for t in store.infraction_types] == ["2", "3"]
    second = transport.calls[1].params
    assert second["page"] == "2"
    assert second["limit"] == "1"
    assert second["category"] == "moving"
    assert not store.state.pagination.has_next_page


@pytest.mark.asyncio
async def test_invalid_query_is_rejected(store: InfractionTypeStore, transport: FakeTransport) -> None:
    result = await store.fetch_infraction_types({"limit": 1000})

    assert isinstance(result, Err)
    assert transport.calls == []


@pytest.mark.asyncio
async def test_lookups(store: InfractionTypeStore, transport: FakeTransport) -> None:
    transport.on("GET", "/infraction-types", ok(_catalog()))
    await store.fetch_infraction_types()

    found = store.by_code("M-77")
    assert found is not None
    assert found.id == "2"
    assert found.type.get("fr") == "Speeding"
    assert [t.id for t in store.by_category("moving")] == ["2"]
    assert store.by_id("3") is not None
    assert store.by_id("404") is None


@pytest.mark.asyncio
async def test_local_search(store: InfractionTypeStore, transport: FakeTransport) -> None:
    transport.on("GET", "/infraction-types", ok(_catalog()))
    await store.fetch_infraction_types()

    store.set_filter("search", "speed")
    assert [t.id for t in store.filtered] == ["2"]

    store.set_filter("is_active", None)
    store.set_filter("search", "")
    assert [t.id for t in store.filtered] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_fetch_single_and_categories(store: InfractionTypeStore, transport: FakeTransport) -> None:
    transport.on("GET", "/infraction-types/7", ok({"infractionType": infraction_json(7)}))
    transport.on("GET", "/infraction-types/categories", ok(["stationary", "moving", "towing"]))

    await store.fetch_infraction_type("7")
    await store.fetch_categories()

    assert store.current is not None
    assert store.current.id == "7"
    assert store.infraction_types == ()
    assert store.categories == (InfractionCategory.STATIONARY, InfractionCategory.MOVING, InfractionCategory.UNKNOWN)


@pytest.mark.asyncio
async def test_reset_forgets_last_query(store: InfractionTypeStore, transport: FakeTransport) -> None:
    transport.on("GET", "/infraction-types", ok(_catalog()))
    await store.fetch_infraction_types({"category": "moving"})

    store.reset()
    await store.fetch_infraction_types()

    assert "category" not in transport.calls[-1].params
    assert store.infraction_types != ()


@pytest.mark.asyncio
async def test_failed_load_keeps_query_for_load_more(store: InfractionTypeStore, transport: FakeTransport) -> None:
    transport.on(
        "GET",
        "/infraction-types",
        [
            ok({"infractionTypes": [infraction_json("2", category="moving")]}, pagination={"currentPage": 1, "itemsPerPage": 1, "totalItems": 2}),
            fail("Catalog unavailable"),
            ok({"infractionTypes": [infraction_json("3", category="moving")]}, pagination={"currentPage": 2, "itemsPerPage": 1, "totalItems": 2}),
        ],
    )
    await store.fetch_infraction_types({"category": "moving", "limit": 1})

    failed = await store.fetch_infraction_types({"category": "towing", "limit": 1})
    await store.load_more()

    assert isinstance(failed, Err)
    assert transport.calls[-1].params["category"] == "moving"
    assert [t.id for t in store.infraction_types] == ["2", "3"]
