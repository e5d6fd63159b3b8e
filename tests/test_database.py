import pytest

from helpers import _banner, _p, flush
from shiftdesk.database import ArrayRemove, ArrayUnion, InMemoryDocumentStore
from shiftdesk.exceptions import StoreError
from shiftdesk.live import LiveCollection


@pytest.mark.asyncio
async def test_reads_are_copies_with_ids() -> None:
    store = InMemoryDocumentStore()
    doc_id = await store.add("things", {"tags": ["a"]})

    doc = await store.get("things", doc_id)
    doc["tags"].append("b")

    assert doc["id"] == doc_id
    assert (await store.get("things", doc_id))["tags"] == ["a"]


@pytest.mark.asyncio
async def test_array_transforms() -> None:
    store = InMemoryDocumentStore()
    doc_id = await store.add("things", {"ids": ["x", "y"], "n": 1})

    await store.update("things", doc_id, {"ids": ArrayUnion("y", "z"), "n": 2})
    assert (await store.get("things", doc_id))["ids"] == ["x", "y", "z"]

    await store.update("things", doc_id, {"ids": ArrayRemove("x", "missing")})
    doc = await store.get("things", doc_id)
    assert doc["ids"] == ["y", "z"]
    assert doc["n"] == 2


@pytest.mark.asyncio
async def test_update_of_missing_document_raises() -> None:
    store = InMemoryDocumentStore()

    with pytest.raises(StoreError):
        await store.update("things", "nope", {"n": 1})


@pytest.mark.asyncio
async def test_query_matches_field_equality() -> None:
    store = InMemoryDocumentStore()
    await store.add("people", {"username": "alice"})
    await store.add("people", {"username": "bob"})

    found = await store.query("people", "username", "bob")

    assert [d["username"] for d in found] == ["bob"]


@pytest.mark.asyncio
async def test_change_feed_pushes_full_snapshots_asynchronously() -> None:
    _banner("each write pushes the whole collection, after the writer returns")
    store = InMemoryDocumentStore()
    pushes: list[list[dict]] = []
    unsubscribe = store.subscribe("things", pushes.append)

    first = await store.add("things", {"n": 1})
    assert pushes == []

    await flush()
    _p(f"pushes: {pushes}")
    assert pushes[0] == []
    assert pushes[1] == [{"id": first, "n": 1}]

    second = await store.add("things", {"n": 2})
    await store.delete("things", first)
    await flush()
    assert pushes[-1] == [{"id": second, "n": 2}]

    unsubscribe()
    await store.add("things", {"n": 3})
    await flush()
    assert len(pushes) == 4


@pytest.mark.asyncio
async def test_live_collection_replaces_its_documents() -> None:
    store = InMemoryDocumentStore()
    await store.add("things", {"n": 1})
    seen: list[int] = []
    live = LiveCollection(store, "things", on_snapshot=lambda docs: seen.append(len(docs)))

    live.open()
    await live.wait_ready()
    assert [d["n"] for d in live.documents] == [1]

    await store.add("things", {"n": 2})
    await flush()
    assert sorted(d["n"] for d in live.documents) == [1, 2]
    assert seen == [1, 2]

    live.close()
    await store.add("things", {"n": 3})
    await flush()
    assert len(live.documents) == 2
