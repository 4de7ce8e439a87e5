import asyncio

from pantry_tracker.models import InventoryRecord
from pantry_tracker.store import MemoryInventoryStore
from pantry_tracker.view import InventoryView


def make_view(initial):
    view = InventoryView(MemoryInventoryStore(initial))
    asyncio.run(view.refresh())
    return view


def names(records):
    return sorted(record.name for record in records)


def test_filter_is_case_insensitive_substring():
    view = make_view({"Apple": 2, "Banana": 1})

    assert names(view.filter("an")) == ["Banana"]
    assert names(view.filter("AN")) == ["Banana"]
    assert names(view.filter("p")) == ["Apple"]
    assert names(view.filter("kiwi")) == []


def test_empty_query_returns_whole_snapshot():
    view = make_view({"Apple": 2, "Banana": 1})

    assert names(view.filter("")) == ["Apple", "Banana"]
    assert names(view.filter(None)) == ["Apple", "Banana"]


def test_filter_does_not_touch_snapshot():
    view = make_view({"Apple": 2, "Banana": 1})
    before = list(view.snapshot)

    view.filter("an").clear()

    assert view.snapshot == before


def test_refresh_replaces_snapshot_wholesale():
    store = MemoryInventoryStore({"Apple": 2})
    view = InventoryView(store)
    assert view.snapshot == [] and not view.refreshed

    asyncio.run(view.refresh())
    assert view.snapshot == [InventoryRecord(name="Apple", quantity=2)]

    asyncio.run(store.delete_record("Apple"))
    asyncio.run(store.put_record("Cherry", 5))
    asyncio.run(view.refresh())

    assert view.snapshot == [InventoryRecord(name="Cherry", quantity=5)]
    assert view.refreshed


def test_display_name_capitalizes_first_letter_only():
    assert InventoryRecord(name="teddy bear", quantity=1).display_name == "Teddy bear"
    assert InventoryRecord(name="iPhone", quantity=1).display_name == "IPhone"
