"""
Tests for the local snapshot backend.
"""

import asyncio
import json

import pytest

from household.services.storage import (
    Collection,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    LocalCollectionStore,
    LocalStorageBackend,
    StorageError,
)


class TestLocalCollectionStore:
    """Tests for one collection snapshot."""

    def test_empty_when_never_saved(self):
        store = LocalCollectionStore(InMemoryKeyValueStore(), Collection.SHOPPING_LIST)
        assert store.list() == []

    def test_add_writes_whole_snapshot_under_collection_key(self):
        kv = InMemoryKeyValueStore()
        store = LocalCollectionStore(kv, Collection.SHOPPING_LIST)
        first = store.add({"name": "Milk"})
        second = store.add({"name": "Bread"})

        saved = json.loads(kv.values["shoppingList"])
        assert [doc["id"] for doc in saved] == [first.id, second.id]
        assert saved[0]["isDone"] is False
        assert saved[0]["category"] is None

    def test_keeps_insertion_order(self):
        store = LocalCollectionStore(InMemoryKeyValueStore(), Collection.PAYERS)
        for name in ["Alice", "Bob", "Carol"]:
            store.add({"name": name})
        assert [payer.name for payer in store.list()] == ["Alice", "Bob", "Carol"]

    def test_update_applies_patch(self):
        store = LocalCollectionStore(InMemoryKeyValueStore(), Collection.SHOPPING_LIST)
        item = store.add({"name": "Milk"})
        store.update(item.id, {"is_done": True})
        assert store.list()[0].is_done is True

    def test_update_unknown_id_is_noop(self):
        store = LocalCollectionStore(InMemoryKeyValueStore(), Collection.SHOPPING_LIST)
        store.add({"name": "Milk"})
        store.update("missing", {"is_done": True})
        assert store.list()[0].is_done is False

    def test_delete_unknown_id_is_noop(self):
        kv = InMemoryKeyValueStore()
        store = LocalCollectionStore(kv, Collection.SHOPPING_LIST)
        store.add({"name": "Milk"})
        before = kv.values["shoppingList"]
        store.delete("missing")
        assert kv.values["shoppingList"] == before

    def test_corrupt_snapshot_raises_storage_error(self):
        kv = InMemoryKeyValueStore({"bills": "[{\"name\": 1}]"})
        with pytest.raises(StorageError, match="Corrupt snapshot"):
            LocalCollectionStore(kv, Collection.BILLS).list()


class TestJsonFileKeyValueStore:
    """Tests for file persistence."""

    def test_round_trip(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path / "guest")
        assert store.get("bills") is None
        store.set("bills", "[]")
        assert (tmp_path / "guest" / "bills.json").read_text(encoding="utf-8") == "[]"
        assert store.get("bills") == "[]"
        store.remove("bills")
        assert store.get("bills") is None

    def test_set_replaces_without_leftovers(self, tmp_path):
        store = JsonFileKeyValueStore(tmp_path)
        store.set("bills", "[]")
        store.set("bills", "[1]")
        assert [path.name for path in tmp_path.iterdir()] == ["bills.json"]
        assert store.get("bills") == "[1]"

    def test_failed_replace_keeps_old_file(self, tmp_path, monkeypatch):
        store = JsonFileKeyValueStore(tmp_path)
        store.set("bills", "[]")

        def refuse(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("household.services.storage.local.os.replace", refuse)
        with pytest.raises(OSError, match="disk full"):
            store.set("bills", "[1]")
        assert [path.name for path in tmp_path.iterdir()] == ["bills.json"]
        assert store.get("bills") == "[]"

    def test_remove_missing_key(self, tmp_path):
        JsonFileKeyValueStore(tmp_path).remove("nothing")


class TestLocalStorageBackend:
    """Tests for the backend adapter over local snapshots."""

    def test_subscribe_delivers_current_snapshot(self):
        backend = LocalStorageBackend.in_memory()
        asyncio.run(backend.add("guest", Collection.PAYERS, {"name": "Alice"}))

        views = []
        backend.subscribe("guest", Collection.PAYERS, views.append)
        assert [[payer.name for payer in view] for view in views] == [["Alice"]]

    def test_mutations_republish(self):
        backend = LocalStorageBackend.in_memory()
        views = []
        subscription = backend.subscribe("guest", Collection.SHOPPING_LIST, views.append)

        item = asyncio.run(backend.add("guest", Collection.SHOPPING_LIST, {"name": "Milk"}))
        asyncio.run(backend.update("guest", Collection.SHOPPING_LIST, item.id, {"is_done": True}))
        asyncio.run(backend.delete("guest", Collection.SHOPPING_LIST, item.id))

        assert len(views) == 4
        assert views[0] == []
        assert views[2][0].is_done is True
        assert views[3] == []
        assert subscription.deliveries == 4

    def test_closed_subscription_gets_nothing(self):
        backend = LocalStorageBackend.in_memory()
        views = []
        subscription = backend.subscribe("guest", Collection.PAYERS, views.append)
        subscription.close()
        asyncio.run(backend.add("guest", Collection.PAYERS, {"name": "Alice"}))
        assert len(views) == 1

    def test_accounts_are_partitioned(self):
        backend = LocalStorageBackend.in_memory()
        asyncio.run(backend.add("guest", Collection.PAYERS, {"name": "Alice"}))

        other = []
        backend.subscribe("uid-1", Collection.PAYERS, other.append)
        assert other == [[]]

    def test_failed_load_does_not_keep_subscription(self):
        backend = LocalStorageBackend(
            lambda account_id: InMemoryKeyValueStore({"payers": "not json"}),
        )
        views = []
        with pytest.raises(StorageError):
            backend.subscribe("guest", Collection.PAYERS, views.append)

        assert backend._subscriptions[("guest", Collection.PAYERS)] == []
        backend.collection_store("guest", Collection.PAYERS)._store.set("payers", "[]")
        asyncio.run(backend.add("guest", Collection.PAYERS, {"name": "Alice"}))
        assert views == []

    def test_reload_from_directory(self, tmp_path):
        backend = LocalStorageBackend.from_directory(tmp_path)
        bill = asyncio.run(backend.add(
            "guest",
            Collection.BILLS,
            {"name": "Rent", "amount": 1200, "due_date": "2024-04-01"},
        ))

        reloaded = LocalStorageBackend.from_directory(tmp_path)
        assert reloaded.collection_store("guest", Collection.BILLS).list() == [bill]
        assert (tmp_path / "guest" / "bills.json").exists()

    def test_snapshots_iterator(self):
        backend = LocalStorageBackend.in_memory()

        async def scenario():
            stream = backend.snapshots("guest", Collection.PAYERS)
            first = await stream.__anext__()
            await backend.add("guest", Collection.PAYERS, {"name": "Alice"})
            second = await stream.__anext__()
            await stream.aclose()
            return first, second

        first, second = asyncio.run(scenario())
        assert first == []
        assert [payer.name for payer in second] == ["Alice"]
