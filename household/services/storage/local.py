"""
Local Storage Implementation

DESIGN DECISION: Each collection is kept as one JSON array (a "snapshot")
under a stable key: missingItems, shoppingList, bills, expenses, payers.
Every mutation reads the whole snapshot, changes it and writes the whole
snapshot back.

TRADEOFFS:
- Rewriting the full snapshot is fine for household-sized lists
- No transactions: a write lost by the environment is simply gone
- Records come back in insertion order; views that need an order sort

The only guarantee is "load on subscribe, save after every mutation".
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

import structlog
from pydantic import TypeAdapter, ValidationError

from household.models.entities import Record, apply_patch, new_record
from household.services.storage.interface import (
    Collection,
    Observer,
    StorageBackend,
    StorageError,
    Subscription,
)


logger = structlog.get_logger(__name__)


class KeyValueStore(Protocol):
    """Synchronous string key-value persistence."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Non-persistent store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class JsonFileKeyValueStore:
    """One `<key>.json` file per key inside a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Write beside the target then swap, so a crash never leaves half a file
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=self.directory, suffix=".tmp", delete=False,
        ) as tmp:
            tmp_path = Path(tmp.name)
            try:
                tmp.write(value)
            except OSError:
                tmp.close()
                tmp_path.unlink(missing_ok=True)
                raise
        try:
            os.replace(tmp_path, self._path(key))
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class LocalCollectionStore:
    """
    Synchronous list/add/update/delete over one collection snapshot.
    """

    def __init__(self, store: KeyValueStore, collection: Collection):
        self._store = store
        self.collection = collection
        self._adapter = TypeAdapter(list[collection.model])

    @property
    def key(self) -> str:
        return self.collection.value

    def _load(self) -> list[Record]:
        raw = self._store.get(self.key)
        if raw is None:
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Corrupt snapshot for {self.key}: {e}")

    def _save(self, records: list[Record]) -> None:
        self._store.set(self.key, self._adapter.dump_json(records, by_alias=True).decode("utf-8"))

    def list(self) -> list[Record]:
        """Full snapshot; empty when nothing was ever saved."""
        return self._load()

    def add(self, fields: dict[str, Any]) -> Record:
        record = new_record(self.collection.model, fields)
        records = self._load()
        records.append(record)
        self._save(records)
        return record

    def update(self, record_id: str, patch: dict[str, Any]) -> None:
        records = self._load()
        for index, record in enumerate(records):
            if record.id == record_id:
                records[index] = apply_patch(record, patch)
                self._save(records)
                return
        logger.debug("local_update_skipped", collection=self.key, record_id=record_id)

    def delete(self, record_id: str) -> None:
        records = self._load()
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) != len(records):
            self._save(remaining)


class LocalStorageBackend(StorageBackend):
    """
    Local implementation of the storage backend.

    Each account gets its own key-value store; each collection inside it is
    a LocalCollectionStore. Observers are re-sent the full snapshot after
    every mutation made through this backend instance.
    """

    name = "local"

    def __init__(self, store_factory: Callable[[str], KeyValueStore]):
        self._store_factory = store_factory
        self._stores: dict[str, KeyValueStore] = {}
        self._subscriptions: dict[tuple[str, Collection], list[Subscription]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_directory(cls, data_dir: Path) -> "LocalStorageBackend":
        """Persist each account under `data_dir/<account_id>/`."""
        data_dir = Path(data_dir)
        return cls(lambda account_id: JsonFileKeyValueStore(data_dir / account_id))

    @classmethod
    def in_memory(cls) -> "LocalStorageBackend":
        return cls(lambda account_id: InMemoryKeyValueStore())

    def collection_store(self, account_id: str, collection: Collection) -> LocalCollectionStore:
        with self._lock:
            store = self._stores.get(account_id)
            if store is None:
                store = self._store_factory(account_id)
                self._stores[account_id] = store
        return LocalCollectionStore(store, collection)

    def subscribe(
        self,
        account_id: str,
        collection: Collection,
        observer: Observer,
    ) -> Subscription:
        key = (account_id, collection)
        subscription = Subscription(account_id, collection, observer)

        def remove() -> None:
            with self._lock:
                subscribers = self._subscriptions.get(key, [])
                if subscription in subscribers:
                    subscribers.remove(subscription)

        subscription.set_on_close(remove)
        with self._lock:
            self._subscriptions.setdefault(key, []).append(subscription)
        try:
            snapshot = self.collection_store(account_id, collection).list()
        except StorageError:
            subscription.close()
            raise
        subscription.deliver(snapshot)
        return subscription

    def _publish(self, account_id: str, collection: Collection) -> None:
        with self._lock:
            subscribers = list(self._subscriptions.get((account_id, collection), []))
        if not subscribers:
            return
        snapshot = self.collection_store(account_id, collection).list()
        for subscription in subscribers:
            subscription.deliver(snapshot)

    async def add(
        self,
        account_id: str,
        collection: Collection,
        fields: dict[str, Any],
    ) -> Record:
        record = self.collection_store(account_id, collection).add(fields)
        self._publish(account_id, collection)
        return record

    async def update(
        self,
        account_id: str,
        collection: Collection,
        record_id: str,
        patch: dict[str, Any],
    ) -> None:
        self.collection_store(account_id, collection).update(record_id, patch)
        self._publish(account_id, collection)

    async def delete(
        self,
        account_id: str,
        collection: Collection,
        record_id: str,
    ) -> None:
        self.collection_store(account_id, collection).delete(record_id)
        self._publish(account_id, collection)
