"""
In-memory document store for development and tests.

Behaves like the remote store as far as the backend can tell: documents
live under slash-separated collection paths, watchers get the full ordered
view on registration and after every write, updating a missing document
fails, deleting one does not. Several backends can share one instance to
play the part of several clients.
"""

import copy
import threading
from typing import Any, Callable, Optional

from household.services.storage.interface import NotFoundError, Ordering
from household.services.storage.remote import DocumentsCallback


class InMemoryDocumentStore:
    """Simple in-memory document database."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._watchers: dict[str, list[tuple[Ordering, DocumentsCallback]]] = {}
        self._lock = threading.RLock()

    def _query(self, collection_path: str, ordering: Ordering) -> list[tuple[str, dict[str, Any]]]:
        documents = self.collections.get(collection_path, {})
        # Like an ordered query, documents without the order field are left out
        matching = [
            (doc_id, copy.deepcopy(data))
            for doc_id, data in documents.items()
            if ordering.field in data
        ]

        def sort_key(item: tuple[str, dict[str, Any]]) -> tuple:
            value = item[1][ordering.field]
            return (value is not None, value if value is not None else 0, item[0])

        return sorted(matching, key=sort_key, reverse=ordering.descending)

    def _notify(self, collection_path: str) -> None:
        # Called with the lock held, so views reach watchers in write order
        for ordering, callback in list(self._watchers.get(collection_path, [])):
            callback(self._query(collection_path, ordering))

    def set_document(
        self,
        collection_path: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        with self._lock:
            documents = self.collections.setdefault(collection_path, {})
            if merge and doc_id in documents:
                documents[doc_id].update(copy.deepcopy(data))
            else:
                documents[doc_id] = copy.deepcopy(data)
            self._notify(collection_path)

    def update_document(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        with self._lock:
            documents = self.collections.get(collection_path, {})
            if doc_id not in documents:
                raise NotFoundError(f"No document to update: {collection_path}/{doc_id}")
            documents[doc_id].update(copy.deepcopy(data))
            self._notify(collection_path)

    def delete_document(self, collection_path: str, doc_id: str) -> None:
        with self._lock:
            removed = self.collections.get(collection_path, {}).pop(doc_id, None)
            if removed is not None:
                self._notify(collection_path)

    def get_document(self, collection_path: str, doc_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            data = self.collections.get(collection_path, {}).get(doc_id)
            return copy.deepcopy(data) if data is not None else None

    def watch(
        self,
        collection_path: str,
        ordering: Ordering,
        callback: DocumentsCallback,
    ) -> Callable[[], None]:
        entry = (ordering, callback)
        with self._lock:
            self._watchers.setdefault(collection_path, []).append(entry)
            callback(self._query(collection_path, ordering))

        def unsubscribe() -> None:
            with self._lock:
                watchers = self._watchers.get(collection_path, [])
                if entry in watchers:
                    watchers.remove(entry)

        return unsubscribe

    def watcher_count(self, collection_path: str) -> int:
        with self._lock:
            return len(self._watchers.get(collection_path, []))

    def close(self) -> None:
        with self._lock:
            self._watchers.clear()
