"""
Remote Storage Implementation

DESIGN DECISION: The remote backend is written against a small, synchronous
document-store protocol instead of a vendor SDK. Cloud Firestore implements
it in production; an in-memory store implements it for tests.

Layout: one document per record at
    {root_collection}/{account_id}/{collection}/{record_id}
with optional fields written as explicit nulls.

TRADEOFFS:
- Each subscription is a live ordered query; the store pushes the full
  view on every change from any client
- Blocking store calls run in a worker thread so mutations are awaitable
- No retries on mutations; failures surface to the caller as StorageError
"""

import asyncio
from typing import Any, Callable, Optional, Protocol

from pydantic import ValidationError

from household.audit import AuditLogger
from household.models.entities import (
    Record,
    decode_document,
    encode_document,
    encode_patch,
    new_record,
)
from household.services.storage.interface import (
    Collection,
    Observer,
    Ordering,
    StorageBackend,
    StorageError,
    Subscription,
)


DocumentsCallback = Callable[[list[tuple[str, dict[str, Any]]]], None]


class DocumentStore(Protocol):
    """
    Operations the remote backend needs from a document database.

    Implementations raise StorageError subclasses, never vendor exceptions.
    """

    def set_document(
        self,
        collection_path: str,
        doc_id: str,
        data: dict[str, Any],
        merge: bool = False,
    ) -> None:
        ...

    def update_document(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        ...

    def delete_document(self, collection_path: str, doc_id: str) -> None:
        ...

    def get_document(self, collection_path: str, doc_id: str) -> Optional[dict[str, Any]]:
        ...

    def watch(
        self,
        collection_path: str,
        ordering: Ordering,
        callback: DocumentsCallback,
    ) -> Callable[[], None]:
        """Start a live ordered query; returns the function that stops it."""
        ...

    def close(self) -> None:
        ...


class RemoteStorageBackend(StorageBackend):
    """
    Document-store implementation of the storage backend.

    Every path is built under the account's partition, so no call made
    through this class can read or write another account's records.
    """

    name = "remote"

    def __init__(
        self,
        store: DocumentStore,
        root_collection: str = "users",
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._root = root_collection
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def store(self) -> DocumentStore:
        return self._store

    def collection_path(self, account_id: str, collection: Collection) -> str:
        return f"{self._root}/{account_id}/{collection.value}"

    def _decode(
        self,
        account_id: str,
        collection: Collection,
        documents: list[tuple[str, dict[str, Any]]],
    ) -> list[Record]:
        records = []
        for doc_id, data in documents:
            try:
                records.append(decode_document(collection.model, doc_id, data))
            except ValidationError as e:
                # Skip malformed documents rather than losing the whole view
                self._audit_logger.log_record_skipped(
                    account_id, collection.value, doc_id, str(e),
                )
        return records

    def subscribe(
        self,
        account_id: str,
        collection: Collection,
        observer: Observer,
    ) -> Subscription:
        subscription = Subscription(account_id, collection, observer)

        def on_documents(documents: list[tuple[str, dict[str, Any]]]) -> None:
            subscription.deliver(self._decode(account_id, collection, documents))

        path = self.collection_path(account_id, collection)
        try:
            unsubscribe = self._store.watch(path, collection.ordering, on_documents)
        except StorageError as e:
            self._audit_logger.log_error(type(e).__name__, str(e), {"path": path})
            raise
        subscription.set_on_close(unsubscribe)
        return subscription

    async def add(
        self,
        account_id: str,
        collection: Collection,
        fields: dict[str, Any],
    ) -> Record:
        # Validated before anything is sent
        record = new_record(collection.model, fields)
        await asyncio.to_thread(
            self._store.set_document,
            self.collection_path(account_id, collection),
            record.id,
            encode_document(record),
        )
        return record

    async def update(
        self,
        account_id: str,
        collection: Collection,
        record_id: str,
        patch: dict[str, Any],
    ) -> None:
        await asyncio.to_thread(
            self._store.update_document,
            self.collection_path(account_id, collection),
            record_id,
            encode_patch(collection.model, patch),
        )

    async def delete(
        self,
        account_id: str,
        collection: Collection,
        record_id: str,
    ) -> None:
        await asyncio.to_thread(
            self._store.delete_document,
            self.collection_path(account_id, collection),
            record_id,
        )

    def close(self) -> None:
        self._store.close()
