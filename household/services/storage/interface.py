"""
Abstract Storage Interface

DESIGN DECISION: We define one abstract interface for storage operations.
This allows us to:
1. Swap the local file backend for the remote document store at startup
2. Use in-memory stores for testing
3. Keep the facade unaware of transport and consistency details

Every backend delivers collection state the same way: an observer is
registered per account + collection and receives the full materialized
view, first on subscribe and again after every mutation it can see.
Mutations never return the new view; the subscription is the single
source of truth for "did my write apply".
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Callable, Optional, Sequence

from household.models.entities import (
    Bill,
    Expense,
    MissingItem,
    Payer,
    Record,
    ShoppingItem,
)


class Collection(str, Enum):
    """Logical collection names, shared by both backends."""
    MISSING_ITEMS = "missingItems"
    SHOPPING_LIST = "shoppingList"
    BILLS = "bills"
    EXPENSES = "expenses"
    PAYERS = "payers"

    @property
    def model(self) -> type[Record]:
        return COLLECTION_MODELS[self]

    @property
    def ordering(self) -> "Ordering":
        return COLLECTION_ORDERING[self]


@dataclass(frozen=True)
class Ordering:
    """Canonical sort of a collection's subscription (stored field name)."""
    field: str
    descending: bool


COLLECTION_MODELS: dict[Collection, type[Record]] = {
    Collection.MISSING_ITEMS: MissingItem,
    Collection.SHOPPING_LIST: ShoppingItem,
    Collection.BILLS: Bill,
    Collection.EXPENSES: Expense,
    Collection.PAYERS: Payer,
}

COLLECTION_ORDERING: dict[Collection, Ordering] = {
    Collection.MISSING_ITEMS: Ordering("createdAt", descending=True),
    Collection.SHOPPING_LIST: Ordering("createdAt", descending=True),
    Collection.BILLS: Ordering("dueDate", descending=False),
    Collection.EXPENSES: Ordering("createdAt", descending=True),
    Collection.PAYERS: Ordering("createdAt", descending=True),
}


Snapshot = list[Record]
Observer = Callable[[Snapshot], None]


class Subscription:
    """
    Handle for one observer registered on one account + collection.

    Backends call `deliver` with each new snapshot; owners call `close`
    to stop deliveries. Deliveries may arrive on a background thread.
    """

    def __init__(
        self,
        account_id: str,
        collection: Collection,
        observer: Observer,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.account_id = account_id
        self.collection = collection
        self._observer = observer
        self._on_close = on_close
        self._lock = threading.Lock()
        self._closed = False
        self._deliveries = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def deliveries(self) -> int:
        """Number of snapshots delivered so far."""
        return self._deliveries

    def set_on_close(self, on_close: Callable[[], None]) -> None:
        with self._lock:
            if not self._closed:
                self._on_close = on_close
                return
        # Closed before the backend finished wiring it up
        on_close()

    def deliver(self, snapshot: Sequence[Record]) -> None:
        with self._lock:
            if self._closed:
                return
            self._deliveries += 1
        self._observer(list(snapshot))

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            on_close, self._on_close = self._on_close, None
        if on_close is not None:
            on_close()


class StorageBackend(ABC):
    """
    Abstract interface every storage backend implements.

    All reads and writes are scoped to an account partition. Mutations are
    coroutines so both backends share one call signature; the local
    backend completes them without suspending.
    """

    name: str = "abstract"

    @abstractmethod
    def subscribe(
        self,
        account_id: str,
        collection: Collection,
        observer: Observer,
    ) -> Subscription:
        """
        Register an observer for the full view of a collection.

        The observer receives the current view once the backend has loaded
        it, then again after every visible change, until the returned
        subscription is closed.
        """
        pass

    @abstractmethod
    async def add(
        self,
        account_id: str,
        collection: Collection,
        fields: dict[str, Any],
    ) -> Record:
        """
        Create a record from `fields` (id and createdAt are filled in).

        Raises:
            pydantic.ValidationError: If the fields break the record schema
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update(
        self,
        account_id: str,
        collection: Collection,
        record_id: str,
        patch: dict[str, Any],
    ) -> None:
        """
        Apply a partial update (snake_case field names) to one record.

        Raises:
            StorageError: If the write fails
            NotFoundError: If the backend reports the record missing
        """
        pass

    @abstractmethod
    async def delete(
        self,
        account_id: str,
        collection: Collection,
        record_id: str,
    ) -> None:
        """Delete one record. Deleting an unknown id is not an error."""
        pass

    async def snapshots(
        self,
        account_id: str,
        collection: Collection,
    ) -> AsyncIterator[Snapshot]:
        """
        Lazy, infinite sequence of full-collection snapshots.

        Subscribes on first iteration and unsubscribes when the iterator is
        closed. Iterating again starts a fresh subscription, which begins
        with the current view.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Snapshot] = asyncio.Queue()

        def enqueue(snapshot: Snapshot) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, snapshot)

        subscription = self.subscribe(account_id, collection, enqueue)
        try:
            while True:
                yield await queue.get()
        finally:
            subscription.close()

    def close(self) -> None:
        """Release backend resources. Subclasses override when they hold any."""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class PermissionDeniedError(StorageError):
    """The backend refused the operation for this account."""
    pass


class StorageConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass


class BatchDeleteError(StorageError):
    """Some deletes of a batch failed; the ones that succeeded are not rolled back."""

    def __init__(self, failures: dict[str, Exception], attempted: int):
        self.failures = failures
        self.attempted = attempted
        super().__init__(
            f"{len(failures)} of {attempted} deletes failed: "
            + ", ".join(sorted(failures))
        )
