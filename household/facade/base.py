"""
Data-Access Facade Base

DESIGN DECISION: Presentation code never touches a storage backend. It
reads the current records and `is_loaded` from a facade and calls the
facade's mutation coroutines. The facade:
1. Validates form input and ignores what fails (no write, no exception)
2. Sends the mutation to whichever backend it was built with
3. Replaces its cached records wholesale on every subscription push

There is no client-side merging: whatever the backend last delivered is
the state. Optimistic local changes do not exist.
"""

import threading
from typing import AsyncIterator, Callable, ClassVar, Generic, Optional, TypeVar

from pydantic import ValidationError

from household.audit import AuditLogger
from household.models.account import AccountContext
from household.models.entities import Record
from household.models.validation import ValidationResult
from household.services.storage.interface import (
    Collection,
    StorageBackend,
    StorageError,
    Subscription,
)
from household.validation import InputValidator


RecordT = TypeVar("RecordT", bound=Record)
Listener = Callable[[list], None]


class CollectionFacade(Generic[RecordT]):
    """
    Reactive view plus mutations for one collection of one account.

    Use as a context manager, or call `open()` / `close()` around the
    lifetime of the screen showing it.
    """

    collection: ClassVar[Collection]

    def __init__(
        self,
        backend: StorageBackend,
        account: AccountContext,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[InputValidator] = None,
    ):
        self._backend = backend
        self._account = account
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or InputValidator()
        self._records: list[RecordT] = []
        self._is_loaded = False
        self._subscription: Optional[Subscription] = None
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Reactive state
    # -------------------------------------------------------------------------

    @property
    def account(self) -> AccountContext:
        return self._account

    @property
    def account_id(self) -> str:
        return self._account.account_id

    @property
    def items(self) -> list[RecordT]:
        """Records of the last delivered view, in delivery order."""
        with self._lock:
            return list(self._records)

    @property
    def is_loaded(self) -> bool:
        """False until the first view has arrived."""
        return self._is_loaded

    def find(self, record_id: str) -> Optional[RecordT]:
        for record in self.items:
            if record.id == record_id:
                return record
        return None

    def on_change(self, listener: Listener) -> Callable[[], None]:
        """
        Call `listener` with the new records after every delivered view.

        Returns a function that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def _receive(self, snapshot: list[RecordT]) -> None:
        with self._lock:
            self._records = list(snapshot)
            self._is_loaded = True
            listeners = list(self._listeners)
            records = list(self._records)
        for listener in listeners:
            listener(records)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open(self):
        """Subscribe to the collection (idempotent)."""
        if self._subscription is None or self._subscription.closed:
            self._subscription = self._backend.subscribe(
                self.account_id, self.collection, self._receive,
            )
            self._audit_logger.log_subscription_opened(
                self.account_id, self.collection.value, self._backend.name,
            )
        return self

    def close(self) -> None:
        """Stop receiving views. The last one stays readable."""
        if self._subscription is not None and not self._subscription.closed:
            self._subscription.close()
            self._audit_logger.log_subscription_closed(self.account_id, self.collection.value)
        self._subscription = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def stream(self) -> AsyncIterator[list[RecordT]]:
        """Async iterator of full views, independent of this facade's cache."""
        return self._backend.snapshots(self.account_id, self.collection)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _reject(self, issues: list[dict]) -> None:
        self._audit_logger.log_input_rejected(self.account_id, self.collection.value, issues)

    async def _add(self, result: ValidationResult) -> Optional[RecordT]:
        """
        Create a record from validated input.

        Returns None (and writes nothing) when the input was invalid.

        Raises:
            StorageError: If the backend rejects the write
        """
        if not result.is_valid:
            self._reject([issue.model_dump() for issue in result.issues])
            return None
        try:
            record = await self._backend.add(self.account_id, self.collection, result.cleaned)
        except ValidationError as e:
            self._reject(e.errors(include_url=False, include_context=False))
            return None
        except StorageError as e:
            self._audit_logger.log_mutation_failed(
                self.account_id, self.collection.value, "add", e,
            )
            raise
        self._audit_logger.log_record_added(self.account_id, self.collection.value, record.id)
        return record

    async def _update(self, record_id: str, patch: dict) -> None:
        try:
            await self._backend.update(self.account_id, self.collection, record_id, patch)
        except StorageError as e:
            self._audit_logger.log_mutation_failed(
                self.account_id, self.collection.value, "update", e, record_id,
            )
            raise
        self._audit_logger.log_record_updated(
            self.account_id, self.collection.value, record_id, sorted(patch),
        )

    async def _delete(self, record_id: str) -> None:
        try:
            await self._backend.delete(self.account_id, self.collection, record_id)
        except StorageError as e:
            self._audit_logger.log_mutation_failed(
                self.account_id, self.collection.value, "delete", e, record_id,
            )
            raise
        self._audit_logger.log_record_deleted(self.account_id, self.collection.value, record_id)
