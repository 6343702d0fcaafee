"""
Composition Root for Household Manager

This module ties the components together for one account:
1. Pick the storage backend named in configuration
2. Build the five record facades on top of it
3. Open and close their subscriptions together

DESIGN DECISION: The account is always passed in explicitly. Nothing below
this module looks up "the current user"; signing in or out means building
a new HouseholdFacade for the new account.
"""

from datetime import date
from typing import Callable, Optional

import structlog

from household.audit import AuditLogger, configure_logging
from household.config import Settings, get_settings
from household.facade import (
    BillsFacade,
    ExpensesFacade,
    MissingItemsFacade,
    PayersFacade,
    ShoppingListFacade,
)
from household.models.account import AccountContext
from household.models.entities import MissingItem, ShoppingItem
from household.services.storage import (
    LocalStorageBackend,
    RemoteStorageBackend,
    StorageBackend,
)
from household.validation import InputValidator


logger = structlog.get_logger(__name__)


class HouseholdFacade:
    """
    All record facades of one account, sharing one backend.

    Usage:
        with create_household(AccountContext.guest()) as household:
            await household.shopping.add_item("Milk")
    """

    def __init__(
        self,
        backend: StorageBackend,
        account: AccountContext,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self.backend = backend
        self.account = account
        audit_logger = audit_logger or AuditLogger()
        validator = InputValidator()

        shared = dict(audit_logger=audit_logger, validator=validator)
        self.missing = MissingItemsFacade(backend, account, **shared)
        self.shopping = ShoppingListFacade(backend, account, **shared)
        self.bills = BillsFacade(backend, account, today=today, **shared)
        self.expenses = ExpensesFacade(backend, account, **shared)
        self.payers = PayersFacade(backend, account, **shared)

    @property
    def facades(self) -> tuple:
        return (self.missing, self.shopping, self.bills, self.expenses, self.payers)

    @property
    def is_loaded(self) -> bool:
        return all(facade.is_loaded for facade in self.facades)

    def open(self) -> "HouseholdFacade":
        for facade in self.facades:
            facade.open()
        return self

    def close(self) -> None:
        """Close every subscription. The backend itself stays usable."""
        for facade in self.facades:
            facade.close()

    def __enter__(self) -> "HouseholdFacade":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def move_missing_to_shopping(self, item: MissingItem) -> Optional[ShoppingItem]:
        """
        Put a missing item on the shopping list, then drop it from missing items.

        The missing item is only deleted once the shopping entry was written.
        """
        added = await self.shopping.add_from_missing(item)
        if added is not None:
            await self.missing.move_to_shopping(item)
        return added


def create_backend(settings: Optional[Settings] = None) -> StorageBackend:
    """
    Build the storage backend selected by `STORAGE_BACKEND`.

    The Firestore transport is imported only when the remote backend is
    chosen, so the local backend works without Google credentials.
    """
    settings = settings or get_settings()
    app_settings = settings.app

    if app_settings.storage_backend == "remote":
        from household.services.storage.firestore import FirestoreDocumentStore

        firestore_settings = settings.firestore
        logger.info(
            "storage_backend_selected",
            backend="remote",
            root_collection=firestore_settings.root_collection,
        )
        return RemoteStorageBackend(
            FirestoreDocumentStore(firestore_settings),
            root_collection=firestore_settings.root_collection,
        )

    data_dir = settings.local_storage.data_dir
    logger.info("storage_backend_selected", backend="local", data_dir=str(data_dir))
    return LocalStorageBackend.from_directory(data_dir)


def create_household(
    account: Optional[AccountContext] = None,
    backend: Optional[StorageBackend] = None,
    settings: Optional[Settings] = None,
) -> HouseholdFacade:
    """
    Factory function to create the facades for one account.

    Args:
        account: Account partition to use. Defaults to the configured
                 default account (the guest partition).
        backend: Backend to use instead of the configured one, e.g. an
                 in-memory backend in tests.

    Returns:
        An unopened HouseholdFacade
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging("DEBUG" if app_settings.debug_mode else app_settings.log_level)

    account = account or AccountContext(account_id=app_settings.default_account_id)
    if backend is None:
        backend = create_backend(settings)
    return HouseholdFacade(backend, account)
