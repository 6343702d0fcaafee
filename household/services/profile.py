"""
User Profile Service

Reads and writes the display profile kept alongside each authenticated
account in the remote store ({profiles_collection}/{account_id}).
The guest partition has no profile.
"""

import asyncio
from typing import Optional

import structlog
from pydantic import ValidationError

from household.models.account import AccountContext
from household.models.entities import UserProfile
from household.services.storage.interface import StorageError
from household.services.storage.remote import DocumentStore


logger = structlog.get_logger(__name__)


class ProfileService:
    """Profile documents for signed-in accounts."""

    def __init__(self, store: DocumentStore, profiles_collection: str = "users"):
        self._store = store
        self._collection = profiles_collection

    async def get_profile(self, account: AccountContext) -> Optional[UserProfile]:
        """
        Fetch the profile of an account.

        Returns None for the guest account and when no profile exists.

        Raises:
            StorageError: If the read fails
        """
        if account.is_guest:
            return None
        data = await asyncio.to_thread(
            self._store.get_document, self._collection, account.account_id,
        )
        if data is None:
            return None
        try:
            return UserProfile.model_validate(data)
        except ValidationError as e:
            logger.warning("profile_invalid", account_id=account.account_id, error=str(e))
            return None

    async def display_name(self, account: AccountContext) -> str:
        """Name to greet the user with; empty when unknown or unreachable."""
        try:
            profile = await self.get_profile(account)
        except StorageError as e:
            logger.error("profile_fetch_failed", account_id=account.account_id, error=str(e))
            return ""
        return profile.name if profile else ""

    async def create_profile(
        self,
        account: AccountContext,
        email: str,
        name: Optional[str] = None,
    ) -> UserProfile:
        """Write the profile created at sign-up."""
        if account.is_guest:
            raise ValueError("The guest account cannot have a profile")
        profile = UserProfile.for_sign_up(email=email, name=name)
        await asyncio.to_thread(
            self._store.set_document,
            self._collection,
            account.account_id,
            profile.model_dump(mode="json", by_alias=True),
            True,
        )
        return profile
