"""
Missing-item and shopping-list facades.
"""

import asyncio
from typing import Optional

from household.facade.base import CollectionFacade
from household.models.entities import MissingItem, ShoppingItem
from household.services.storage.interface import BatchDeleteError, Collection


class MissingItemsFacade(CollectionFacade[MissingItem]):
    """Things that ran out at home."""

    collection = Collection.MISSING_ITEMS

    async def add_item(
        self,
        name: str,
        category: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Optional[MissingItem]:
        """Record a missing item; blank names are ignored."""
        result = self._validator.validate_missing_item(name, category, note)
        return await self._add(result)

    async def delete_item(self, item_id: str) -> None:
        await self._delete(item_id)

    async def move_to_shopping(self, item: MissingItem) -> MissingItem:
        """Drop the item from this list and hand it back for the shopping list."""
        await self._delete(item.id)
        return item


class ShoppingListFacade(CollectionFacade[ShoppingItem]):
    """The shopping list."""

    collection = Collection.SHOPPING_LIST

    async def add_item(
        self,
        name: str,
        category: Optional[str] = None,
    ) -> Optional[ShoppingItem]:
        result = self._validator.validate_shopping_item(name, category)
        return await self._add(result)

    async def add_from_missing(self, item: MissingItem) -> Optional[ShoppingItem]:
        """New, not-done shopping entry with the missing item's name and category."""
        return await self.add_item(item.name, item.category)

    async def toggle_item(self, item_id: str) -> None:
        """Flip `is_done`. Ids not in the current view are ignored."""
        item = self.find(item_id)
        if item is None:
            return
        await self._update(item_id, {"is_done": not item.is_done})

    async def delete_item(self, item_id: str) -> None:
        await self._delete(item_id)

    async def clear_done_items(self) -> None:
        """
        Delete every item currently marked done, concurrently.

        Succeeds only if every delete succeeds. Deletes that did go through
        are not rolled back; the next view shows what is actually left.

        Raises:
            BatchDeleteError: If any of the deletes failed
        """
        done = [item for item in self.items if item.is_done]
        if not done:
            return

        results = await asyncio.gather(
            *(
                self._backend.delete(self.account_id, self.collection, item.id)
                for item in done
            ),
            return_exceptions=True,
        )

        failures = {}
        for item, result in zip(done, results):
            if isinstance(result, Exception):
                failures[item.id] = result
            else:
                self._audit_logger.log_record_deleted(
                    self.account_id, self.collection.value, item.id,
                )

        if failures:
            self._audit_logger.log_batch_delete_failed(
                self.account_id, self.collection.value, sorted(failures), len(done),
            )
            raise BatchDeleteError(failures, attempted=len(done))
