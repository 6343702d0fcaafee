"""
Bills facade.

Paid status is flipped through `toggle_bill_status`, which always sends
`is_paid` and `paid_date` together so a bill is never paid without a paid
date (or unpaid with one). "Today" is the local calendar date.
"""

from datetime import date
from typing import Callable, Optional, Union

from household.facade.base import CollectionFacade
from household.models.entities import Bill
from household.services.storage.interface import Collection


class BillsFacade(CollectionFacade[Bill]):
    """Bills to pay, one-off or recurring."""

    collection = Collection.BILLS

    def __init__(self, *args, today: Callable[[], date] = date.today, **kwargs):
        super().__init__(*args, **kwargs)
        self._today = today

    @property
    def bills(self) -> list[Bill]:
        return self.items

    async def add_bill(
        self,
        name: str,
        amount: Union[str, float, int, None],
        due_date: Union[str, date, None],
        is_recurring: bool = False,
    ) -> Optional[Bill]:
        """Add an unpaid bill; invalid name, amount or date is ignored."""
        result = self._validator.validate_bill(name, amount, due_date, is_recurring)
        return await self._add(result)

    async def toggle_bill_status(self, bill_id: str) -> None:
        """Mark paid (stamping today's date) or unpaid (clearing it)."""
        bill = self.find(bill_id)
        if bill is None:
            return
        await self._update(bill_id, bill.toggle_patch(self._today()))

    async def delete_bill(self, bill_id: str) -> None:
        await self._delete(bill_id)

    def get_bills_sorted(self) -> list[Bill]:
        """Bills by due date, earliest first; equal dates keep their order."""
        return sorted(self.items, key=lambda bill: bill.due_date)

    def is_overdue(self, bill: Bill) -> bool:
        """Unpaid and due strictly before today. Due today is not overdue."""
        return bill.is_overdue(self._today())

    def overdue_bills(self) -> list[Bill]:
        return [bill for bill in self.get_bills_sorted() if self.is_overdue(bill)]
