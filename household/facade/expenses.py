"""
Expense and payer facades.

Monthly views group expenses by the YYYY-MM prefix of their date. Payer
names are deduplicated case-insensitively against the payer view this
facade last received, so two sessions adding the same new name at the
same moment can still both create it.
"""

from datetime import date
from typing import Optional, Union

from household.facade.base import CollectionFacade
from household.models.entities import Expense, Payer, find_payer
from household.services.storage.interface import Collection


class ExpensesFacade(CollectionFacade[Expense]):
    """Shared expenses with payer attribution."""

    collection = Collection.EXPENSES

    @property
    def expenses(self) -> list[Expense]:
        return self.items

    async def add_expense(
        self,
        description: str,
        amount: Union[str, float, int, None],
        category: Optional[str],
        spent_on: Union[str, date, None],
        paid_by: Optional[str],
    ) -> Optional[Expense]:
        """Add an expense; a blank payer is recorded as "Unknown"."""
        result = self._validator.validate_expense(
            description, amount, category, spent_on, paid_by,
        )
        return await self._add(result)

    async def delete_expense(self, expense_id: str) -> None:
        await self._delete(expense_id)

    def expenses_for_month(self, month: str) -> list[Expense]:
        """Expenses dated in `month` (YYYY-MM), in view order."""
        return [expense for expense in self.items if expense.month == month]

    def month_total(self, month: str) -> float:
        return sum((expense.amount for expense in self.expenses_for_month(month)), 0.0)

    def totals_by_payer(self, month: str) -> dict[str, float]:
        """Amount paid per payer name within `month`."""
        totals: dict[str, float] = {}
        for expense in self.expenses_for_month(month):
            totals[expense.paid_by] = totals.get(expense.paid_by, 0.0) + expense.amount
        return totals

    def available_months(self) -> list[str]:
        """Months that have expenses, newest first."""
        return sorted({expense.month for expense in self.items}, reverse=True)


class PayersFacade(CollectionFacade[Payer]):
    """People who pay for shared expenses."""

    collection = Collection.PAYERS

    @property
    def payers(self) -> list[Payer]:
        return self.items

    async def add_payer(self, name: str) -> Optional[Payer]:
        """
        Return the payer with this name, creating it if needed.

        The match ignores case and surrounding whitespace. Blank names are
        ignored and return None.
        """
        result = self._validator.validate_payer(name)
        if not result.is_valid:
            self._reject([issue.model_dump() for issue in result.issues])
            return None

        existing = find_payer(self.payers, result.cleaned["name"])
        if existing is not None:
            self._audit_logger.log_payer_reused(self.account_id, existing.id, existing.name)
            return existing
        return await self._add(result)
