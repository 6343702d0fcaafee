"""
Data-access facades.

One facade per record kind, all with the same shape regardless of which
storage backend answers them.
"""

from household.facade.base import CollectionFacade
from household.facade.bills import BillsFacade
from household.facade.expenses import ExpensesFacade, PayersFacade
from household.facade.items import MissingItemsFacade, ShoppingListFacade

__all__ = [
    "BillsFacade",
    "CollectionFacade",
    "ExpensesFacade",
    "MissingItemsFacade",
    "PayersFacade",
    "ShoppingListFacade",
]
