"""
Facade behaviour, run against both the local and the remote backend.
"""

import asyncio
from datetime import date

import pytest

from household.facade import ShoppingListFacade
from household.models.account import AccountContext
from household.services.storage import (
    BatchDeleteError,
    StorageConnectionError,
)


class TestFacadeLifecycle:
    """Tests for subscriptions and the cached view."""

    def test_loaded_after_open(self, household):
        assert household.is_loaded is True
        assert household.shopping.items == []

    def test_not_loaded_before_open(self, backend, account):
        facade = ShoppingListFacade(backend, account)
        assert facade.is_loaded is False

    def test_context_manager(self, backend, account):
        with ShoppingListFacade(backend, account) as facade:
            asyncio.run(facade.add_item("Milk"))
            assert [item.name for item in facade.items] == ["Milk"]

        asyncio.run(facade.add_item("Bread"))
        assert [item.name for item in facade.items] == ["Milk"]

    def test_on_change_listener(self, household):
        seen = []
        remove = household.shopping.on_change(seen.append)
        asyncio.run(household.shopping.add_item("Milk"))
        remove()
        asyncio.run(household.shopping.add_item("Bread"))

        assert len(seen) == 1
        assert seen[0][0].name == "Milk"

    def test_two_facades_share_backend(self, backend, account):
        with ShoppingListFacade(backend, account) as writer, \
                ShoppingListFacade(backend, account) as reader:
            asyncio.run(writer.add_item("Milk"))
            assert [item.name for item in reader.items] == ["Milk"]

    def test_accounts_are_separate(self, backend):
        with ShoppingListFacade(backend, AccountContext.guest()) as guest, \
                ShoppingListFacade(backend, AccountContext(account_id="uid-1")) as user:
            asyncio.run(guest.add_item("Milk"))
            assert user.items == []


class TestMissingItems:
    """Tests for the missing-items facade."""

    def test_add_item_trims_and_nulls(self, household):
        item = asyncio.run(household.missing.add_item("  Olive oil  "))

        assert household.missing.items == [item]
        assert item.name == "Olive oil"
        assert item.category is None
        assert item.note is None

    def test_blank_name_is_ignored(self, household):
        assert asyncio.run(household.missing.add_item("   ")) is None
        assert household.missing.items == []

    def test_delete_item(self, household):
        item = asyncio.run(household.missing.add_item("Eggs"))
        asyncio.run(household.missing.delete_item(item.id))
        assert household.missing.items == []

    def test_move_to_shopping(self, household):
        item = asyncio.run(household.missing.add_item("Eggs", "Dairy", "free range"))

        added = asyncio.run(household.move_missing_to_shopping(item))

        assert household.missing.items == []
        assert [(entry.name, entry.category, entry.is_done) for entry in household.shopping.items] == [
            ("Eggs", "Dairy", False),
        ]
        assert added.id != item.id


class TestShoppingList:
    """Tests for the shopping-list facade."""

    def test_toggle_and_clear_done(self, household):
        shopping = household.shopping
        milk = asyncio.run(shopping.add_item("Milk"))

        asyncio.run(shopping.toggle_item(milk.id))
        assert shopping.find(milk.id).is_done is True

        asyncio.run(shopping.clear_done_items())
        assert shopping.items == []

        # Nothing left to clear
        asyncio.run(shopping.clear_done_items())
        assert shopping.items == []

    def test_toggle_twice_restores(self, household):
        milk = asyncio.run(household.shopping.add_item("Milk"))
        asyncio.run(household.shopping.toggle_item(milk.id))
        asyncio.run(household.shopping.toggle_item(milk.id))
        assert household.shopping.find(milk.id).is_done is False

    def test_toggle_unknown_id_is_noop(self, household):
        asyncio.run(household.shopping.add_item("Milk"))
        asyncio.run(household.shopping.toggle_item("not-there"))
        assert household.shopping.items[0].is_done is False

    def test_clear_done_keeps_open_items(self, household):
        shopping = household.shopping
        milk = asyncio.run(shopping.add_item("Milk"))
        asyncio.run(shopping.add_item("Bread"))
        asyncio.run(shopping.toggle_item(milk.id))

        asyncio.run(shopping.clear_done_items())
        assert [item.name for item in shopping.items] == ["Bread"]

    def test_clear_done_reports_failures(self, household, backend, monkeypatch):
        shopping = household.shopping
        milk = asyncio.run(shopping.add_item("Milk"))
        bread = asyncio.run(shopping.add_item("Bread"))
        asyncio.run(shopping.toggle_item(milk.id))
        asyncio.run(shopping.toggle_item(bread.id))

        real_delete = backend.delete

        async def flaky_delete(account_id, collection, record_id):
            if record_id == bread.id:
                raise StorageConnectionError("offline")
            await real_delete(account_id, collection, record_id)

        monkeypatch.setattr(backend, "delete", flaky_delete)

        with pytest.raises(BatchDeleteError) as excinfo:
            asyncio.run(shopping.clear_done_items())

        assert list(excinfo.value.failures) == [bread.id]
        assert excinfo.value.attempted == 2
        # No rollback: the successful delete stays applied
        assert [item.id for item in shopping.items] == [bread.id]

    def test_add_failure_propagates(self, household, backend, monkeypatch):
        async def offline_add(account_id, collection, fields):
            raise StorageConnectionError("offline")

        monkeypatch.setattr(backend, "add", offline_add)
        with pytest.raises(StorageConnectionError):
            asyncio.run(household.shopping.add_item("Milk"))


class TestBills:
    """Tests for the bills facade."""

    def test_add_bill_starts_unpaid(self, household):
        bill = asyncio.run(household.bills.add_bill("Rent", "1200", "2024-04-01", True))

        assert household.bills.bills == [bill]
        assert bill.amount == 1200.0
        assert bill.is_paid is False
        assert bill.paid_date is None
        assert bill.is_recurring is True

    @pytest.mark.parametrize("amount, due_date", [
        ("abc", "2024-04-01"),
        ("0", "2024-04-01"),
        ("-3", "2024-04-01"),
        ("10", "someday"),
    ])
    def test_invalid_bill_is_ignored(self, household, amount, due_date):
        assert asyncio.run(household.bills.add_bill("Rent", amount, due_date)) is None
        assert household.bills.bills == []

    def test_toggle_sets_and_clears_paid_date(self, household, today):
        bill = asyncio.run(household.bills.add_bill("Power", 80, "2024-03-25"))

        asyncio.run(household.bills.toggle_bill_status(bill.id))
        paid = household.bills.find(bill.id)
        assert paid.is_paid is True
        assert paid.paid_date == today

        asyncio.run(household.bills.toggle_bill_status(bill.id))
        unpaid = household.bills.find(bill.id)
        assert unpaid.is_paid is False
        assert unpaid.paid_date is None

    def test_toggle_unknown_bill_is_noop(self, household):
        asyncio.run(household.bills.toggle_bill_status("not-there"))
        assert household.bills.bills == []

    def test_overdue(self, household, today):
        bills = household.bills
        late = asyncio.run(bills.add_bill("Late", 10, date(2024, 3, 19)))
        due_today = asyncio.run(bills.add_bill("Today", 10, today))
        paid_late = asyncio.run(bills.add_bill("Paid", 10, date(2024, 3, 1)))
        asyncio.run(bills.toggle_bill_status(paid_late.id))

        assert bills.is_overdue(late) is True
        assert bills.is_overdue(due_today) is False
        assert bills.is_overdue(bills.find(paid_late.id)) is False
        assert [bill.id for bill in bills.overdue_bills()] == [late.id]

    def test_sorted_by_due_date_and_stable(self, household):
        bills = household.bills
        for name, due in [("May", "2024-05-01"), ("March A", "2024-03-01"),
                          ("April", "2024-04-01"), ("March B", "2024-03-01")]:
            asyncio.run(bills.add_bill(name, 10, due))

        ordered = bills.get_bills_sorted()
        assert [bill.due_date for bill in ordered] == sorted(bill.due_date for bill in bills.bills)

        march_in_view = [bill.id for bill in bills.bills if bill.due_date == date(2024, 3, 1)]
        march_sorted = [bill.id for bill in ordered if bill.due_date == date(2024, 3, 1)]
        assert march_sorted == march_in_view

    def test_delete_bill(self, household):
        bill = asyncio.run(household.bills.add_bill("Rent", 10, "2024-04-01"))
        asyncio.run(household.bills.delete_bill(bill.id))
        assert household.bills.bills == []


class TestExpenses:
    """Tests for expenses and monthly summaries."""

    def test_monthly_scenario(self, household):
        expenses = household.expenses
        groceries = asyncio.run(expenses.add_expense("Groceries", "45.50", "Food", "2024-03-15", "Alice"))
        asyncio.run(expenses.add_expense("Taxi", 20, None, "2024-03-02", "Bob"))
        asyncio.run(expenses.add_expense("Cinema", 30, None, "2024-02-10", "Alice"))

        march = expenses.expenses_for_month("2024-03")
        assert groceries in march
        assert len(march) == 2
        assert expenses.month_total("2024-03") == pytest.approx(65.5)
        assert expenses.totals_by_payer("2024-03") == {
            "Alice": pytest.approx(45.5),
            "Bob": pytest.approx(20.0),
        }
        assert expenses.available_months() == ["2024-03", "2024-02"]

    def test_blank_payer_is_unknown(self, household):
        expense = asyncio.run(household.expenses.add_expense("Taxi", 20, None, "2024-03-02", ""))
        assert expense.paid_by == "Unknown"
        assert household.expenses.totals_by_payer("2024-03") == {"Unknown": pytest.approx(20.0)}

    def test_invalid_expense_is_ignored(self, household):
        assert asyncio.run(household.expenses.add_expense("", "12", None, "2024-03-02", "Alice")) is None
        assert household.expenses.expenses == []

    def test_empty_month(self, household):
        assert household.expenses.expenses_for_month("2030-01") == []
        assert household.expenses.month_total("2030-01") == 0
        assert household.expenses.available_months() == []

    def test_delete_expense(self, household):
        expense = asyncio.run(household.expenses.add_expense("Taxi", 20, None, "2024-03-02", "Bob"))
        asyncio.run(household.expenses.delete_expense(expense.id))
        assert household.expenses.expenses == []


class TestPayers:
    """Tests for payer deduplication."""

    def test_add_payer_twice_keeps_one(self, household):
        first = asyncio.run(household.payers.add_payer("Husband"))
        second = asyncio.run(household.payers.add_payer("Husband"))

        assert first == second
        assert [payer.name for payer in household.payers.payers] == ["Husband"]

    def test_case_variants_match(self, household):
        first = asyncio.run(household.payers.add_payer("Husband"))
        for variant in ["husband", "  HUSBAND  "]:
            assert asyncio.run(household.payers.add_payer(variant)).id == first.id
        assert len(household.payers.payers) == 1

    def test_different_names_are_added(self, household):
        asyncio.run(household.payers.add_payer("Husband"))
        asyncio.run(household.payers.add_payer("Wife"))
        assert sorted(payer.name for payer in household.payers.payers) == ["Husband", "Wife"]

    def test_blank_payer_is_ignored(self, household):
        assert asyncio.run(household.payers.add_payer("  ")) is None
        assert household.payers.payers == []
