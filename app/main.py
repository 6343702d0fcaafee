"""
Streamlit Frontend for Household Manager

One page per record kind plus a sign-in page. Everything on screen is read
from the household facades and every button calls a facade mutation; this
module holds no household logic of its own.

DESIGN PRINCIPLES:
1. Simple forms; input the facade ignores simply does not appear
2. The list shown is always the facade's last delivered view
3. Clear error messages in simple language
"""

import asyncio
from datetime import date

import streamlit as st

from household.auth import AuthError, FirebaseIdentity
from household.config import get_settings, validate_all_settings
from household.models.account import AccountContext
from household.orchestrator import HouseholdFacade, create_backend, create_household
from household.services.storage import (
    BatchDeleteError,
    RemoteStorageBackend,
    StorageBackend,
    StorageError,
)
from household.services.profile import ProfileService


st.set_page_config(
    page_title="Household Manager",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_backend() -> StorageBackend:
    """Storage backend shared by every session (cached)."""
    return create_backend()


@st.cache_resource
def get_household(account_id: str) -> HouseholdFacade:
    """Opened facades for one account (cached per account)."""
    household = create_household(AccountContext(account_id=account_id), get_backend())
    return household.open()


def current_account() -> AccountContext:
    if "account_id" not in st.session_state:
        st.session_state.account_id = get_settings().app.default_account_id
    return AccountContext(account_id=st.session_state.account_id)


def mutate(coro) -> None:
    """Run a facade mutation, showing storage failures instead of crashing."""
    try:
        run_async(coro)
    except BatchDeleteError as e:
        st.error(f"Some items could not be removed ({len(e.failures)} of {e.attempted}).")
    except StorageError as e:
        st.error(f"Could not save your change: {e}")
    else:
        st.rerun()


def main():
    """Main application entry point."""
    account = current_account()
    household = get_household(account.account_id)

    st.sidebar.title("🏠 Household Manager")
    st.sidebar.caption("Guest" if account.is_guest else f"Signed in: {account.account_id}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🧺 Missing", "🛒 Shopping", "🧾 Bills", "💸 Expenses", "👤 Account"],
        index=0,
    )

    if not household.is_loaded:
        st.info("Loading your data...")

    if page == "🧺 Missing":
        render_missing_page(household)
    elif page == "🛒 Shopping":
        render_shopping_page(household)
    elif page == "🧾 Bills":
        render_bills_page(household)
    elif page == "💸 Expenses":
        render_expenses_page(household)
    elif page == "👤 Account":
        render_account_page()


def render_missing_page(household: HouseholdFacade):
    """Things that ran out at home."""
    st.title("🧺 Missing at Home")

    with st.form("add_missing", clear_on_submit=True):
        name = st.text_input("Item")
        category = st.text_input("Category (optional)")
        note = st.text_input("Note (optional)")
        if st.form_submit_button("Add"):
            mutate(household.missing.add_item(name, category, note))

    for item in household.missing.items:
        col1, col2, col3 = st.columns([4, 1, 1])
        col1.markdown(f"**{item.name}**" + (f" · {item.category}" if item.category else ""))
        if item.note:
            col1.caption(item.note)
        if col2.button("🛒", key=f"move_{item.id}", help="Move to shopping list"):
            mutate(household.move_missing_to_shopping(item))
        if col3.button("🗑️", key=f"del_missing_{item.id}"):
            mutate(household.missing.delete_item(item.id))


def render_shopping_page(household: HouseholdFacade):
    """The shopping list."""
    st.title("🛒 Shopping List")

    with st.form("add_shopping", clear_on_submit=True):
        name = st.text_input("Item")
        category = st.text_input("Category (optional)")
        if st.form_submit_button("Add"):
            mutate(household.shopping.add_item(name, category))

    for item in household.shopping.items:
        col1, col2 = st.columns([5, 1])
        done = col1.checkbox(item.name, value=item.is_done, key=f"done_{item.id}")
        if done != item.is_done:
            mutate(household.shopping.toggle_item(item.id))
        if col2.button("🗑️", key=f"del_shopping_{item.id}"):
            mutate(household.shopping.delete_item(item.id))

    if any(item.is_done for item in household.shopping.items):
        if st.button("Clear done items"):
            mutate(household.shopping.clear_done_items())


def render_bills_page(household: HouseholdFacade):
    """Bills, earliest due first, overdue ones flagged."""
    st.title("🧾 Bills")

    with st.form("add_bill", clear_on_submit=True):
        name = st.text_input("Bill")
        amount = st.text_input("Amount")
        due_date = st.date_input("Due date", value=date.today())
        is_recurring = st.checkbox("Recurring")
        if st.form_submit_button("Add"):
            mutate(household.bills.add_bill(name, amount, due_date, is_recurring))

    for bill in household.bills.get_bills_sorted():
        col1, col2, col3, col4 = st.columns([3, 2, 1, 1])
        label = f"**{bill.name}** · {bill.amount:,.2f}"
        if household.bills.is_overdue(bill):
            label += " ⚠️ overdue"
        col1.markdown(label)
        if bill.is_paid:
            col2.success(f"Paid {bill.paid_date.isoformat()}")
        else:
            col2.write(f"Due {bill.due_date.isoformat()}")
        if col3.button("Unpay" if bill.is_paid else "Pay", key=f"toggle_{bill.id}"):
            mutate(household.bills.toggle_bill_status(bill.id))
        if col4.button("🗑️", key=f"del_bill_{bill.id}"):
            mutate(household.bills.delete_bill(bill.id))


def render_expenses_page(household: HouseholdFacade):
    """Expenses with a monthly summary per payer."""
    st.title("💸 Expenses")

    payer_names = [payer.name for payer in household.payers.payers]

    with st.form("add_expense", clear_on_submit=True):
        description = st.text_input("Description")
        amount = st.text_input("Amount")
        category = st.text_input("Category (optional)")
        spent_on = st.date_input("Date", value=date.today())
        paid_by = st.selectbox("Paid by", options=[""] + payer_names)
        if st.form_submit_button("Add"):
            mutate(household.expenses.add_expense(description, amount, category, spent_on, paid_by))

    with st.expander("Payers"):
        new_payer = st.text_input("New payer")
        if st.button("Add payer"):
            mutate(household.payers.add_payer(new_payer))

    months = household.expenses.available_months()
    if not months:
        st.info("No expenses yet.")
        return

    month = st.selectbox("Month", options=months)
    st.metric("Total", f"{household.expenses.month_total(month):,.2f}")
    for payer, total in sorted(household.expenses.totals_by_payer(month).items()):
        st.write(f"{payer}: {total:,.2f}")

    st.markdown("---")
    for expense in household.expenses.expenses_for_month(month):
        col1, col2 = st.columns([5, 1])
        col1.write(
            f"{expense.spent_on.isoformat()} · {expense.description} · "
            f"{expense.amount:,.2f} · {expense.paid_by}"
        )
        if col2.button("🗑️", key=f"del_expense_{expense.id}"):
            mutate(household.expenses.delete_expense(expense.id))


def render_account_page():
    """Sign in, sign up or continue as guest."""
    st.title("👤 Account")
    backend = get_backend()

    if not isinstance(backend, RemoteStorageBackend):
        st.info("Accounts need the remote backend (STORAGE_BACKEND=remote). Using the guest partition.")
        render_settings_status()
        return

    identity = FirebaseIdentity(backend.store.firebase_app())
    settings = get_settings()
    profiles = ProfileService(backend.store, settings.firestore.profiles_collection)
    account = current_account()

    if not account.is_guest:
        name = run_async(profiles.display_name(account))
        st.success(f"Hello {name or account.account_id}")
        if st.button("Sign out"):
            st.session_state.account_id = settings.app.default_account_id
            st.rerun()
        return

    email = st.text_input("Email")
    password = st.text_input("Password", type="password")
    col1, col2 = st.columns(2)

    try:
        if col1.button("Sign in"):
            st.session_state.account_id = identity.account_for_email(email).account_id
            st.rerun()
        if col2.button("Create account"):
            new_account = identity.sign_up(email, password)
            run_async(profiles.create_profile(new_account, email))
            st.session_state.account_id = new_account.account_id
            st.rerun()
    except AuthError as e:
        st.error(str(e))

    render_settings_status()


def render_settings_status():
    st.markdown("### Configuration")
    st.caption(f"Environment: {get_settings().app.app_environment}")
    status = validate_all_settings()
    for key in ("app", "local_storage", "firestore"):
        if status.get(key, False):
            st.success(f"✅ {key}")
        else:
            st.error(f"❌ {key} - {status.get(f'{key}_error', 'Not configured')}")


if __name__ == "__main__":
    main()
