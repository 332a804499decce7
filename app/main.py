"""
Streamlit Frontend for Smart Expense Tracker

This is the dashboard users open every day to log what they spent and
see how today compares to their daily limit.

DESIGN PRINCIPLES:
1. One screen: cards, alert, chart, quick-add form, list
2. Every figure comes from one snapshot and one "today"
3. Clear error messages; a failed save or delete never loses form input
4. Explicit confirmation before deleting

Each browser session gets its own Supabase client (kept in
st.session_state), so sessions never share a signed-in user.
"""

import asyncio
from datetime import date
from typing import Optional

import plotly.graph_objects as go
import streamlit as st

from expense_tracker.audit import configure_logging
from expense_tracker.config import AppSettings, get_settings, validate_all_settings
from expense_tracker.models.expense import (
    AuthUser,
    DashboardSummary,
    ExpenseCategory,
    ExpenseDraft,
    MAX_DESCRIPTION_LENGTH,
)
from expense_tracker.orchestrator import (
    AuthFlow,
    DashboardState,
    ExpenseTrackerFlow,
    RefreshFailedError,
    create_app_components,
)
from expense_tracker.services.auth import AuthError
from expense_tracker.services.storage import NotFoundError, StorageError
from expense_tracker.summary import (
    ALERT_TITLE,
    AggregationError,
    format_display_date,
    format_money,
)


LOCAL_USER = AuthUser(id="local-user", email=None)
DELETE_CONFIRMATION = (
    "Are you sure you want to delete this expense? This action cannot be undone."
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_components() -> tuple[ExpenseTrackerFlow, Optional[AuthFlow]]:
    """Get or create this session's application components."""
    if "components" not in st.session_state:
        expense_flow, auth_flow, _ = create_app_components(use_storage=True)
        st.session_state.components = (expense_flow, auth_flow)
    return st.session_state.components


def reset_session() -> None:
    for key in ("user", "dashboard_state", "notices", "pending_delete"):
        st.session_state.pop(key, None)


def main():
    """Main application entry point."""
    app_settings = get_settings().app
    configure_logging(app_settings.effective_log_level)

    st.set_page_config(
        page_title=app_settings.page_title,
        page_icon="💰",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    # One "today" for the whole render
    today = date.today()

    expense_flow, auth_flow = get_components()

    if auth_flow is None:
        st.session_state.setdefault("user", LOCAL_USER)

    user = st.session_state.get("user")
    if user is None:
        render_auth_page(auth_flow, app_settings)
        return

    st.sidebar.title(f"💰 {app_settings.page_title}")
    st.sidebar.markdown("---")
    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "⚙️ Settings"],
        index=0,
    )

    if page == "📊 Dashboard":
        render_dashboard_page(expense_flow, auth_flow, user, today, app_settings)
    elif page == "⚙️ Settings":
        render_settings_page(auth_flow is None)


def render_auth_page(auth_flow: AuthFlow, app_settings: AppSettings):
    """Render the sign in / sign up page."""
    st.title(f"💰 {app_settings.page_title}")
    st.markdown("Sign in to track your daily expenses.")

    tab_sign_in, tab_sign_up = st.tabs(["Sign In", "Sign Up"])

    with tab_sign_in:
        with st.form("sign_in"):
            email = st.text_input("Email", key="sign_in_email")
            password = st.text_input("Password", type="password", key="sign_in_password")
            submitted = st.form_submit_button("Sign In", type="primary")
        if submitted:
            try:
                st.session_state.user = run_async(auth_flow.sign_in(email, password))
                st.rerun()
            except AuthError as e:
                st.error(str(e))

    with tab_sign_up:
        with st.form("sign_up"):
            full_name = st.text_input("Full Name", key="sign_up_name")
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input("Password", type="password", key="sign_up_password")
            submitted = st.form_submit_button("Create Account")
        if submitted:
            try:
                run_async(auth_flow.sign_up(email, password, full_name))
                st.success("Account created. Check your email to confirm, then sign in.")
            except AuthError as e:
                st.error(str(e))


def load_state(expense_flow: ExpenseTrackerFlow, user: AuthUser) -> Optional[DashboardState]:
    """The session's DashboardState, loading it on first use."""
    state = st.session_state.get("dashboard_state")
    if state is not None and state.user_id == user.id:
        return state

    try:
        state, notices = run_async(expense_flow.load(user.id))
    except StorageError as e:
        st.error(f"Could not load your expenses: {e}")
        return None

    st.session_state.dashboard_state = state
    st.session_state.notices = notices
    return state


def render_dashboard_page(
    expense_flow: ExpenseTrackerFlow,
    auth_flow: Optional[AuthFlow],
    user: AuthUser,
    today: date,
    app_settings: AppSettings,
):
    """Render the dashboard page."""
    state = load_state(expense_flow, user)
    if state is None:
        if st.button("🔄 Try Again"):
            st.rerun()
        return

    try:
        summary = expense_flow.summarize(state, today, app_settings)
    except AggregationError as e:
        st.error(f"Some of your expenses could not be read: {e}")
        return
    symbol = app_settings.currency_symbol

    # Header
    col1, col2 = st.columns([4, 1])
    with col1:
        name = state.profile.display_name if state.profile else "User"
        st.title(f"Welcome, {name}")
    with col2:
        if auth_flow is not None and st.button("🚪 Logout"):
            try:
                run_async(auth_flow.sign_out(user.id))
            except AuthError as e:
                st.toast(f"Sign out failed: {e}", icon="⚠️")
            reset_session()
            st.rerun()

    for notice in st.session_state.get("notices", []):
        st.info(notice)

    if summary.alert_message:
        st.error(f"**{ALERT_TITLE}** {summary.alert_message}", icon="🚨")

    render_summary_cards(summary, symbol)

    st.markdown("---")
    col1, col2 = st.columns(2)
    with col1:
        render_category_chart(summary)
    with col2:
        render_quick_add(expense_flow, state, today)

    st.markdown("---")
    render_expense_list(expense_flow, state, symbol)


def render_summary_cards(summary: DashboardSummary, symbol: str):
    col1, col2, col3 = st.columns(3)

    with col1:
        st.metric("Today's Expenses", format_money(summary.today_total, symbol))
        st.caption(f"{summary.today_count} transactions")

    with col2:
        limit = summary.limit
        if limit.limit_known:
            st.metric("Daily Limit", format_money(limit.daily_limit, symbol))
        else:
            st.metric("Daily Limit", "Unknown")
        remaining = (
            format_money(limit.remaining, symbol) if limit.remaining is not None else "Unknown"
        )
        st.caption(f"Remaining: {remaining}")

    with col3:
        st.metric("Total Expenses", format_money(summary.grand_total, symbol))
        st.caption(f"{summary.total_count} total transactions")


def render_category_chart(summary: DashboardSummary):
    st.subheader("Expenses by Category")

    if not summary.breakdown:
        st.info("No expenses to display")
        return

    slices = summary.breakdown
    fig = go.Figure(
        go.Pie(
            labels=[s.label for s in slices],
            values=[float(s.value) for s in slices],
            text=[f"{s.label}: {s.percent}%" for s in slices],
            textinfo="text",
            marker={"colors": [s.color for s in slices]},
            sort=False,
            hovertemplate="%{label}: %{value:.2f}<extra></extra>",
        )
    )
    fig.update_layout(showlegend=True, margin={"t": 10, "b": 10, "l": 10, "r": 10})
    st.plotly_chart(fig, use_container_width=True)


def render_quick_add(expense_flow: ExpenseTrackerFlow, state: DashboardState, today: date):
    st.subheader("Quick Add Expense")

    # clear_on_submit stays off so a rejected draft keeps its values
    with st.form("quick_add"):
        category = st.selectbox(
            "Category *",
            options=[c.value for c in ExpenseCategory],
            index=None,
            placeholder="Select category",
        )
        amount = st.text_input("Amount *", placeholder="0.00")
        expense_date = st.date_input("Date *", value=today, max_value=today)
        description = st.text_area(
            "Description (optional)",
            max_chars=MAX_DESCRIPTION_LENGTH,
            placeholder="What was it for?",
        )
        submitted = st.form_submit_button("➕ Add Expense", type="primary")

    if not submitted:
        return

    draft = ExpenseDraft(
        category=category or "",
        amount=amount,
        description=description,
        date=expense_date,
    )
    try:
        new_state, result = run_async(expense_flow.add_expense(state, draft, today))
    except RefreshFailedError:
        st.toast("Expense saved, but the list could not be refreshed", icon="⚠️")
        st.session_state.pop("dashboard_state", None)
        st.rerun()
    except StorageError as e:
        st.toast(f"Could not save expense: {e}", icon="⚠️")
        return

    if not result.is_valid:
        st.error(expense_flow.validator.get_user_friendly_summary(result))
        return

    st.session_state.dashboard_state = new_state
    st.toast(expense_flow.validator.get_user_friendly_summary(result), icon="✅")
    st.rerun()


def render_expense_list(expense_flow: ExpenseTrackerFlow, state: DashboardState, symbol: str):
    st.subheader("Recent Expenses")

    if not state.expenses:
        st.info("No expenses yet. Add your first one above.")
        return

    pending = st.session_state.get("pending_delete")

    for expense in state.expenses:
        col1, col2, col3, col4 = st.columns([2, 1, 2, 1])
        with col1:
            st.markdown(f"**{expense.category}**")
            if expense.description:
                st.caption(expense.description)
        with col2:
            st.markdown(format_money(expense.amount, symbol))
        with col3:
            st.markdown(format_display_date(expense.date))
        with col4:
            if st.button("🗑️", key=f"delete_{expense.id}", help="Delete expense"):
                st.session_state.pending_delete = expense.id
                st.rerun()

        if pending == expense.id:
            st.warning(DELETE_CONFIRMATION)
            confirm, cancel = st.columns(2)
            with confirm:
                if st.button("Delete", key=f"confirm_{expense.id}", type="primary"):
                    st.session_state.pop("pending_delete", None)
                    try:
                        st.session_state.dashboard_state = run_async(
                            expense_flow.delete_expense(state, expense.id)
                        )
                        st.toast("Expense deleted", icon="✅")
                    except RefreshFailedError:
                        st.toast("Expense deleted, but the list could not be refreshed", icon="⚠️")
                        st.session_state.pop("dashboard_state", None)
                    except NotFoundError:
                        st.toast("That expense was already deleted", icon="⚠️")
                        st.session_state.pop("dashboard_state", None)
                    except StorageError as e:
                        st.toast(f"Could not delete expense: {e}", icon="⚠️")
                    st.rerun()
            with cancel:
                if st.button("Cancel", key=f"cancel_{expense.id}"):
                    st.session_state.pop("pending_delete", None)
                    st.rerun()


def render_settings_page(local_mode: bool):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Supabase (Auth + Storage)", "supabase"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if local_mode:
        st.warning(
            "Running on in-memory storage. Expenses are lost when the app stops."
        )

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your Supabase "
        "project URL and key. See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
