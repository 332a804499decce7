"""
Tests for the dashboard flows

Flows run against in-memory storage with a mocked audit logger.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from expense_tracker.audit import AuditLogger
from expense_tracker.config import AppSettings
from expense_tracker.models.expense import ExpenseDraft, LimitState
from expense_tracker.orchestrator import (
    PROFILE_MISSING_NOTICE,
    PROFILE_UNAVAILABLE_NOTICE,
    DashboardState,
    ExpenseTrackerFlow,
    RefreshFailedError,
    create_app_components,
)
from expense_tracker.services.storage import (
    ConnectionError as StorageConnectionError,
    InMemoryExpenseStorage,
    NotFoundError,
    StorageError,
)
from expense_tracker.summary import AggregationError


TODAY = date(2024, 1, 15)


class FlakyStorage(InMemoryExpenseStorage):
    """In-memory storage whose chosen operations fail."""

    def __init__(self, failing=(), **kwargs):
        super().__init__(**kwargs)
        self._failing = set(failing)

    async def list_expenses(self, user_id):
        if "list" in self._failing:
            raise StorageConnectionError("timed out")
        return await super().list_expenses(user_id)

    async def create_expense(self, user_id, expense):
        if "create" in self._failing:
            raise StorageError("insert rejected")
        return await super().create_expense(user_id, expense)

    async def get_profile(self, user_id):
        if "profile" in self._failing:
            raise StorageConnectionError("timed out")
        return await super().get_profile(user_id)


@pytest.fixture
def storage():
    store = InMemoryExpenseStorage()
    store.set_profile("u1", Decimal("20"), "Ada")
    return store


@pytest.fixture
def audit():
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def flow(storage, audit):
    return ExpenseTrackerFlow(storage=storage, audit_logger=audit)


def draft(amount="12.50", category="Food", day="2024-01-15"):
    return ExpenseDraft(category=category, amount=amount, date=day)


class TestLoad:

    def test_load(self, flow, audit):
        state, notices = asyncio.run(flow.load("u1"))
        assert state.user_id == "u1"
        assert state.profile.daily_limit == Decimal("20")
        assert state.expenses == ()
        assert notices == []
        audit.log_expenses_loaded.assert_called_once()

    def test_missing_profile(self, audit):
        flow = ExpenseTrackerFlow(storage=InMemoryExpenseStorage(), audit_logger=audit)
        state, notices = asyncio.run(flow.load("u1"))
        assert state.profile is None
        assert notices == [PROFILE_MISSING_NOTICE]
        audit.log_profile_missing.assert_called_once()

    def test_profile_backend_failure(self, audit):
        flow = ExpenseTrackerFlow(storage=FlakyStorage(failing={"profile"}), audit_logger=audit)
        state, notices = asyncio.run(flow.load("u1"))
        assert state.profile is None
        assert notices == [PROFILE_UNAVAILABLE_NOTICE]
        assert audit.log_storage_error.call_args.kwargs["operation"] == "get_profile"

    def test_list_failure_propagates(self, audit):
        flow = ExpenseTrackerFlow(storage=FlakyStorage(failing={"list"}), audit_logger=audit)
        with pytest.raises(StorageConnectionError):
            asyncio.run(flow.load("u1"))
        assert audit.log_storage_error.call_args.kwargs["operation"] == "list_expenses"


class TestAddExpense:

    def test_add_refreshes_state(self, flow, audit):
        state, _ = asyncio.run(flow.load("u1"))
        new_state, result = asyncio.run(flow.add_expense(state, draft(), TODAY))
        assert result.is_valid
        assert len(new_state.expenses) == 1
        assert new_state.expenses[0].amount == Decimal("12.50")
        assert new_state.profile == state.profile
        # the old snapshot is untouched
        assert state.expenses == ()
        audit.log_expense_created.assert_called_once()

    def test_invalid_draft_keeps_state(self, flow, storage, audit):
        state, _ = asyncio.run(flow.load("u1"))
        new_state, result = asyncio.run(flow.add_expense(state, draft(amount="-3"), TODAY))
        assert not result.is_valid
        assert new_state is state
        assert asyncio.run(storage.list_expenses("u1")) == []
        audit.log_validation_failed.assert_called_once()
        audit.log_expense_created.assert_not_called()

    def test_future_date_rejected(self, flow):
        state, _ = asyncio.run(flow.load("u1"))
        _, result = asyncio.run(flow.add_expense(state, draft(day="2024-01-16"), TODAY))
        assert not result.is_valid

    def test_storage_failure_propagates(self, audit):
        storage = FlakyStorage(failing={"create"})
        flow = ExpenseTrackerFlow(storage=storage, audit_logger=audit)
        state = DashboardState(user_id="u1")
        with pytest.raises(StorageError):
            asyncio.run(flow.add_expense(state, draft(), TODAY))
        assert audit.log_storage_error.call_args.kwargs["operation"] == "create_expense"
        audit.log_expense_created.assert_not_called()

    def test_refresh_failure_after_save(self, audit):
        """The row is stored, so the caller must not see a save failure."""
        storage = FlakyStorage()
        storage.set_profile("u1", Decimal("20"))
        flow = ExpenseTrackerFlow(storage=storage, audit_logger=audit)
        state, _ = asyncio.run(flow.load("u1"))

        storage._failing.add("list")
        with pytest.raises(RefreshFailedError) as excinfo:
            asyncio.run(flow.add_expense(state, draft(), TODAY))

        assert not isinstance(excinfo.value, StorageError)
        assert excinfo.value.operation == "create_expense"
        assert isinstance(excinfo.value.cause, StorageConnectionError)
        audit.log_expense_created.assert_called_once()

        storage._failing.clear()
        assert len(asyncio.run(storage.list_expenses("u1"))) == 1


class TestDeleteExpense:

    def test_delete_refreshes_state(self, flow, audit):
        state, _ = asyncio.run(flow.load("u1"))
        state, _ = asyncio.run(flow.add_expense(state, draft(), TODAY))
        expense_id = state.expenses[0].id

        state = asyncio.run(flow.delete_expense(state, expense_id))
        assert state.expenses == ()
        audit.log_expense_deleted.assert_called_once()

    def test_delete_unknown(self, flow, audit):
        state, _ = asyncio.run(flow.load("u1"))
        with pytest.raises(NotFoundError):
            asyncio.run(flow.delete_expense(state, "missing"))
        assert audit.log_storage_error.call_args.kwargs["operation"] == "delete_expense"

    def test_refresh_failure_after_delete(self, audit):
        storage = FlakyStorage()
        flow = ExpenseTrackerFlow(storage=storage, audit_logger=audit)
        state, _ = asyncio.run(flow.load("u1"))
        state, _ = asyncio.run(flow.add_expense(state, draft(), TODAY))

        storage._failing.add("list")
        with pytest.raises(RefreshFailedError) as excinfo:
            asyncio.run(flow.delete_expense(state, state.expenses[0].id))

        assert excinfo.value.operation == "delete_expense"
        audit.log_expense_deleted.assert_called_once()
        storage._failing.clear()
        assert asyncio.run(storage.list_expenses("u1")) == []


class TestSummarize:

    def test_limit_exceeded_scenario(self, flow):
        state, _ = asyncio.run(flow.load("u1"))
        state, _ = asyncio.run(flow.add_expense(state, draft("15.00"), TODAY))
        state, _ = asyncio.run(flow.add_expense(state, draft("10.00", "Travel"), TODAY))
        state, _ = asyncio.run(flow.add_expense(state, draft("99.00", day="2024-01-10"), TODAY))

        summary = flow.summarize(state, TODAY, AppSettings(currency_symbol="$"))
        assert summary.today_total == Decimal("25.00")
        assert summary.today_count == 2
        assert summary.grand_total == Decimal("124.00")
        assert summary.limit.exceeded
        assert summary.alert_message == (
            "You have exceeded your daily expense limit of $20.00. "
            "Today's total: $25.00"
        )

    def test_unknown_profile_never_alerts(self, audit):
        flow = ExpenseTrackerFlow(storage=InMemoryExpenseStorage(), audit_logger=audit)
        state, _ = asyncio.run(flow.load("u1"))
        state, _ = asyncio.run(flow.add_expense(state, draft("500.00"), TODAY))
        summary = flow.summarize(state, TODAY, AppSettings())
        assert summary.limit.state == LimitState.UNKNOWN
        assert summary.alert_message is None

    def test_legacy_zero_limit_setting(self, audit):
        flow = ExpenseTrackerFlow(storage=InMemoryExpenseStorage(), audit_logger=audit)
        state = DashboardState(user_id="u1")
        summary = flow.summarize(state, TODAY, AppSettings(legacy_zero_limit=True))
        assert summary.limit.remaining == Decimal("0.00")

    def test_malformed_row_is_audited(self, flow, audit):
        state = DashboardState.model_construct(
            user_id="u1",
            profile=None,
            expenses=({"category": "Food", "amount": "abc", "date": "2024-01-15"},),
        )
        with pytest.raises(AggregationError):
            flow.summarize(state, TODAY, AppSettings())
        audit.log_error.assert_called_once()
        assert audit.log_error.call_args.kwargs["error_type"] == "AggregationError"
        assert audit.log_error.call_args.kwargs["details"]["operation"] == "summarize"


class TestCreateAppComponents:

    def test_in_memory_mode(self):
        expense_flow, auth_flow, client = create_app_components(use_storage=False)
        assert auth_flow is None
        assert client is None
        state, notices = asyncio.run(expense_flow.load("local-user"))
        assert state.expenses == ()
        assert notices == [PROFILE_MISSING_NOTICE]

    def test_falls_back_without_credentials(self, monkeypatch, tmp_path):
        from expense_tracker.config import get_settings

        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        get_settings.cache_clear()
        try:
            expense_flow, auth_flow, client = create_app_components(use_storage=True)
        finally:
            get_settings.cache_clear()
        assert auth_flow is None
        assert client is None
        assert isinstance(expense_flow, ExpenseTrackerFlow)
