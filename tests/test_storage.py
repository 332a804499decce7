"""
Tests for storage implementations

The Supabase client is replaced by a MagicMock whose query-builder
methods return the same mock, so a chain like
table().select().eq().order().execute() ends at `execute`.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import httpx
from postgrest.exceptions import APIError

from expense_tracker.models.expense import ExpenseCategory, NewExpense
from expense_tracker.services.storage import (
    ConnectionError as StorageConnectionError,
    ConstraintError,
    InMemoryExpenseStorage,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    SupabaseClient,
    SupabaseExpenseStorage,
    translate_error,
)


def new_expense(amount="12.50", day=date(2024, 1, 15), category=ExpenseCategory.FOOD):
    return NewExpense(category=category, amount=Decimal(amount), date=day)


def api_error(code, message="boom"):
    return APIError({"message": message, "code": code, "hint": None, "details": None})


@pytest.fixture
def query():
    """A query builder whose chained calls all return itself."""
    builder = MagicMock()
    for method in ("select", "eq", "order", "limit", "insert", "delete"):
        getattr(builder, method).return_value = builder
    builder.execute.return_value = MagicMock(data=[])
    return builder


@pytest.fixture
def supabase(query):
    client = MagicMock()
    client.table.return_value = query
    return client


@pytest.fixture
def storage(supabase):
    return SupabaseExpenseStorage(SupabaseClient(client=supabase))


class TestInMemoryStorage:
    """Tests for the dict-backed store."""

    def test_create_and_list(self):
        store = InMemoryExpenseStorage()
        created = asyncio.run(store.create_expense("u1", new_expense()))
        assert created.id
        assert created.user_id == "u1"
        assert created.category == "Food"
        assert created.created_at is not None

        listed = asyncio.run(store.list_expenses("u1"))
        assert listed == [created]

    def test_list_is_scoped_to_user(self):
        store = InMemoryExpenseStorage()
        asyncio.run(store.create_expense("u1", new_expense()))
        assert asyncio.run(store.list_expenses("u2")) == []

    def test_list_newest_first(self):
        store = InMemoryExpenseStorage()
        asyncio.run(store.create_expense("u1", new_expense(day=date(2024, 1, 1))))
        asyncio.run(store.create_expense("u1", new_expense(day=date(2024, 1, 10))))
        asyncio.run(store.create_expense("u1", new_expense(day=date(2024, 1, 5))))
        days = [e.date.day for e in asyncio.run(store.list_expenses("u1"))]
        assert days == [10, 5, 1]

    def test_delete(self):
        store = InMemoryExpenseStorage()
        created = asyncio.run(store.create_expense("u1", new_expense()))
        assert asyncio.run(store.delete_expense(created.id)) is True
        assert asyncio.run(store.list_expenses("u1")) == []

    def test_delete_unknown(self):
        store = InMemoryExpenseStorage()
        with pytest.raises(NotFoundError):
            asyncio.run(store.delete_expense("missing"))

    def test_profile(self):
        store = InMemoryExpenseStorage()
        store.set_profile("u1", Decimal("20"), "Ada")
        profile = asyncio.run(store.get_profile("u1"))
        assert profile.daily_limit == Decimal("20")
        assert profile.display_name == "Ada"

    def test_missing_profile(self):
        store = InMemoryExpenseStorage()
        with pytest.raises(NotFoundError):
            asyncio.run(store.get_profile("u1"))


class TestSupabaseListExpenses:

    def test_query_shape(self, storage, supabase, query):
        asyncio.run(storage.list_expenses("u1"))
        supabase.table.assert_called_with("expenses")
        query.eq.assert_called_with("user_id", "u1")
        query.order.assert_called_with("date", desc=True)

    def test_rows_become_expenses(self, storage, query):
        query.execute.return_value = MagicMock(data=[
            {
                "id": 7,
                "user_id": "u1",
                "category": "Food",
                "amount": 12.5,
                "description": None,
                "date": "2024-01-15",
                "created_at": "2024-01-15T10:00:00+00:00",
            },
        ])
        expenses = asyncio.run(storage.list_expenses("u1"))
        assert len(expenses) == 1
        assert expenses[0].id == "7"
        assert expenses[0].amount == Decimal("12.5")
        assert expenses[0].date == date(2024, 1, 15)

    def test_empty(self, storage, query):
        query.execute.return_value = MagicMock(data=None)
        assert asyncio.run(storage.list_expenses("u1")) == []

    def test_malformed_row(self, storage, query):
        query.execute.return_value = MagicMock(data=[
            {"id": 1, "category": "Food", "amount": "abc", "date": "2024-01-15"},
        ])
        with pytest.raises(StorageError, match="Malformed"):
            asyncio.run(storage.list_expenses("u1"))

    def test_custom_table_name(self, supabase):
        store = SupabaseExpenseStorage(SupabaseClient(client=supabase), expenses_table="spend")
        asyncio.run(store.list_expenses("u1"))
        supabase.table.assert_called_with("spend")


class TestSupabaseWrites:

    def test_create_sends_row(self, storage, query):
        query.execute.return_value = MagicMock(data=[{
            "id": "e1",
            "user_id": "u1",
            "category": "Food",
            "amount": "12.50",
            "description": None,
            "date": "2024-01-15",
        }])
        created = asyncio.run(storage.create_expense("u1", new_expense()))
        query.insert.assert_called_once_with({
            "user_id": "u1",
            "category": "Food",
            "amount": "12.50",
            "description": None,
            "date": "2024-01-15",
        })
        assert created.id == "e1"
        assert created.amount == Decimal("12.50")

    def test_create_without_returned_row(self, storage, query):
        query.execute.return_value = MagicMock(data=[])
        with pytest.raises(StorageError):
            asyncio.run(storage.create_expense("u1", new_expense()))

    def test_delete(self, storage, query):
        query.execute.return_value = MagicMock(data=[{"id": "e1"}])
        assert asyncio.run(storage.delete_expense("e1")) is True
        query.delete.assert_called_once()
        query.eq.assert_called_with("id", "e1")

    def test_delete_nothing_matched(self, storage, query):
        query.execute.return_value = MagicMock(data=[])
        with pytest.raises(NotFoundError):
            asyncio.run(storage.delete_expense("e1"))


class TestSupabaseProfile:

    def test_profile(self, storage, supabase, query):
        query.execute.return_value = MagicMock(data=[{"daily_limit": 150, "full_name": "Ada"}])
        profile = asyncio.run(storage.get_profile("u1"))
        supabase.table.assert_called_with("profiles")
        query.eq.assert_called_with("id", "u1")
        assert profile.daily_limit == Decimal("150")
        assert profile.full_name == "Ada"

    def test_profile_without_name(self, storage, query):
        query.execute.return_value = MagicMock(data=[{"daily_limit": "20.00", "full_name": None}])
        assert asyncio.run(storage.get_profile("u1")).display_name == "User"

    def test_missing_profile(self, storage, query):
        query.execute.return_value = MagicMock(data=[])
        with pytest.raises(NotFoundError):
            asyncio.run(storage.get_profile("u1"))

    def test_profile_without_limit(self, storage, query):
        query.execute.return_value = MagicMock(data=[{"daily_limit": None, "full_name": "Ada"}])
        with pytest.raises(NotFoundError):
            asyncio.run(storage.get_profile("u1"))


class TestErrorTranslation:
    """Backend errors surface as our storage exceptions."""

    def test_permission_denied(self, storage, query):
        query.execute.side_effect = api_error("42501", "permission denied for table expenses")
        with pytest.raises(PermissionDeniedError):
            asyncio.run(storage.list_expenses("u1"))

    @pytest.mark.parametrize("code", ["23514", "23502", "22P02"])
    def test_constraint_violation(self, storage, query, code):
        query.execute.side_effect = api_error(code)
        with pytest.raises(ConstraintError):
            asyncio.run(storage.create_expense("u1", new_expense()))

    def test_network_failure(self, storage, query):
        query.execute.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(StorageConnectionError):
            asyncio.run(storage.delete_expense("e1"))

    def test_other_api_error(self):
        error = translate_error("load expenses", api_error("PGRST204", "column not found"))
        assert type(error) is StorageError
        assert "column not found" in str(error)

    def test_storage_errors_pass_through(self):
        original = NotFoundError("gone")
        assert translate_error("delete expense", original) is original

    def test_connection_error_is_storage_error(self):
        assert issubclass(StorageConnectionError, StorageError)
