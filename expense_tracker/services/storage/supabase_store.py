"""
Supabase Storage Implementation

DESIGN DECISION: Supabase is the storage backend because:
1. Auth and tables come from one hosted service
2. Row-level security scopes every query to the signed-in user
3. No server of our own to run

TRADEOFFS:
- Every dashboard render reads the full expense list (fine at personal scale)
- No retries here: a failed call is reported once and abandoned
- Backend errors arrive as PostgREST codes; we translate them at this
  boundary so nothing above imports postgrest or httpx

The implementation follows the abstract interface, so the in-memory
store can replace it in tests without changing business logic.
"""

from typing import Any, Optional

import httpx
import structlog
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client, create_client

from expense_tracker.config import SupabaseSettings, get_settings
from expense_tracker.models.expense import Expense, NewExpense, Profile
from expense_tracker.services.storage.interface import (
    ConnectionError,
    ConstraintError,
    ExpenseStorageInterface,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from expense_tracker.summary.aggregator import AggregationError, to_amount


logger = structlog.get_logger(__name__)

DEFAULT_EXPENSES_TABLE = "expenses"
DEFAULT_PROFILES_TABLE = "profiles"

EXPENSE_COLUMNS = "id,user_id,category,amount,description,date,created_at"
PROFILE_COLUMNS = "daily_limit,full_name"

# PostgREST / Postgres error codes
_PERMISSION_CODES = {"42501", "PGRST301", "PGRST302"}
_CONSTRAINT_CLASSES = ("22", "23")  # data exception, integrity violation


class SupabaseClient:
    """
    Thin wrapper that owns one supabase `Client`.

    One instance per browser session: the client carries the signed-in
    user's session, and storage calls run under that user's JWT.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        client: Optional[Client] = None,
    ):
        if settings is None and client is None:
            settings = get_settings().supabase
        self.settings = settings
        self._client = client

    def connect(self) -> Client:
        """Create the underlying client on first use."""
        if self._client is None:
            try:
                self._client = create_client(self.settings.url, self.settings.key)
            except Exception as e:
                raise ConnectionError(f"Failed to create Supabase client: {e}") from e
        return self._client

    @property
    def client(self) -> Client:
        return self.connect()


def translate_error(operation: str, error: Exception) -> StorageError:
    """Map a backend exception to our storage exception hierarchy."""
    if isinstance(error, StorageError):
        return error

    if isinstance(error, httpx.TransportError):
        return ConnectionError(f"Could not reach storage during {operation}: {error}")

    if isinstance(error, APIError):
        code = str(error.code or "")
        message = error.message or str(error)
        if code in _PERMISSION_CODES:
            return PermissionDeniedError(f"Not allowed to {operation}: {message}")
        if code.startswith(_CONSTRAINT_CLASSES):
            return ConstraintError(f"Rejected values during {operation}: {message}")
        return StorageError(f"Failed to {operation}: {message} (code {code or 'unknown'})")

    return StorageError(f"Failed to {operation}: {error}")


class SupabaseExpenseStorage(ExpenseStorageInterface):
    """
    Supabase implementation of expense storage.

    Expenses live in one table with a `user_id` column; profiles in
    another keyed by the auth user id.
    """

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        expenses_table: Optional[str] = None,
        profiles_table: Optional[str] = None,
    ):
        self._client = client or SupabaseClient()
        settings = self._client.settings
        self._expenses_table = expenses_table or (
            settings.expenses_table if settings else DEFAULT_EXPENSES_TABLE
        )
        self._profiles_table = profiles_table or (
            settings.profiles_table if settings else DEFAULT_PROFILES_TABLE
        )

    def _table(self, name: str):
        return self._client.client.table(name)

    def _row_to_expense(self, row: dict[str, Any]) -> Expense:
        """Convert a table row to an Expense."""
        try:
            data = dict(row)
            # numeric columns come back as JSON numbers; keep their decimal text
            data["amount"] = to_amount(data.get("amount"))
            return Expense(**data)
        except (AggregationError, ValidationError, TypeError) as e:
            logger.error("malformed_expense_row", row_id=row.get("id"), error=str(e))
            raise StorageError(f"Malformed expense row {row.get('id')!r}: {e}") from e

    async def list_expenses(self, user_id: str) -> list[Expense]:
        """List expenses for a user, newest first."""
        try:
            response = (
                self._table(self._expenses_table)
                .select(EXPENSE_COLUMNS)
                .eq("user_id", user_id)
                .order("date", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("list_expenses_failed", user_id=user_id, error=str(e))
            raise translate_error("load expenses", e) from e

        return [self._row_to_expense(row) for row in response.data or []]

    async def create_expense(self, user_id: str, expense: NewExpense) -> Expense:
        """Insert one expense and return the stored row."""
        try:
            response = (
                self._table(self._expenses_table)
                .insert(expense.to_row(user_id))
                .execute()
            )
        except Exception as e:
            logger.error("create_expense_failed", user_id=user_id, error=str(e))
            raise translate_error("save expense", e) from e

        if not response.data:
            raise StorageError("Failed to save expense: backend returned no row")
        return self._row_to_expense(response.data[0])

    async def delete_expense(self, expense_id: str) -> bool:
        """Delete one expense by id."""
        try:
            response = (
                self._table(self._expenses_table)
                .delete()
                .eq("id", expense_id)
                .execute()
            )
        except Exception as e:
            logger.error("delete_expense_failed", expense_id=expense_id, error=str(e))
            raise translate_error("delete expense", e) from e

        # RLS hides other users' rows, so "not ours" also lands here
        if not response.data:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return True

    async def get_profile(self, user_id: str) -> Profile:
        """Read the profile row for a user."""
        try:
            response = (
                self._table(self._profiles_table)
                .select(PROFILE_COLUMNS)
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_profile_failed", user_id=user_id, error=str(e))
            raise translate_error("load profile", e) from e

        if not response.data:
            raise NotFoundError(f"Profile not found for user: {user_id}")

        row = response.data[0]
        if row.get("daily_limit") is None:
            raise NotFoundError(f"Profile for user {user_id} has no daily limit")
        try:
            return Profile(
                daily_limit=to_amount(row["daily_limit"]),
                full_name=row.get("full_name"),
            )
        except (AggregationError, ValidationError) as e:
            raise StorageError(f"Malformed profile row for user {user_id}: {e}") from e
