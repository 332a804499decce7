"""
In-Memory Storage

Same contract as the Supabase storage, held in dicts. Used by tests and
when the app runs without backend credentials. Data lives as long as
the process.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from expense_tracker.models.expense import Expense, NewExpense, Profile
from expense_tracker.services.storage.interface import (
    ExpenseStorageInterface,
    NotFoundError,
)


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Dict-backed expense and profile store."""

    def __init__(
        self,
        expenses: Optional[list[Expense]] = None,
        profiles: Optional[dict[str, Profile]] = None,
    ):
        self._expenses: dict[str, Expense] = {e.id: e for e in expenses or []}
        self._profiles: dict[str, Profile] = dict(profiles or {})

    def set_profile(self, user_id: str, daily_limit: Decimal, full_name: str = "") -> Profile:
        profile = Profile(daily_limit=daily_limit, full_name=full_name)
        self._profiles[user_id] = profile
        return profile

    async def list_expenses(self, user_id: str) -> list[Expense]:
        owned = [e for e in self._expenses.values() if e.user_id == user_id]
        # Stable sort keeps insertion order within a day
        owned.sort(key=lambda e: e.date, reverse=True)
        return owned

    async def create_expense(self, user_id: str, expense: NewExpense) -> Expense:
        stored = Expense(
            id=str(uuid4()),
            user_id=user_id,
            category=expense.category.value,
            amount=expense.amount,
            description=expense.description,
            date=expense.date,
            created_at=dt.datetime.utcnow(),
        )
        self._expenses[stored.id] = stored
        return stored

    async def delete_expense(self, expense_id: str) -> bool:
        if self._expenses.pop(expense_id, None) is None:
            raise NotFoundError(f"Expense not found: {expense_id}")
        return True

    async def get_profile(self, user_id: str) -> Profile:
        try:
            return self._profiles[user_id]
        except KeyError:
            raise NotFoundError(f"Profile not found for user: {user_id}") from None
