"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the hosted backend (Supabase) behind one seam
2. Use in-memory storage for testing and offline demos
3. Keep the dashboard logic decoupled from table names and wire errors

The interface is intentionally small: list, create, delete, read profile.
There is no update-in-place for expenses.
"""

from abc import ABC, abstractmethod

from expense_tracker.models.expense import Expense, NewExpense, Profile


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense and profile storage.

    Any storage implementation must implement these methods and raise
    the exceptions below, never backend-specific ones.
    """

    @abstractmethod
    async def list_expenses(self, user_id: str) -> list[Expense]:
        """
        List every expense of a user, newest date first.

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def create_expense(self, user_id: str, expense: NewExpense) -> Expense:
        """
        Persist a validated expense.

        Args:
            user_id: Owner of the expense
            expense: The validated form values

        Returns:
            The stored Expense, with its backend-assigned id

        Raises:
            ConstraintError: If the backend rejects the values
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense by ID.

        Returns:
            True if deleted

        Raises:
            NotFoundError: If no expense had this ID (or it is not ours)
            StorageError: If delete fails
        """
        pass

    @abstractmethod
    async def get_profile(self, user_id: str) -> Profile:
        """
        Read the user's profile.

        Raises:
            NotFoundError: If the user has no profile row
            StorageError: If the backend cannot be read
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConstraintError(StorageError):
    """The backend rejected the values (check, type or not-null violation)."""
    pass


class PermissionDeniedError(StorageError):
    """Row-level security refused the operation."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
