"""
Storage Services Package

Provides the abstract storage interface and its implementations.
Supabase is the production backend; the in-memory store backs tests
and credential-less demos.
"""

from expense_tracker.services.storage.interface import (
    ConnectionError,
    ConstraintError,
    ExpenseStorageInterface,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from expense_tracker.services.storage.memory import InMemoryExpenseStorage
from expense_tracker.services.storage.supabase_store import (
    SupabaseClient,
    SupabaseExpenseStorage,
    translate_error,
)

__all__ = [
    # Interface
    "ExpenseStorageInterface",
    # Exceptions
    "ConnectionError",
    "ConstraintError",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    # Implementations
    "InMemoryExpenseStorage",
    "SupabaseClient",
    "SupabaseExpenseStorage",
    "translate_error",
]
