"""Services package."""

from expense_tracker.services.auth import (
    AuthError,
    AuthServiceInterface,
    SupabaseAuthService,
)
from expense_tracker.services.storage import (
    ConnectionError,
    ConstraintError,
    ExpenseStorageInterface,
    InMemoryExpenseStorage,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    SupabaseClient,
    SupabaseExpenseStorage,
)

__all__ = [
    # Auth services
    "AuthError",
    "AuthServiceInterface",
    "SupabaseAuthService",
    # Storage services
    "ConnectionError",
    "ConstraintError",
    "ExpenseStorageInterface",
    "InMemoryExpenseStorage",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    "SupabaseClient",
    "SupabaseExpenseStorage",
]
