"""Authentication services package."""

from expense_tracker.services.auth.interface import AuthError, AuthServiceInterface
from expense_tracker.services.auth.supabase_auth import SupabaseAuthService

__all__ = [
    "AuthError",
    "AuthServiceInterface",
    "SupabaseAuthService",
]
