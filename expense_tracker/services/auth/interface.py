"""
Abstract Auth Interface

The dashboard only needs four things from an identity provider: sign in,
sign up, sign out and "who is signed in". Keeping them behind an
interface lets tests drive the app flows without a live auth server.
"""

from abc import ABC, abstractmethod
from typing import Optional

from expense_tracker.models.expense import AuthUser


class AuthError(Exception):
    """Authentication failed or the auth backend could not be reached."""
    pass


class AuthServiceInterface(ABC):
    """Abstract interface for user authentication."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthUser:
        """
        Sign in with email and password.

        Raises:
            AuthError: On bad credentials or backend failure
        """
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str, full_name: str = "") -> AuthUser:
        """
        Register a new account. `full_name` is stored as user metadata
        and ends up in the profile row.

        Raises:
            AuthError: If registration is refused
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    async def get_current_user(self) -> Optional[AuthUser]:
        """The signed-in user, or None when there is no session."""
        pass
