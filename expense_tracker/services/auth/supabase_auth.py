"""
Supabase Auth Implementation

Wraps `client.auth` (email + password). The session is held by the
supabase client itself, so the same client must be shared with the
expense storage for row-level security to see the user.
"""

from typing import Any, Optional

import structlog

from expense_tracker.models.expense import AuthUser
from expense_tracker.services.auth.interface import AuthError, AuthServiceInterface
from expense_tracker.services.storage.supabase_store import SupabaseClient


logger = structlog.get_logger(__name__)


def _to_auth_user(user: Any) -> AuthUser:
    return AuthUser(id=str(user.id), email=getattr(user, "email", None))


class SupabaseAuthService(AuthServiceInterface):
    """Email/password auth against Supabase Auth."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    @property
    def _auth(self):
        return self._client.client.auth

    async def sign_in(self, email: str, password: str) -> AuthUser:
        if not email or not password:
            raise AuthError("Email and password are required")
        try:
            response = self._auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.warning("sign_in_failed", email=email, error=str(e))
            raise AuthError(f"Sign in failed: {e}") from e

        if response is None or response.user is None:
            raise AuthError("Sign in failed: no user returned")
        return _to_auth_user(response.user)

    async def sign_up(self, email: str, password: str, full_name: str = "") -> AuthUser:
        if not email or not password:
            raise AuthError("Email and password are required")
        try:
            response = self._auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"full_name": full_name}},
            })
        except Exception as e:
            logger.warning("sign_up_failed", email=email, error=str(e))
            raise AuthError(f"Sign up failed: {e}") from e

        if response is None or response.user is None:
            raise AuthError("Sign up failed: no user returned")
        return _to_auth_user(response.user)

    async def sign_out(self) -> None:
        try:
            self._auth.sign_out()
        except Exception as e:
            logger.warning("sign_out_failed", error=str(e))
            raise AuthError(f"Sign out failed: {e}") from e

    async def get_current_user(self) -> Optional[AuthUser]:
        try:
            response = self._auth.get_user()
        except Exception as e:
            # An expired or missing session is "nobody signed in"
            logger.info("no_current_user", error=str(e))
            return None

        if response is None or response.user is None:
            return None
        return _to_auth_user(response.user)
