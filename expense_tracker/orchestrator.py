"""
Main Orchestrator for Smart Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Load (user → expenses + profile → DashboardState)
2. Add (form draft → validate → save → refresh)
3. Delete (expense id → delete → refresh)
4. Summarize (DashboardState + today → DashboardSummary)

DESIGN DECISION: State is explicit. Every flow takes a DashboardState
and returns a new one; nothing keeps a module-level expense list.
After a write the list is re-read from storage, so what the user sees
is always what the backend holds.

Every write and every backend failure is audited.
"""

import datetime as dt
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.config import AppSettings, get_settings
from expense_tracker.models.expense import (
    AuthUser,
    DashboardSummary,
    Expense,
    ExpenseDraft,
    Profile,
    ValidationResult,
)
from expense_tracker.services.auth import (
    AuthError,
    AuthServiceInterface,
    SupabaseAuthService,
)
from expense_tracker.services.storage import (
    ExpenseStorageInterface,
    InMemoryExpenseStorage,
    NotFoundError,
    StorageError,
    SupabaseClient,
    SupabaseExpenseStorage,
)
from expense_tracker.summary import AggregationError, build_dashboard_summary
from expense_tracker.validation import ExpenseValidator


logger = structlog.get_logger(__name__)

PROFILE_MISSING_NOTICE = "Your profile could not be found, so the daily limit is unknown."
PROFILE_UNAVAILABLE_NOTICE = "Your profile could not be loaded, so the daily limit is unknown."


class RefreshFailedError(Exception):
    """
    A write succeeded but re-reading the list failed.

    Not a StorageError: the change is stored and must not be retried.
    """

    def __init__(self, operation: str, cause: StorageError):
        super().__init__(f"{operation} succeeded but the list could not be refreshed: {cause}")
        self.operation = operation
        self.cause = cause


class DashboardState(BaseModel):
    """
    Everything loaded for one user.

    `profile` is None when it could not be read; the limit is then
    reported as unknown rather than guessed.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    profile: Optional[Profile] = None
    expenses: tuple[Expense, ...] = ()


class ExpenseTrackerFlow:
    """
    Orchestrates the dashboard flows.

    Flow:
    1. Load → list expenses, read profile (a missing profile degrades)
    2. Add → validate draft; only a valid NewExpense reaches storage
    3. Delete → remove by id
    4. Refresh → re-read the expense list after every write

    Storage errors are audited and then propagated; the caller shows
    them and abandons the operation. No retries.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def validator(self) -> ExpenseValidator:
        return self._validator

    async def _list(self, user_id: str, correlation_id: UUID) -> tuple[Expense, ...]:
        try:
            expenses = await self._storage.list_expenses(user_id)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="list_expenses",
                error=e,
                user_id=user_id,
                correlation_id=correlation_id,
            )
            raise

        self._audit_logger.log_expenses_loaded(
            user_id=user_id,
            count=len(expenses),
            correlation_id=correlation_id,
        )
        return tuple(expenses)

    async def load(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[DashboardState, list[str]]:
        """
        Load a user's dashboard state.

        Returns:
            (state, notices). Notices are non-fatal problems to show the
            user, e.g. a missing profile.

        Raises:
            StorageError: If the expense list cannot be read
        """
        correlation_id = correlation_id or create_correlation_id()
        notices = []

        expenses = await self._list(user_id, correlation_id)

        profile = None
        try:
            profile = await self._storage.get_profile(user_id)
        except NotFoundError as e:
            self._audit_logger.log_profile_missing(
                user_id=user_id,
                reason=str(e),
                correlation_id=correlation_id,
            )
            notices.append(PROFILE_MISSING_NOTICE)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="get_profile",
                error=e,
                user_id=user_id,
                correlation_id=correlation_id,
            )
            notices.append(PROFILE_UNAVAILABLE_NOTICE)

        state = DashboardState(user_id=user_id, profile=profile, expenses=expenses)
        return state, notices

    async def refresh(
        self,
        state: DashboardState,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardState:
        """Re-read the expense list; the profile is read-only and kept."""
        correlation_id = correlation_id or create_correlation_id()
        expenses = await self._list(state.user_id, correlation_id)
        return state.model_copy(update={"expenses": expenses})

    async def _refresh_after_write(
        self,
        state: DashboardState,
        operation: str,
        correlation_id: UUID,
    ) -> DashboardState:
        try:
            return await self.refresh(state, correlation_id)
        except StorageError as e:
            raise RefreshFailedError(operation, e) from e

    async def add_expense(
        self,
        state: DashboardState,
        draft: ExpenseDraft,
        today: dt.date,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[DashboardState, ValidationResult]:
        """
        Validate and save one expense.

        Returns:
            (state, validation_result). On validation failure the state
            is returned unchanged and nothing is written.

        Raises:
            StorageError: If the save fails
            RefreshFailedError: If the save worked but the re-read failed
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate(draft, today)
        if not result.is_valid:
            self._audit_logger.log_validation_failed(
                user_id=state.user_id,
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ],
                correlation_id=correlation_id,
            )
            return state, result

        try:
            stored = await self._storage.create_expense(state.user_id, result.expense)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="create_expense",
                error=e,
                user_id=state.user_id,
                correlation_id=correlation_id,
            )
            raise

        self._audit_logger.log_expense_created(
            expense_id=stored.id,
            user_id=state.user_id,
            category=stored.category,
            amount=str(stored.amount),
            expense_date=stored.date.isoformat(),
            correlation_id=correlation_id,
        )

        return await self._refresh_after_write(state, "create_expense", correlation_id), result

    async def delete_expense(
        self,
        state: DashboardState,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardState:
        """
        Delete one expense and return the refreshed state.

        Raises:
            NotFoundError: If the expense no longer exists
            StorageError: If the delete fails
            RefreshFailedError: If the delete worked but the re-read failed
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            await self._storage.delete_expense(expense_id)
        except StorageError as e:
            self._audit_logger.log_storage_error(
                operation="delete_expense",
                error=e,
                user_id=state.user_id,
                correlation_id=correlation_id,
            )
            raise

        self._audit_logger.log_expense_deleted(
            expense_id=expense_id,
            user_id=state.user_id,
            correlation_id=correlation_id,
        )

        return await self._refresh_after_write(state, "delete_expense", correlation_id)

    def summarize(
        self,
        state: DashboardState,
        today: dt.date,
        settings: Optional[AppSettings] = None,
    ) -> DashboardSummary:
        """
        Compute the dashboard figures for one render.

        Raises:
            AggregationError: If a stored expense is malformed
        """
        settings = settings or AppSettings()
        try:
            return build_dashboard_summary(
                state.expenses,
                today,
                state.profile,
                currency_symbol=settings.currency_symbol,
                legacy_zero_default=settings.legacy_zero_limit,
            )
        except AggregationError as e:
            self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"user_id": state.user_id, "operation": "summarize"},
            )
            raise


class AuthFlow:
    """
    Orchestrates sign in, sign up and sign out.

    The auth service does the work; this class audits
    each outcome. AuthError always propagates to the caller.
    """

    def __init__(
        self,
        auth_service: AuthServiceInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._auth = auth_service
        self._audit_logger = audit_logger or AuditLogger()

    async def sign_in(self, email: str, password: str) -> AuthUser:
        try:
            user = await self._auth.sign_in(email, password)
        except AuthError as e:
            self._audit_logger.log_auth_failed(
                action="sign_in",
                email=email,
                error_message=str(e),
            )
            raise

        self._audit_logger.log_signed_in(user_id=user.id, email=email)
        return user

    async def sign_up(self, email: str, password: str, full_name: str = "") -> AuthUser:
        try:
            user = await self._auth.sign_up(email, password, full_name)
        except AuthError as e:
            self._audit_logger.log_auth_failed(
                action="sign_up",
                email=email,
                error_message=str(e),
            )
            raise

        self._audit_logger.log_signed_up(user_id=user.id, email=email)
        return user

    async def sign_out(self, user_id: Optional[str] = None) -> None:
        await self._auth.sign_out()
        self._audit_logger.log_signed_out(user_id=user_id)

    async def current_user(self) -> Optional[AuthUser]:
        return await self._auth.get_current_user()


def create_app_components(
    use_storage: bool = True,
) -> tuple[ExpenseTrackerFlow, Optional[AuthFlow], Optional[SupabaseClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to Supabase.
                    Set to False to run on in-memory storage.

    Returns:
        (expense_flow, auth_flow, supabase_client). auth_flow and
        supabase_client are None in in-memory mode.
    """
    audit_logger = AuditLogger()
    supabase_client = None
    auth_flow = None
    storage: ExpenseStorageInterface

    if use_storage:
        try:
            supabase_client = SupabaseClient(get_settings().supabase)
            supabase_client.connect()
            storage = SupabaseExpenseStorage(supabase_client)
            auth_flow = AuthFlow(SupabaseAuthService(supabase_client), audit_logger)
        except Exception as e:
            # Backend not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            supabase_client = None
            auth_flow = None
            storage = InMemoryExpenseStorage()
    else:
        storage = InMemoryExpenseStorage()

    expense_flow = ExpenseTrackerFlow(
        storage=storage,
        validator=ExpenseValidator(),
        audit_logger=audit_logger,
    )

    return expense_flow, auth_flow, supabase_client
