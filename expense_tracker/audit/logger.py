"""
Audit Logger

DESIGN DECISION: Every write and every backend failure is logged.
This provides:
1. Traceability of expense creation and deletion
2. Debugging capability when the hosted backend misbehaves
3. A record of why a daily limit was shown as unknown

The audit logger:
- Writes structured JSON lines through structlog
- Never raises (a logging failure must not break the dashboard)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO") -> None:
    """
    Configure stdlib logging and structlog for JSON output.

    Safe to call more than once (Streamlit reruns the script).
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Emits one structured log line per AuditEvent, at a level matching
    the event severity.
    """

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("expense_tracker.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the logger itself failed.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    def log_signed_in(self, user_id: str, email: str) -> None:
        self.log(AuditEventBuilder.user_signed_in(user_id=user_id, email=email))

    def log_signed_up(self, user_id: str, email: str) -> None:
        self.log(AuditEventBuilder.user_signed_up(user_id=user_id, email=email))

    def log_signed_out(self, user_id: Optional[str]) -> None:
        self.log(AuditEventBuilder.user_signed_out(user_id=user_id))

    def log_auth_failed(self, action: str, email: str, error_message: str) -> None:
        self.log(AuditEventBuilder.auth_failed(
            action=action,
            email=email,
            error_message=error_message,
        ))

    def log_expenses_loaded(
        self,
        user_id: str,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expenses_loaded(
            user_id=user_id,
            count=count,
            correlation_id=correlation_id,
        ))

    def log_profile_missing(
        self,
        user_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.profile_missing(
            user_id=user_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        user_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected expense form."""
        self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_expense_created(
        self,
        expense_id: str,
        user_id: str,
        category: str,
        amount: str,
        expense_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            user_id=user_id,
            category=category,
            amount=amount,
            expense_date=expense_date,
            correlation_id=correlation_id,
        ))

    def log_expense_deleted(
        self,
        expense_id: str,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    def log_storage_error(
        self,
        operation: str,
        error: Exception,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed call to the storage backend."""
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error),
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one form submit).
    """
    return uuid4()
