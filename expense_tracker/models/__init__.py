"""
Data Models Package

This package contains all Pydantic models used in the Smart Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    MAX_DESCRIPTION_LENGTH,
    AuthUser,
    CategorySlice,
    DashboardSummary,
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    LimitState,
    LimitStatus,
    NewExpense,
    Profile,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "MAX_DESCRIPTION_LENGTH",
    "AuthUser",
    "CategorySlice",
    "DashboardSummary",
    "Expense",
    "ExpenseCategory",
    "ExpenseDraft",
    "LimitState",
    "LimitStatus",
    "NewExpense",
    "Profile",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
