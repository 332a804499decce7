"""
Core Data Models for Smart Expense Tracker

These models define the schemas for all data flowing through the system.
They are designed to:
1. Keep stored records immutable once read
2. Provide clear validation error messages at input time
3. Be serializable for storage and logging

DESIGN DECISION: Two expense shapes.
- NewExpense is strict: it is what the form is allowed to send to storage.
- Expense is lenient: it is what storage hands back, including legacy
  rows whose category is outside today's enum.
Aggregation works on Expense, so miscategorized history is never dropped.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


MAX_DESCRIPTION_LENGTH = 500
MAX_AMOUNT = Decimal("999999999999.99")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Categories offered by the expense form.

    The form only lets users pick from this set. Aggregation does NOT
    rely on it: any stored category string is grouped as-is.
    """
    FOOD = "Food"
    TRAVEL = "Travel"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    HEALTHCARE = "Healthcare"
    OTHER = "Other"


class LimitState(str, Enum):
    """Where today's total stands relative to the daily limit."""
    UNKNOWN = "unknown"    # No profile loaded yet
    WITHIN = "within"      # total <= limit
    EXCEEDED = "exceeded"  # total > limit


# =============================================================================
# STORED ENTITIES
# =============================================================================

class Expense(BaseModel):
    """
    One spending record as stored by the backend.

    Frozen: the dashboard only ever reads these.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category label (free string on read)"
    )
    amount: Decimal = Field(
        ...,
        description="Amount spent"
    )
    description: Optional[str] = Field(
        default=None,
        description="Optional note"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the expense"
    )
    user_id: Optional[str] = None
    created_at: Optional[dt.datetime] = None

    @field_validator('id', 'user_id', mode='before')
    @classmethod
    def coerce_identifier(cls, v: Any) -> Any:
        """Backends hand out UUIDs or ints; we only care about equality."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator('description')
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class Profile(BaseModel):
    """Per-user settings row."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    daily_limit: Decimal = Field(
        ...,
        ge=0,
        description="Ceiling on same-day spending"
    )
    full_name: str = Field(
        default="",
        description="Display name"
    )

    @field_validator('full_name', mode='before')
    @classmethod
    def null_name_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def display_name(self) -> str:
        return self.full_name or "User"


class AuthUser(BaseModel):
    """The signed-in user as reported by the auth provider."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None


# =============================================================================
# INPUT MODELS
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    Raw values from the expense form, before validation.

    Everything is loose here on purpose: the validator reports what is
    wrong instead of pydantic refusing to build the object.
    """

    category: str = ""
    amount: Any = None
    description: str = ""
    date: Any = None


class NewExpense(BaseModel):
    """
    A validated expense ready to be written.

    CRITICAL: Only NewExpense objects are sent to storage.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    category: ExpenseCategory = Field(
        ...,
        description="Category (closed set)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        le=MAX_AMOUNT,
        decimal_places=2,
        description="Amount spent, positive, cents precision"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=MAX_DESCRIPTION_LENGTH,
        description="Optional note"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the expense"
    )

    @field_validator('description')
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def to_row(self, user_id: str) -> dict:
        """Row payload for the expenses table."""
        return {
            "user_id": user_id,
            "category": self.category.value,
            "amount": str(self.amount),
            "description": self.description,
            "date": self.date.isoformat(),
        }


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating an ExpenseDraft.

    When is_valid is True, `expense` holds the NewExpense to save.
    """

    validated_at: dt.datetime = Field(
        default_factory=dt.datetime.utcnow
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    expense: Optional[NewExpense] = None
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# SUMMARY MODELS
# =============================================================================

class LimitStatus(BaseModel):
    """
    Today's total compared to the daily limit.

    `remaining` is None when the limit is unknown, unless legacy
    zero-limit display was requested.
    """
    model_config = ConfigDict(frozen=True)

    state: LimitState
    today_total: Decimal
    daily_limit: Optional[Decimal] = None
    remaining: Optional[Decimal] = None
    excess: Decimal = Decimal("0.00")

    @property
    def limit_known(self) -> bool:
        return self.state != LimitState.UNKNOWN

    @property
    def exceeded(self) -> bool:
        return self.state == LimitState.EXCEEDED


class CategorySlice(BaseModel):
    """One wedge of the category pie chart."""
    model_config = ConfigDict(frozen=True)

    label: str
    value: Decimal
    color: str
    percent: int = Field(
        ...,
        ge=0,
        le=100,
        description="Whole-number share of the grand total"
    )


class DashboardSummary(BaseModel):
    """Everything the dashboard displays, computed from one snapshot."""
    model_config = ConfigDict(frozen=True)

    today: dt.date
    today_total: Decimal
    today_count: int = Field(ge=0)
    grand_total: Decimal
    total_count: int = Field(ge=0)
    totals_by_category: dict[str, Decimal] = Field(default_factory=dict)
    breakdown: list[CategorySlice] = Field(default_factory=list)
    limit: LimitStatus
    alert_message: Optional[str] = None
