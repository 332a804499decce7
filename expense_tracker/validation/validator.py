"""
Expense Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SHAPE VALIDATION:
- Required field presence
- Amount is a number, date is a date
- This catches empty and garbled form input

STAGE 2 - RANGE VALIDATION:
- Category belongs to the offered set
- Amount positive, below MAX_AMOUNT, at most cents precision
- Description length
- No future dates
- This catches well-formed but unacceptable values

IMPORTANT: Validation NEVER silently fixes issues. A rejected draft is
returned untouched so the user can correct it.

"today" is injected by the caller, the same value the dashboard uses.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from expense_tracker.models.expense import (
    MAX_AMOUNT,
    MAX_DESCRIPTION_LENGTH,
    ExpenseCategory,
    ExpenseDraft,
    NewExpense,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.summary.aggregator import AggregationError, to_iso_date


def _parse_amount(value: Any) -> Optional[Decimal]:
    """Form amounts arrive as str, int or float. None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def _parse_date(value: Any) -> Optional[dt.date]:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(to_iso_date(str(value).strip()))
    except AggregationError:
        return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ExpenseValidator:
    """
    Validates an ExpenseDraft into a NewExpense.

    Stage 1 (shape) runs on every field; stage 2 (range) only runs on
    fields that passed stage 1, so each field reports at most one error.
    """

    def _validate_shape(
        self,
        draft: ExpenseDraft,
    ) -> tuple[dict[str, Any], list[ValidationIssue]]:
        """
        Stage 1: presence and parsing.

        Returns: (parsed_values, list_of_issues)
        """
        issues = []
        parsed: dict[str, Any] = {}

        if _is_blank(draft.category):
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
                suggested_fix="Pick a category from the list",
            ))
        else:
            parsed["category"] = draft.category.strip()

        if _is_blank(draft.amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter how much you spent",
            ))
        else:
            amount = _parse_amount(draft.amount)
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message="Amount must be a number",
                    severity="error",
                    suggested_fix="Use digits and a decimal point, e.g. 12.50",
                ))
            else:
                parsed["amount"] = amount

        if _is_blank(draft.date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))
        else:
            expense_date = _parse_date(draft.date)
            if expense_date is None:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=f"Date must be YYYY-MM-DD, got {draft.date!r}",
                    severity="error",
                ))
            else:
                parsed["date"] = expense_date

        parsed["description"] = (draft.description or "").strip()

        return parsed, issues

    def _validate_range(
        self,
        parsed: dict[str, Any],
        today: dt.date,
    ) -> list[ValidationIssue]:
        """
        Stage 2: business rules on parsed values.

        Returns: list_of_issues
        """
        issues = []

        category = parsed.get("category")
        if category is not None:
            allowed = [c.value for c in ExpenseCategory]
            if category not in allowed:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="out_of_range",
                    message=f"Unknown category: {category}",
                    severity="error",
                    suggested_fix=f"Choose one of: {', '.join(allowed)}",
                ))

        amount = parsed.get("amount")
        if amount is not None:
            if amount <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="out_of_range",
                    message="Amount must be positive",
                    severity="error",
                    suggested_fix="The smallest amount is 0.01",
                ))
            elif amount > MAX_AMOUNT:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="out_of_range",
                    message="Amount is too large",
                    severity="error",
                    suggested_fix=f"The largest amount is {MAX_AMOUNT}",
                ))
            elif amount.normalize().as_tuple().exponent < -2:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message="Amount can have at most 2 decimal places",
                    severity="error",
                ))

        if len(parsed["description"]) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message="Description too long",
                severity="error",
                suggested_fix=f"Keep it under {MAX_DESCRIPTION_LENGTH} characters",
            ))

        expense_date = parsed.get("date")
        if expense_date is not None and expense_date > today:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({expense_date.isoformat()}) cannot be in the future",
                severity="error",
                suggested_fix=f"Use {today.isoformat()} or earlier",
            ))

        return issues

    def validate(
        self,
        draft: ExpenseDraft,
        today: dt.date,
    ) -> ValidationResult:
        """
        Run the two-stage validation.

        Args:
            draft: Raw form values
            today: Latest acceptable expense date

        Returns:
            ValidationResult; `expense` is set only when valid
        """
        parsed, issues = self._validate_shape(draft)
        issues.extend(self._validate_range(parsed, today))

        if any(issue.severity == "error" for issue in issues):
            return ValidationResult(is_valid=False, issues=issues)

        # MAX_AMOUNT keeps the quantize within decimal context precision
        expense = NewExpense(
            category=ExpenseCategory(parsed["category"]),
            amount=parsed["amount"].quantize(Decimal("0.01")),
            description=parsed["description"] or None,
            date=parsed["date"],
        )
        return ValidationResult(is_valid=True, expense=expense, issues=issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        The one line shown under the form.

        Like most forms we surface the first error only; fixing it
        reveals the next.
        """
        if result.is_valid:
            return "Expense added successfully"

        for issue in result.issues:
            if issue.severity == "error":
                return issue.message
        return "Please check the form"
