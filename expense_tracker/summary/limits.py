"""
Daily Limit Evaluation

Compares today's total with the user's daily limit.

DESIGN DECISION: A missing limit is UNKNOWN, not zero.
Before the profile loads we do not know the limit, and treating it as
zero would flash a "limit exceeded" banner at every user with a single
expense today. UNKNOWN never reports exceeded.

`legacy_zero_default` reproduces the old "Remaining: $0.00" display for
a missing profile. It only affects `remaining`; the alert stays off.
"""

from decimal import Decimal
from typing import Any, Optional

from expense_tracker.models.expense import LimitState, LimitStatus
from expense_tracker.summary.aggregator import ZERO, round_money, to_amount


ALERT_TITLE = "Daily Limit Exceeded!"


def evaluate_limit(
    today_total: Any,
    daily_limit: Optional[Any],
    *,
    legacy_zero_default: bool = False,
) -> LimitStatus:
    """
    Evaluate today's total against the daily limit.

    Exceeded means strictly greater: spending exactly the limit is fine.
    The comparison uses the exact values; only the reported figures are
    rounded to cents.

    Raises:
        AggregationError: if either value is not numeric.
        ValueError: if the limit is negative.
    """
    total = to_amount(today_total)

    if daily_limit is None:
        remaining = ZERO if legacy_zero_default else None
        return LimitStatus(
            state=LimitState.UNKNOWN,
            today_total=round_money(total),
            remaining=remaining,
        )

    limit = to_amount(daily_limit)
    if limit < 0:
        raise ValueError(f"Daily limit cannot be negative, got {daily_limit!r}")

    state = LimitState.EXCEEDED if total > limit else LimitState.WITHIN
    return LimitStatus(
        state=state,
        today_total=round_money(total),
        daily_limit=round_money(limit),
        remaining=round_money(max(ZERO, limit - total)),
        excess=round_money(max(ZERO, total - limit)),
    )


def format_money(value: Decimal, currency_symbol: str = "$") -> str:
    """`Decimal("12.5")` -> `"$12.50"`."""
    return f"{currency_symbol}{round_money(to_amount(value)):.2f}"


def limit_alert_message(
    status: LimitStatus,
    currency_symbol: str = "$",
) -> Optional[str]:
    """The banner text, or None when there is nothing to warn about."""
    if not status.exceeded:
        return None
    return (
        f"You have exceeded your daily expense limit of "
        f"{format_money(status.daily_limit, currency_symbol)}. "
        f"Today's total: {format_money(status.today_total, currency_symbol)}"
    )
