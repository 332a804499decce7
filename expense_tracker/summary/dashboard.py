"""
Dashboard Summary

Composes aggregation, limit evaluation and the category breakdown into
the single view model the UI renders.

The expense iterable is materialized once, and the same `today` feeds
every figure, so the cards, the banner and the chart always agree.
"""

import datetime as dt
from collections.abc import Iterable
from typing import Optional

from expense_tracker.models.expense import DashboardSummary, Profile
from expense_tracker.summary.aggregator import (
    count_all,
    count_today,
    exact_today_total,
    grand_total,
    to_iso_date,
    today_total,
    totals_by_category,
)
from expense_tracker.summary.breakdown import CHART_PALETTE, category_breakdown
from expense_tracker.summary.limits import evaluate_limit, limit_alert_message


def build_dashboard_summary(
    expenses: Iterable,
    today: dt.date,
    profile: Optional[Profile] = None,
    *,
    currency_symbol: str = "$",
    legacy_zero_default: bool = False,
    palette: tuple[str, ...] = CHART_PALETTE,
) -> DashboardSummary:
    """
    Compute every dashboard figure from one snapshot.

    Args:
        expenses: Expense models or raw rows
        today: The render's notion of today (never read from the clock here)
        profile: The user's profile, or None while unknown
        currency_symbol: Prefix for the alert message
        legacy_zero_default: See `evaluate_limit`

    Raises:
        AggregationError: if any record is malformed
    """
    records = list(expenses)
    day = dt.date.fromisoformat(to_iso_date(today))

    by_category = totals_by_category(records)
    todays = today_total(records, day)
    limit = evaluate_limit(
        exact_today_total(records, day),
        profile.daily_limit if profile is not None else None,
        legacy_zero_default=legacy_zero_default,
    )

    return DashboardSummary(
        today=day,
        today_total=todays,
        today_count=count_today(records, day),
        grand_total=grand_total(records),
        total_count=count_all(records),
        totals_by_category=by_category,
        breakdown=category_breakdown(by_category, palette),
        limit=limit,
        alert_message=limit_alert_message(limit, currency_symbol),
    )


def format_display_date(value) -> str:
    """`2024-01-01` -> `"Jan 1, 2024"`."""
    day = dt.date.fromisoformat(to_iso_date(value))
    return f"{day:%b} {day.day}, {day.year}"
