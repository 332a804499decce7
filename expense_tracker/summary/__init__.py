"""Expense totals, daily limit evaluation and category breakdown."""

from expense_tracker.summary.aggregator import (
    AggregationError,
    count_all,
    count_today,
    exact_today_total,
    grand_total,
    round_money,
    to_amount,
    to_iso_date,
    today_total,
    totals_by_category,
)
from expense_tracker.summary.breakdown import CHART_PALETTE, category_breakdown
from expense_tracker.summary.dashboard import build_dashboard_summary, format_display_date
from expense_tracker.summary.limits import (
    ALERT_TITLE,
    evaluate_limit,
    format_money,
    limit_alert_message,
)

__all__ = [
    "ALERT_TITLE",
    "AggregationError",
    "CHART_PALETTE",
    "build_dashboard_summary",
    "category_breakdown",
    "count_all",
    "count_today",
    "evaluate_limit",
    "exact_today_total",
    "format_display_date",
    "format_money",
    "grand_total",
    "limit_alert_message",
    "round_money",
    "to_amount",
    "to_iso_date",
    "today_total",
    "totals_by_category",
]
