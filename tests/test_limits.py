"""Tests for daily limit evaluation and the alert message."""

import pytest
from decimal import Decimal

from expense_tracker.models.expense import LimitState
from expense_tracker.summary.aggregator import AggregationError
from expense_tracker.summary.limits import (
    ALERT_TITLE,
    evaluate_limit,
    format_money,
    limit_alert_message,
)


class TestEvaluateLimit:
    """Boundary behavior around the daily limit."""

    def test_under_limit(self):
        status = evaluate_limit(Decimal("100"), Decimal("150"))
        assert status.state == LimitState.WITHIN
        assert not status.exceeded
        assert status.remaining == Decimal("50.00")
        assert status.excess == Decimal("0.00")

    def test_exactly_at_limit_is_not_exceeded(self):
        status = evaluate_limit(Decimal("150"), Decimal("150"))
        assert not status.exceeded
        assert status.remaining == Decimal("0.00")

    def test_one_cent_over(self):
        status = evaluate_limit(Decimal("150.01"), Decimal("150"))
        assert status.exceeded
        assert status.excess == Decimal("0.01")
        assert status.remaining == Decimal("0.00")

    def test_remaining_never_negative(self):
        status = evaluate_limit(Decimal("200"), Decimal("150"))
        assert status.exceeded
        assert status.remaining == Decimal("0.00")
        assert status.excess == Decimal("50.00")

    def test_zero_limit_with_spending(self):
        status = evaluate_limit(Decimal("0.01"), Decimal("0"))
        assert status.exceeded

    def test_zero_limit_no_spending(self):
        status = evaluate_limit(Decimal("0"), Decimal("0"))
        assert not status.exceeded
        assert status.remaining == Decimal("0.00")

    def test_accepts_raw_numbers(self):
        status = evaluate_limit("25.00", 20)
        assert status.exceeded
        assert status.daily_limit == Decimal("20.00")

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            evaluate_limit(Decimal("10"), Decimal("-1"))

    def test_non_numeric_total_rejected(self):
        with pytest.raises(AggregationError):
            evaluate_limit("lots", Decimal("10"))

    def test_sub_cent_over_limit(self):
        """A fraction of a cent over still counts as over."""
        status = evaluate_limit(Decimal("150.004"), Decimal("150"))
        assert status.exceeded
        assert status.today_total == Decimal("150.00")
        assert status.excess == Decimal("0.00")

    def test_sub_cent_limit_is_not_shifted(self):
        status = evaluate_limit(Decimal("150.00"), Decimal("149.995"))
        assert status.exceeded
        assert status.daily_limit == Decimal("150.00")

        status = evaluate_limit(Decimal("149.99"), Decimal("149.995"))
        assert not status.exceeded
        assert status.remaining == Decimal("0.01")


class TestUnknownLimit:
    """A missing profile gives an unknown limit, never an alert."""

    def test_unknown_limit(self):
        status = evaluate_limit(Decimal("500"), None)
        assert status.state == LimitState.UNKNOWN
        assert not status.limit_known
        assert not status.exceeded
        assert status.remaining is None
        assert status.daily_limit is None

    def test_unknown_limit_has_no_alert(self):
        assert limit_alert_message(evaluate_limit(Decimal("500"), None)) is None

    def test_legacy_zero_display(self):
        """Legacy mode shows Remaining: 0.00 but still never alerts."""
        status = evaluate_limit(Decimal("12.00"), None, legacy_zero_default=True)
        assert status.remaining == Decimal("0.00")
        assert not status.exceeded
        assert limit_alert_message(status) is None


class TestAlertMessage:
    """Tests for the limit-exceeded banner."""

    def test_alert_message(self):
        status = evaluate_limit(Decimal("25"), Decimal("20"))
        message = limit_alert_message(status)
        assert message == (
            "You have exceeded your daily expense limit of $20.00. "
            "Today's total: $25.00"
        )

    def test_alert_contains_both_amounts(self):
        message = limit_alert_message(evaluate_limit(Decimal("25"), Decimal("20")))
        assert "20.00" in message
        assert "25.00" in message

    def test_no_alert_when_within(self):
        assert limit_alert_message(evaluate_limit(Decimal("20"), Decimal("20"))) is None

    def test_currency_symbol(self):
        message = limit_alert_message(evaluate_limit(Decimal("25"), Decimal("20")), "€")
        assert "€20.00" in message

    def test_alert_title(self):
        assert ALERT_TITLE == "Daily Limit Exceeded!"


class TestFormatMoney:
    def test_pads_to_cents(self):
        assert format_money(Decimal("12.5")) == "$12.50"
        assert format_money(3) == "$3.00"

    def test_rounds_half_up(self):
        assert format_money(Decimal("0.125")) == "$0.13"

    def test_custom_symbol(self):
        assert format_money(Decimal("7"), "£") == "£7.00"
