"""
Expense Aggregation

Pure functions that turn a snapshot of expense records into totals and
counts. Nothing here touches the clock, the network or its input.

DESIGN DECISION: "today" is always a parameter. The dashboard computes
it once per render so today's total, the category totals and the grand
total all describe the same instant, even a second before midnight.

Records can be Expense models or plain mappings with the same keys
(raw backend rows). Amounts are handled as Decimal end to end; floats
are converted through their shortest repr so 0.1 stays 0.1.
"""

import datetime as dt
import re
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union


CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[dt.date, str]


class AggregationError(ValueError):
    """An expense record violates the aggregation contract."""
    pass


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_amount(value: Any) -> Decimal:
    """
    Convert an amount to Decimal, refusing anything that is not a number.

    Raises:
        AggregationError: for booleans, None, non-numeric strings,
            NaN and infinities.
    """
    if isinstance(value, bool) or value is None:
        raise AggregationError(f"Expense amount must be numeric, got {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise AggregationError(f"Expense amount must be numeric, got {value!r}") from None
    else:
        raise AggregationError(
            f"Expense amount must be numeric, got {type(value).__name__}"
        )

    if not amount.is_finite():
        raise AggregationError(f"Expense amount must be finite, got {value!r}")
    return amount


def to_iso_date(value: Any) -> str:
    """
    Normalize a date to its `YYYY-MM-DD` form.

    Raises:
        AggregationError: if the value is not a date or a valid ISO date string.
    """
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    if isinstance(value, str):
        if _ISO_DATE.match(value):
            try:
                dt.date.fromisoformat(value)
            except ValueError:
                pass
            else:
                return value
        raise AggregationError(f"Expense date must be YYYY-MM-DD, got {value!r}")
    raise AggregationError(f"Expense date must be a date, got {type(value).__name__}")


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        if name not in record:
            raise AggregationError(f"Expense record is missing '{name}'")
        return record[name]
    try:
        return getattr(record, name)
    except AttributeError:
        raise AggregationError(f"Expense record is missing '{name}'") from None


def _amount_of(record: Any) -> Decimal:
    return to_amount(_field(record, "amount"))


def _date_of(record: Any) -> str:
    return to_iso_date(_field(record, "date"))


def totals_by_category(expenses: Iterable) -> dict[str, Decimal]:
    """
    Sum amounts per category label.

    Any category string groups, enum member or not. Keys keep the order
    in which each category first appears; values are rounded to cents.
    """
    totals: dict[str, Decimal] = {}
    for record in expenses:
        category = _field(record, "category")
        if not isinstance(category, str):
            # str-valued enums are fine, anything else is a contract violation
            raise AggregationError(f"Expense category must be a string, got {category!r}")
        key = getattr(category, "value", category)
        totals[key] = totals.get(key, ZERO) + _amount_of(record)
    return {k: round_money(v) for k, v in totals.items()}


def exact_today_total(expenses: Iterable, today: DateLike) -> Decimal:
    """Unrounded sum of amounts dated exactly `today`, for limit checks."""
    day = to_iso_date(today)
    return sum(
        (_amount_of(r) for r in expenses if _date_of(r) == day),
        ZERO,
    )


def today_total(expenses: Iterable, today: DateLike) -> Decimal:
    """Sum of amounts dated exactly `today`."""
    return round_money(exact_today_total(expenses, today))


def grand_total(expenses: Iterable) -> Decimal:
    """Sum of every amount."""
    return round_money(sum((_amount_of(r) for r in expenses), ZERO))


def count_today(expenses: Iterable, today: DateLike) -> int:
    day = to_iso_date(today)
    return sum(1 for r in expenses if _date_of(r) == day)


def count_all(expenses: Iterable) -> int:
    return sum(1 for _ in expenses)
