"""Category breakdown for the pie chart."""

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal

from expense_tracker.models.expense import CategorySlice
from expense_tracker.summary.aggregator import ZERO, round_money, to_amount


# chart-1 .. chart-5; colors follow position, not category
CHART_PALETTE: tuple[str, ...] = (
    "hsl(12, 76%, 61%)",
    "hsl(173, 58%, 39%)",
    "hsl(197, 37%, 24%)",
    "hsl(43, 74%, 66%)",
    "hsl(27, 87%, 67%)",
)


def _percent(value: Decimal, total: Decimal) -> int:
    if total <= 0:
        return 0
    share = (value / total * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(min(max(share, Decimal(0)), Decimal(100)))


def category_breakdown(
    totals: Mapping[str, Decimal],
    palette: Sequence[str] = CHART_PALETTE,
) -> list[CategorySlice]:
    """
    One slice per category, in mapping order.

    The i-th slice gets palette[i % len(palette)], so the same input
    always renders with the same colors.
    """
    if not palette:
        raise ValueError("Chart palette cannot be empty")

    values = [(label, round_money(to_amount(v))) for label, v in totals.items()]
    total = sum((v for _, v in values), ZERO)

    return [
        CategorySlice(
            label=label,
            value=value,
            color=palette[index % len(palette)],
            percent=_percent(value, total),
        )
        for index, (label, value) in enumerate(values)
    ]
