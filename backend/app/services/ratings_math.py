"""Rating arithmetic shared by the incremental and repair aggregation paths."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_ONE_DECIMAL = Decimal("0.1")


def round_rating(value: Decimal) -> float:
    """Round to one decimal place, halves away from zero (4.25 -> 4.3)."""
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def average_from_totals(rating_sum: int, count: int) -> float:
    if count <= 0:
        return 0.0
    return round_rating(Decimal(rating_sum) / Decimal(count))
