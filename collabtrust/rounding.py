"""Half-up rounding shared by the scorers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a display would: 2.25 -> 2.3, 0.125 -> 0.13, 72.5 -> 73.

    Python's round() is banker's rounding, which would make 72.5 -> 72.
    Going through str() keeps the decimal the caller sees.
    """
    exponent = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP))
