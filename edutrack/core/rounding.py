"""Half-up rounding for percentages and time conversions.

Built-in ``round`` uses banker's rounding (``round(12.5) == 12``); progress
and scores round halves away from zero instead.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 0) -> float:
    """Round ``value`` to ``places`` decimals, halves going up."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_to_int(value: float) -> int:
    """Round ``value`` to the nearest integer, halves going up."""
    return int(round_half_up(value))
