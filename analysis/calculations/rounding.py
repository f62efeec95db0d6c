"""
Rounding helpers for stored percentages and integer ranks.
Half-up rounding so stored values match what the data sources publish.
"""

import math
from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, places: int = 2) -> float:
    """
    Round to a fixed number of decimals, ties away from zero.

    Uses the exact binary value of the float, so 1.005 (stored as
    1.00499999...) rounds to 1.0 while 0.125 rounds to 0.13.

    Args:
        value: Value to round
        places: Number of decimals to keep

    Returns:
        Rounded float
    """
    if not math.isfinite(value):
        return value

    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round_to_int(value: float) -> int:
    """Round to nearest integer, .5 rounds up (towards +inf)."""
    return int(math.floor(value + 0.5))
