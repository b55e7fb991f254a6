"""Currency rounding helpers.

Fee schedules quote whole dollars, and half-dollar amounts always round up
(150.5 -> 151, -0.5 -> 0). Python's built-in round() uses banker's rounding,
so all pricing math goes through round_currency instead.
"""

import math
from typing import Sequence


def round_currency(amount: float) -> int:
    """Round a dollar amount to the nearest whole dollar, halves rounding up."""
    return int(math.floor(amount + 0.5))


def average_currency(amounts: Sequence[float]) -> int:
    """Average of amounts rounded to whole dollars. Empty input averages to 0."""
    if not amounts:
        return 0
    return round_currency(sum(amounts) / len(amounts))
