"""Half-up rounding for scores and percentages.

Python's built-in round() uses banker's rounding: round(12.5) == 12.
Grades and progress percentages round half up (12.5 -> 13), so every
integer score in this service goes through round_half_up().

Arithmetic is done on Fraction so 100 * 1 / 8 is exactly 12.5 and not
12.499999...
"""

from __future__ import annotations

import math
from fractions import Fraction


def round_half_up(value: Fraction | int | float) -> int:
    return math.floor(Fraction(value) + Fraction(1, 2))


def percentage(part: Fraction | int | float, whole: Fraction | int | float) -> int:
    """round_half_up(100 * part / whole); 0 when whole is 0."""
    if not whole:
        return 0
    return round_half_up(Fraction(100) * Fraction(part) / Fraction(whole))


def clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))
