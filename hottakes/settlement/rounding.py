"""Exact round-half-up for point computations.

Point shares are computed as ``Fraction``s so that ties such as 17/2 land
exactly on .5 and always round the same way. Half-up (towards +inf)
matches the rounding the scores were historically computed with; all
rounded quantities in settlement are non-negative, where half-up and
half-away-from-zero agree.

    round_half_up(Fraction(17, 2))  -> 9
    round_half_up(Fraction(20, 3))  -> 7
    round_half_up(Fraction(10, 3))  -> 3
"""

from __future__ import annotations

import math
from fractions import Fraction

_HALF = Fraction(1, 2)


def round_half_up(value: Fraction | int) -> int:
    """Round to the nearest integer, ties towards +inf."""
    return math.floor(Fraction(value) + _HALF)
