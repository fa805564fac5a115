from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``); day counts
    and ratings here need ``2.5 -> 3``.
    """
    return int(math.floor(value + 0.5))


def round_to_tenth(value: float) -> float:
    return round_half_up(value * 10) / 10
