"""Rounding and percentage helpers shared by the scoring services."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up.

    Python's built-in round() uses banker's rounding (round(0.5) == 0), which
    would make a 50%-of-a-point boundary disagree with what dashboards display.

    Examples:
        round_half_up(99.75) → 100
        round_half_up(62.5) → 63
        round_half_up(-0.5) → 0
    """
    return math.floor(value + 0.5)


def calculate_percentage(current: float, target: float) -> int:
    """Calculate a whole-number percentage, or 0 if target is not positive.

    Examples:
        calculate_percentage(5, 8) → 63
        calculate_percentage(1, 3) → 33
        calculate_percentage(5, 0) → 0
    """
    if target <= 0:
        return 0
    return round_half_up(current / target * 100)


def clamp(value: int, min_val: int, max_val: int) -> int:
    """Clamp a value between minimum and maximum bounds."""
    return max(min_val, min(value, max_val))
