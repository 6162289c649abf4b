"""Numeric helpers shared by the processors."""

import math
from typing import Any, Optional


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a raw score to float.

    Returns None for labels, booleans, NaN and anything non-numeric.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def safe_divide(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def is_within_acceptable_range(value: float, target: float, tolerance: float = 0.1) -> bool:
    """True when value lies within target * (1 +/- tolerance), bounds inclusive."""
    low = target * (1 - tolerance)
    high = target * (1 + tolerance)
    return min(low, high) <= value <= max(low, high)
