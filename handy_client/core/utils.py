"""Core utility functions shared across modules."""

from __future__ import annotations

import time
from typing import Iterable


def now_ms() -> int:
    """Return the local wall clock as Unix milliseconds."""
    return time.time_ns() // 1_000_000


def truncating_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero, unlike ``//`` which floors.

    Examples:
        >>> truncating_div(7, 2)
        3
        >>> truncating_div(-7, 2)
        -3
    """
    if denominator == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def truncating_mean(values: Iterable[int]) -> int:
    items = list(values)
    if not items:
        raise ValueError("mean of empty sequence")
    return truncating_div(sum(items), len(items))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
