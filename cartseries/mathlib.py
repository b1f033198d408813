"""Small scalar math helpers shared by the kernel error formulas."""

from __future__ import annotations

import math


def clamp_non_negative(value: float) -> float:
    """Force ``value`` to be non-negative, turning negatives into zero."""

    return (value + math.fabs(value)) / 2


def clamp_non_positive(value: float) -> float:
    """Force ``value`` to be non-positive, turning positives into zero."""

    return (value - math.fabs(value)) / 2


def clamp_range(value: float, range_min: float, range_max: float) -> float:
    """Clip ``value`` into ``[range_min, range_max]``."""

    if value <= range_min:
        return range_min
    if value >= range_max:
        return range_max
    return value


__all__ = ["clamp_non_negative", "clamp_non_positive", "clamp_range"]
