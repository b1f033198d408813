"""Minimal-order search for series expansions.

The search is a linear scan over candidate orders that stops at the first
order whose error bound meets the request.  Higher orders are never
examined once the bound is met, so the result is always the smallest
order in range.  Running out of orders is an expected outcome and is
reported as order ``-1``.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, NamedTuple, Optional

import numpy as np

logger = logging.getLogger(__name__)

INFEASIBLE_ORDER = -1

ErrorFunction = Callable[[int], float]


class OrderSearchResult(NamedTuple):
    """Outcome of an order search."""

    order: int
    actual_error: float

    @property
    def feasible(self) -> bool:
        return self.order != INFEASIBLE_ORDER


def log_order_search(
    label: str,
    result: OrderSearchResult,
    max_error: float,
    max_order: int,
    *,
    level: int = logging.DEBUG,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log a search outcome using the provided (or module) logger."""

    target_logger = logger or logging.getLogger(__name__)
    target_logger.log(
        level,
        "Order search %s: order=%d, actual_error=%.3e, max_error=%.3e, max_order=%d",
        label,
        result.order,
        result.actual_error,
        max_error,
        max_order,
    )


def search_minimal_order(
    error_fn: ErrorFunction,
    max_order: int,
    max_error: float,
    *,
    label: str = "evaluate",
) -> OrderSearchResult:
    """Return the first order in ``0..max_order`` with ``error_fn(order) <= max_error``."""

    limit = int(max_order)
    if limit < 0:
        raise ValueError("max_order must be >= 0")

    for order in range(limit + 1):
        error = float(error_fn(order))
        if math.isinf(error):
            # Bounds are non-increasing in the order; an infinite bound
            # means the geometry itself rules the expansion out.
            break
        if error <= max_error:
            return OrderSearchResult(order=order, actual_error=error)

    result = OrderSearchResult(order=INFEASIBLE_ORDER, actual_error=math.inf)
    log_order_search(label, result, max_error, limit)
    return result


def error_profile(error_fn: ErrorFunction, max_order: int) -> np.ndarray:
    """Evaluate ``error_fn`` at every order ``0..max_order``."""

    return np.asarray(
        [float(error_fn(order)) for order in range(int(max_order) + 1)],
        dtype=np.float64,
    )


__all__ = [
    "INFEASIBLE_ORDER",
    "ErrorFunction",
    "OrderSearchResult",
    "error_profile",
    "log_order_search",
    "search_minimal_order",
]
