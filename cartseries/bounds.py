"""Axis-aligned region bounds used by the order estimators.

Spatial partitioning lives outside this package.  The order estimators
only need the bounding geometry of the two regions involved, which this
module models as a hyper-rectangle with inclusive lower/upper corners.
"""

from __future__ import annotations

from typing import NamedTuple

import jax.numpy as jnp
from jaxtyping import Array

from .dtypes import REAL_DTYPE


class RegionBound(NamedTuple):
    """Hyper-rectangle ``[lower, upper]`` in ``D`` dimensions."""

    lower: Array
    upper: Array

    @property
    def dim(self) -> int:
        return int(self.lower.shape[0])

    @property
    def center(self) -> Array:
        return 0.5 * (self.lower + self.upper)

    @property
    def widths(self) -> Array:
        return self.upper - self.lower

    def widest_dimension(self) -> tuple[int, float]:
        """Return ``(axis, width)`` of the widest side."""

        widths = self.widths
        axis = int(jnp.argmax(widths))
        return axis, float(widths[axis])

    def max_reach(self, point: Array) -> Array:
        """Per-axis largest distance from ``point`` to any point in the box."""

        point = jnp.asarray(point, dtype=self.lower.dtype)
        return jnp.maximum(jnp.abs(self.upper - point), jnp.abs(point - self.lower))

    def contains(self, point: Array) -> bool:
        point = jnp.asarray(point, dtype=self.lower.dtype)
        return bool(jnp.all((point >= self.lower) & (point <= self.upper)))

    def min_distance_sq(self, other: "RegionBound") -> float:
        """Smallest squared distance between points of the two boxes."""

        gap = jnp.maximum(
            jnp.maximum(other.lower - self.upper, self.lower - other.upper), 0.0
        )
        return float(jnp.sum(gap * gap))

    def max_distance_sq(self, other: "RegionBound") -> float:
        """Largest squared distance between points of the two boxes."""

        span = jnp.maximum(other.upper - self.lower, self.upper - other.lower)
        return float(jnp.sum(span * span))


def region_from_points(points: Array) -> RegionBound:
    """Tight bounding box of an ``(N, D)`` point set."""

    points = jnp.asarray(points, dtype=REAL_DTYPE)
    if points.ndim != 2 or points.shape[0] == 0:
        raise ValueError("points must have shape (N, D) with N >= 1")
    return RegionBound(
        lower=jnp.min(points, axis=0),
        upper=jnp.max(points, axis=0),
    )


def infer_bounds(points: Array) -> RegionBound:
    """Bounding box padded by 5% of its span (at least ``1e-6`` per side)."""

    tight = region_from_points(points)
    span = tight.upper - tight.lower
    padding = jnp.maximum(span * 0.05, jnp.full_like(span, 1e-6))
    return RegionBound(lower=tight.lower - padding, upper=tight.upper + padding)


__all__ = ["RegionBound", "infer_bounds", "region_from_points"]
