"""State shared by far-field and local Cartesian expansions."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

import jax.numpy as jnp
import numpy as np
from jaxtyping import Array

from .dtypes import REAL_DTYPE
from .multi_index import MultiIndexTable
from .protocols import KernelAuxProtocol, LocalExpansionSink


class CartesianExpansion:
    """Center, order and fixed-capacity coefficient storage.

    Instances start uninitialized; ``init`` binds them to a center and a
    kernel-auxiliary object and allocates ``total_num_coeffs(max_order)``
    zero coefficients.  Entries past the current order are always zero.
    """

    kind = "expansion"

    def __init__(self):
        self._kernel_aux: Optional[KernelAuxProtocol] = None
        self._center: Optional[Array] = None
        self._coeffs: Optional[Array] = None
        self._order = 0

    def init(self, center: Array, kernel_aux: KernelAuxProtocol) -> None:
        """Bind to ``center`` and ``kernel_aux`` and reset the coefficients."""

        table = kernel_aux.table
        center = jnp.asarray(center, dtype=REAL_DTYPE)
        if center.shape != (table.dim,):
            raise ValueError(
                f"center must have shape ({table.dim},), got {center.shape}"
            )
        self._kernel_aux = kernel_aux
        self._center = center
        self._coeffs = jnp.zeros(
            (table.total_num_coeffs(table.max_order),), dtype=REAL_DTYPE
        )
        self._order = 0

    def init_without_center(self, kernel_aux: KernelAuxProtocol) -> None:
        """Bind to ``kernel_aux`` with the center at the origin."""

        self.init(jnp.zeros((kernel_aux.table.dim,), dtype=REAL_DTYPE), kernel_aux)

    def __repr__(self) -> str:
        if not self.is_initialized:
            return f"{type(self).__name__}(uninitialized)"
        return (
            f"{type(self).__name__}(center={np.asarray(self._center).tolist()}, "
            f"order={self._order})"
        )

    @property
    def is_initialized(self) -> bool:
        return self._kernel_aux is not None

    @property
    def kernel_aux(self) -> KernelAuxProtocol:
        self._require_initialized()
        return self._kernel_aux

    @property
    def table(self) -> MultiIndexTable:
        return self.kernel_aux.table

    @property
    def center(self) -> Array:
        self._require_initialized()
        return self._center

    def set_center(self, center: Array) -> None:
        """Copy new center coordinates; coefficients are left untouched."""

        center = jnp.asarray(center, dtype=REAL_DTYPE)
        if center.shape != self.center.shape:
            raise ValueError(
                f"center must have shape {self.center.shape}, got {center.shape}"
            )
        self._center = center

    @property
    def order(self) -> int:
        return self._order

    def set_order(self, new_order: int) -> None:
        """Set the current order; lowering it discards the dropped degrees."""

        new_order = self.table.check_order(new_order)
        self._require_initialized()
        if new_order < self._order:
            keep = self.table.total_num_coeffs(new_order)
            self._coeffs = self._coeffs.at[keep:].set(0.0)
        self._order = new_order

    @property
    def coeffs(self) -> Array:
        """Coefficients for every multi-index of degree ``<= order``."""

        self._require_initialized()
        return self._coeffs[: self.table.total_num_coeffs(self._order)]

    def add_coeffs(self, coeffs: Array, order: int) -> None:
        """Add a coefficient vector laid out for ``order`` to this expansion."""

        order = self.table.check_order(order)
        coeffs = jnp.asarray(coeffs, dtype=REAL_DTYPE)
        total = self.table.total_num_coeffs(order)
        if coeffs.shape != (total,):
            raise ValueError(
                f"order {order} needs {total} coefficients, got shape {coeffs.shape}"
            )
        self._coeffs = self._coeffs.at[:total].add(coeffs)
        self._order = max(self._order, order)

    def print(self, name: str = "", stream: Optional[TextIO] = None) -> None:
        """Write a human-readable dump of the expansion to ``stream``."""

        self._require_initialized()
        out = sys.stderr if stream is None else stream
        print(f"----- SERIESEXPANSION {name} ------", file=out)
        print(f"{self.kind} expansion", file=out)
        print(f"Center: {np.asarray(self._center).tolist()}", file=out)
        print(f"Order: {self._order}", file=out)
        coeffs = np.asarray(self.coeffs)
        for rank, value in enumerate(coeffs.tolist()):
            print(f"  {self.table.multi_index(rank)}: {value:g}", file=out)

    def _require_initialized(self) -> None:
        if self._kernel_aux is None:
            raise ValueError(f"{type(self).__name__} used before init()")

    def _require_compatible(self, other: LocalExpansionSink) -> None:
        other_aux = other.kernel_aux
        if other_aux.table.dim != self.table.dim:
            raise ValueError(
                f"dimension mismatch: {other_aux.table.dim} vs {self.table.dim}"
            )
        if other_aux.scale_factor != self.kernel_aux.scale_factor:
            raise ValueError("expansions use different bandwidth scaling")

    def _as_point(self, point: Array) -> Array:
        point = jnp.asarray(point, dtype=REAL_DTYPE)
        if point.shape != (self.table.dim,):
            raise ValueError(
                f"point must have shape ({self.table.dim},), got {point.shape}"
            )
        return point

    def _as_points(self, points: Array) -> Array:
        points = jnp.asarray(points, dtype=REAL_DTYPE)
        if points.ndim != 2 or points.shape[1] != self.table.dim:
            raise ValueError(
                f"points must have shape (N, {self.table.dim}), got {points.shape}"
            )
        return points

    def _point_range(
        self, data: Array, weights: Array, begin: int, end: int
    ) -> tuple[Array, Array]:
        data = self._as_points(data)
        weights = jnp.asarray(weights, dtype=REAL_DTYPE)
        if weights.shape != (data.shape[0],):
            raise ValueError("weights must have one entry per data row")
        begin, end = int(begin), int(end)
        if not 0 <= begin <= end <= data.shape[0]:
            raise ValueError(
                f"invalid point range [{begin}, {end}) for {data.shape[0]} rows"
            )
        return data[begin:end], weights[begin:end]


__all__ = ["CartesianExpansion"]
