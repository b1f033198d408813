"""Local expansions in the Cartesian Taylor form.

A local expansion about ``c_L`` represents the kernel sum near its center
as the polynomial ``sum_beta a_beta ((q - c_L) / kh)^beta``.  Coefficients
arrive either directly from reference points or through far-to-local
conversion, and can be shifted to another center (local-to-local).
"""

from __future__ import annotations

import logging

import jax.numpy as jnp
from jaxtyping import Array

from ._expansion import CartesianExpansion
from .translations import local_to_local, raw_monomials

logger = logging.getLogger(__name__)


class CartesianLocal(CartesianExpansion):
    """Local expansion, the receiving side of far-to-local conversion."""

    kind = "Local"

    def accumulate(self, point: Array, weight: float, order: int) -> None:
        """Add the Taylor coefficients of one reference point's kernel."""

        self._require_initialized()
        order = self.table.check_order(order)
        total = self.table.total_num_coeffs(order)
        v = self.kernel_aux.normalize(self._center - self._as_point(point))
        terms = self.kernel_aux.derivative_terms(v, order)
        signs = self.table.neg_inv_multiindex_factorials[:total]
        self._coeffs = self._coeffs.at[:total].add(weight * signs * terms)
        self._order = max(self._order, order)

    def accumulate_coeffs(
        self,
        data: Array,
        weights: Array,
        begin: int,
        end: int,
        order: int,
    ) -> None:
        """Direct point-to-local accumulation for rows ``begin..end - 1``."""

        self._require_initialized()
        order = self.table.check_order(order)
        total = self.table.total_num_coeffs(order)
        points, point_weights = self._point_range(data, weights, begin, end)
        v = self.kernel_aux.normalize(self._center - points)
        terms = self.kernel_aux.derivative_terms(v, order)
        signs = self.table.neg_inv_multiindex_factorials[:total]
        self._coeffs = self._coeffs.at[:total].add(signs * (point_weights @ terms))
        self._order = max(self._order, order)

    def evaluate_field(self, point: Array, order: int) -> float:
        """Evaluate the local polynomial at one query point."""

        self._require_initialized()
        order = self.table.check_order(order)
        total = self.table.total_num_coeffs(order)
        u = self.kernel_aux.normalize(self._as_point(point) - self._center)
        return float(jnp.dot(raw_monomials(u, self.table, order), self._coeffs[:total]))

    def evaluate_field_at_row(self, data: Array, row: int, order: int) -> float:
        data = self._as_points(data)
        return self.evaluate_field(data[int(row)], order)

    def evaluate_fields(self, points: Array, order: int) -> Array:
        """Evaluate the local polynomial at every row of ``points``."""

        self._require_initialized()
        order = self.table.check_order(order)
        total = self.table.total_num_coeffs(order)
        u = self.kernel_aux.normalize(self._as_points(points) - self._center)
        return raw_monomials(u, self.table, order) @ self._coeffs[:total]

    def translate_to_local(self, other: "CartesianLocal") -> None:
        """Shift this expansion to ``other``'s center and add it there."""

        self._require_initialized()
        self._require_compatible(other)
        delta = self.kernel_aux.normalize(other.center - self._center)
        shifted = local_to_local(self._coeffs, delta, self.table, self._order)
        other.add_coeffs(shifted, self._order)
        logger.debug("Local-to-local translation at order %d", self._order)


__all__ = ["CartesianLocal"]
