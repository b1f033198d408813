"""Far-field expansions in the ``O(D^p)`` Cartesian form.

A far-field expansion summarizes the points of one region around a center
``c``.  For a reference point ``r`` with weight ``w`` it accumulates the
moments

    C_alpha += w * ((r - c) / kh)^alpha / alpha!

for every multi-index ``|alpha| <= p``, where ``k * h`` is the bandwidth
scaling of the kernel (``sqrt(2) h`` for the Gaussian).  Evaluating the
expansion at a query ``q`` sums ``C_alpha D_alpha((q - c) / kh)`` with the
kernel-specific derivative terms ``D_alpha``.
"""

from __future__ import annotations

import logging

import jax.numpy as jnp
from jaxtyping import Array

from ._expansion import CartesianExpansion
from .order_selection import OrderSearchResult, search_minimal_order
from .protocols import LocalExpansionSink, RegionProtocol
from .translations import farfield_to_farfield, farfield_to_local, monomials

logger = logging.getLogger(__name__)


class CartesianFarField(CartesianExpansion):
    """Far-field expansion generated by the multivariate Taylor expansion.

    Typical use::

        far = CartesianFarField()
        far.init(center, kernel_aux)
        far.accumulate_coeffs(points, weights, 0, len(points), order)
        value = far.evaluate_field(query, order)
    """

    kind = "Far field"

    @property
    def weight_sum(self) -> float:
        """Zeroth moment, i.e. the sum of all accumulated weights."""

        self._require_initialized()
        return float(self._coeffs[0])

    def accumulate(self, point: Array, weight: float, order: int) -> None:
        """Add the moments of one reference point up to ``order``."""

        self._require_initialized()
        order = self.table.check_order(order)
        total = self.table.total_num_coeffs(order)
        x = self.kernel_aux.normalize(self._as_point(point) - self._center)
        contribution = weight * monomials(x, self.table, order)
        self._coeffs = self._coeffs.at[:total].add(contribution)
        self._order = max(self._order, order)

    def accumulate_coeffs(
        self,
        data: Array,
        weights: Array,
        begin: int,
        end: int,
        order: int,
    ) -> None:
        """Add the moments of rows ``begin..end - 1`` of ``data`` up to ``order``.

        Equivalent to calling :meth:`accumulate` for each row; the sum is
        order independent, so disjoint ranges may be accumulated into
        separate expansions with the same center and combined with
        :meth:`merge_coeffs`.
        """

        self._require_initialized()
        order = self.table.check_order(order)
        self._coeffs = self._coeffs.at[: self.table.total_num_coeffs(order)].add(
            self._range_moments(data, weights, begin, end, order)
        )
        self._order = max(self._order, order)

    def refine_coeffs(
        self,
        data: Array,
        weights: Array,
        begin: int,
        end: int,
        order: int,
    ) -> None:
        """Recompute the moments of a point range up to a higher order.

        All coefficients are rebuilt from rows ``begin..end - 1`` and
        overwrite the stored ones, so the prefix up to the previous order is
        reproduced exactly instead of being counted twice.  Requests below
        the current order leave the expansion unchanged.
        """

        self._require_initialized()
        order = self.table.check_order(order)
        if order < self._order:
            return
        moments = self._range_moments(data, weights, begin, end, order)
        self._coeffs = jnp.zeros_like(self._coeffs).at[: moments.shape[0]].set(
            moments
        )
        self._order = order

    def merge_coeffs(self, other: "CartesianFarField") -> None:
        """Element-wise sum of an expansion sharing this center."""

        self._require_compatible(other)
        if not bool(jnp.allclose(other.center, self._center)):
            raise ValueError(
                "merge_coeffs requires identical centers; "
                "use translate_from_far_field to recenter"
            )
        self.add_coeffs(other.coeffs, other.order)

    def evaluate_field(self, point: Array, order: int) -> float:
        """Evaluate the truncated series at one query point."""

        self._require_initialized()
        order = self.table.check_order(order)
        total = self.table.total_num_coeffs(order)
        x = self.kernel_aux.normalize(self._as_point(point) - self._center)
        terms = self.kernel_aux.derivative_terms(x, order)
        return float(jnp.dot(self._coeffs[:total], terms))

    def evaluate_field_at_row(self, data: Array, row: int, order: int) -> float:
        """Evaluate the truncated series at row ``row`` of ``data``."""

        data = self._as_points(data)
        return self.evaluate_field(data[int(row)], order)

    def evaluate_fields(self, points: Array, order: int) -> Array:
        """Evaluate the truncated series at every row of ``points``."""

        self._require_initialized()
        order = self.table.check_order(order)
        total = self.table.total_num_coeffs(order)
        x = self.kernel_aux.normalize(self._as_points(points) - self._center)
        terms = self.kernel_aux.derivative_terms(x, order)
        return terms @ self._coeffs[:total]

    def order_for_evaluating(
        self,
        far_field_region: RegionProtocol,
        local_field_region: RegionProtocol,
        min_dist_sq_regions: float,
        max_dist_sq_regions: float,
        max_error: float,
    ) -> OrderSearchResult:
        """Smallest order whose evaluation error bound is at most ``max_error``.

        Errors are bounds per unit of reference weight.  The returned order
        is ``-1`` (with ``actual_error = inf``) when no order up to the
        kernel's maximum meets the request.
        """

        self._require_initialized()
        aux = self.kernel_aux
        far_reach = far_field_region.max_reach(self._center)

        def error_fn(order: int) -> float:
            return aux.evaluation_error(
                order, far_reach, min_dist_sq_regions, max_dist_sq_regions
            )

        return search_minimal_order(
            error_fn, aux.max_order, max_error, label="far-field evaluation"
        )

    def order_for_converting_to_local(
        self,
        far_field_region: RegionProtocol,
        local_field_region: RegionProtocol,
        min_dist_sq_regions: float,
        max_dist_sq_regions: float,
        max_error: float,
    ) -> OrderSearchResult:
        """Smallest order whose far-to-local conversion bound meets ``max_error``.

        The bound covers truncating the far-field series and the local series
        built from it, with the local expansion centered in
        ``local_field_region``.
        """

        self._require_initialized()
        aux = self.kernel_aux
        far_reach = far_field_region.max_reach(self._center)
        local_center = 0.5 * (
            jnp.asarray(local_field_region.lower) + jnp.asarray(local_field_region.upper)
        )
        local_reach = local_field_region.max_reach(local_center)

        def error_fn(order: int) -> float:
            return aux.conversion_error(
                order,
                far_reach,
                local_reach,
                min_dist_sq_regions,
                max_dist_sq_regions,
            )

        return search_minimal_order(
            error_fn, aux.max_order, max_error, label="far-to-local conversion"
        )

    def translate_from_far_field(self, other: "CartesianFarField") -> None:
        """Recenter ``other`` onto this center and add its moments here."""

        self._require_initialized()
        self._require_compatible(other)
        order = self.table.check_order(max(self._order, other.order))
        delta = self.kernel_aux.normalize(other.center - self._center)
        translated = farfield_to_farfield(other._coeffs, delta, self.table, order)
        self._coeffs = self._coeffs.at[: translated.shape[0]].add(translated)
        self._order = order
        logger.debug(
            "Far-to-far translation at order %d over |delta|=%.3e",
            order,
            float(jnp.linalg.norm(delta)),
        )

    def translate_to_local(
        self, local_expansion: LocalExpansionSink, truncation_order: int
    ) -> None:
        """Add the local-expansion form of this expansion into ``local_expansion``.

        The two regions must be well separated for the requested order;
        callers check this with :meth:`order_for_converting_to_local`.
        """

        self._require_initialized()
        truncation_order = self.table.check_order(truncation_order)
        self._require_compatible(local_expansion)
        far_order = min(self._order, truncation_order)
        delta = self.kernel_aux.normalize(local_expansion.center - self._center)
        local_coeffs = farfield_to_local(
            self._coeffs, far_order, delta, self.kernel_aux, truncation_order
        )
        local_expansion.add_coeffs(local_coeffs, truncation_order)
        logger.debug(
            "Far-to-local conversion at order %d (far order %d)",
            truncation_order,
            far_order,
        )

    def _range_moments(
        self, data: Array, weights: Array, begin: int, end: int, order: int
    ) -> Array:
        points, point_weights = self._point_range(data, weights, begin, end)
        x = self.kernel_aux.normalize(points - self._center)
        return point_weights @ monomials(x, self.table, order)


__all__ = ["CartesianFarField"]
