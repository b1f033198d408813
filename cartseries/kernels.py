"""Kernel-auxiliary objects for Cartesian series expansions.

A kernel-auxiliary object binds a kernel family and bandwidth to the shared
:class:`~cartseries.multi_index.MultiIndexTable`.  It supplies everything an
expansion needs that depends on the kernel:

* the normalization ``k * h`` applied to displacements before they are
  raised to multi-index powers,
* the derivative terms ``D_alpha(x) = d^alpha/ds^alpha K(x - s)`` at ``s = 0``
  used to evaluate far-field expansions and to convert them into local ones,
* closed-form truncation error bounds consumed by the order estimators.

With these conventions every supported kernel satisfies

    K((q - r) / kh) = sum_alpha ((r - c) / kh)^alpha / alpha! * D_alpha((q - c) / kh)

so far-field coefficients are ``sum_r w_r ((r - c) / kh)^alpha / alpha!``
regardless of the kernel family.
"""

from __future__ import annotations

import math
from typing import Callable, Dict

import jax.numpy as jnp
import numpy as np
from beartype import beartype
from jaxtyping import Array, jaxtyped

from .config import SeriesExpansionConfig
from .dtypes import REAL_DTYPE
from .mathlib import clamp_non_negative
from .multi_index import (
    MultiIndexTable,
    build_multi_index_table,
    level_offset,
    multi_index_tuples,
)

# Cramer's inequality: |H_n(x)| exp(-x^2 / 2) <= K 2^(n/2) sqrt(n!).
CRAMER_CONSTANT = 1.086435

# Extra levels summed past the allocated order when evaluating the infinite
# tails of the Gaussian bounds.  The horizon is fixed per kernel object so
# bounds for different orders share one truncation of the tail.
_TAIL_LEVELS = 64


@jaxtyped(typechecker=beartype)
def hermite_functions(x: Array, order: int) -> Array:
    """Return ``h_n(x) = H_n(x) exp(-x^2)`` for ``n = 0..order``.

    The result has shape ``x.shape + (order + 1,)``.
    """

    gaussian = jnp.exp(-x * x)
    values = [gaussian]
    if order >= 1:
        values.append(2.0 * x * gaussian)
    for n in range(1, order):
        values.append(2.0 * x * values[n] - 2.0 * n * values[n - 1])
    return jnp.stack(values, axis=-1)


def _level_sums(ratios: np.ndarray, n_max: int) -> np.ndarray:
    """Coefficients of ``prod_d sum_k ratios[d]^k / sqrt(k!)`` up to ``n_max``."""

    ks = np.arange(n_max + 1, dtype=np.float64)
    half_log_fact = 0.5 * np.asarray([math.lgamma(k + 1.0) for k in ks])
    levels = np.zeros(n_max + 1, dtype=np.float64)
    levels[0] = 1.0
    for ratio in ratios:
        if ratio == 0.0:
            continue
        seq = np.exp(ks * math.log(ratio) - half_log_fact)
        levels = np.convolve(levels, seq)[: n_max + 1]
    return levels


def _rank(alpha: tuple[int, ...]) -> int:
    dim = len(alpha)
    degree = sum(alpha)
    return level_offset(degree, dim) + multi_index_tuples(degree, dim).index(alpha)


class _CartesianKernelAux:
    """State shared by the concrete kernel-auxiliary classes."""

    name = "base"
    scale_multiplier = 1.0

    def __init__(self, bandwidth: float, dim: int = 3, max_order: int = 8):
        if not float(bandwidth) > 0.0:
            raise ValueError("bandwidth must be positive")
        self.bandwidth = float(bandwidth)
        self.scale_factor = self.scale_multiplier * self.bandwidth
        self.table: MultiIndexTable = build_multi_index_table(dim, max_order)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(bandwidth={self.bandwidth}, "
            f"dim={self.dim}, max_order={self.max_order})"
        )

    @property
    def dim(self) -> int:
        return self.table.dim

    @property
    def max_order(self) -> int:
        return self.table.max_order

    def normalize(self, displacement: Array) -> Array:
        """Divide a raw displacement by ``k * h``."""

        return jnp.asarray(displacement, dtype=REAL_DTYPE) / self.scale_factor

    def _normalized_reach(self, reach: Array) -> np.ndarray:
        return np.asarray(reach, dtype=np.float64) / self.scale_factor


class GaussianKernelAux(_CartesianKernelAux):
    """Gaussian kernel ``exp(-d^2 / (2 h^2))`` expanded in Hermite functions.

    Displacements are normalized by ``sqrt(2) * h`` so the kernel becomes
    ``exp(-|x|^2)`` and ``D_alpha`` factors into one-dimensional Hermite
    functions.
    """

    name = "gaussian"
    scale_multiplier = math.sqrt(2.0)

    def kernel_value(self, dist_sq: Array) -> Array:
        return jnp.exp(-jnp.asarray(dist_sq) / (2.0 * self.bandwidth**2))

    def derivative_terms(self, x: Array, order: int) -> Array:
        """``D_alpha(x)`` for every ``|alpha| <= order``; ``x`` is ``(..., D)``."""

        indices = self.table.multi_indices_through(order)
        x = jnp.asarray(x, dtype=REAL_DTYPE)
        hermite = hermite_functions(x, int(order))
        terms = jnp.ones(x.shape[:-1] + (indices.shape[0],), dtype=REAL_DTYPE)
        for axis in range(self.dim):
            terms = terms * hermite[..., axis, :][..., indices[:, axis]]
        return terms

    def _front_factor(self, min_dist_sq: float) -> float:
        scaled = clamp_non_negative(float(min_dist_sq)) / (2.0 * self.scale_factor**2)
        return CRAMER_CONSTANT**self.dim * math.exp(-scaled)

    def _horizon(self) -> int:
        return self.max_order + _TAIL_LEVELS

    def evaluation_error(
        self,
        order: int,
        far_reach: Array,
        min_dist_sq: float,
        max_dist_sq: float,
    ) -> float:
        """Per-unit-weight bound on the far-field truncation error at ``order``.

        ``far_reach`` is the per-axis largest distance between the expansion
        center and any point of the far region.
        """

        ratios = math.sqrt(2.0) * self._normalized_reach(far_reach)
        if np.any(ratios >= 1.0):
            return math.inf
        levels = _level_sums(ratios, self._horizon())
        tail = float(np.sum(levels[int(order) + 1 :]))
        return self._front_factor(min_dist_sq) * tail

    def conversion_error(
        self,
        order: int,
        far_reach: Array,
        local_reach: Array,
        min_dist_sq: float,
        max_dist_sq: float,
    ) -> float:
        """Per-unit-weight bound on truncating both the far and local series."""

        far_ratios = 2.0 * self._normalized_reach(far_reach)
        local_ratios = 2.0 * self._normalized_reach(local_reach)
        if np.any(far_ratios >= 1.0) or np.any(local_ratios >= 1.0):
            return math.inf
        horizon = self._horizon()
        far_levels = _level_sums(far_ratios, horizon)
        local_levels = _level_sums(local_ratios, horizon)
        split = int(order) + 1
        far_tail = float(np.sum(far_levels[split:]))
        local_tail = float(np.sum(local_levels[split:]))
        far_head = float(np.sum(far_levels[:split]))
        local_total = float(np.sum(local_levels))
        dropped = far_tail * local_total + far_head * local_tail
        return self._front_factor(min_dist_sq) * dropped


class EpanechnikovKernelAux(_CartesianKernelAux):
    """Epanechnikov kernel ``max(0, 1 - d^2 / h^2)``.

    Inside its support the kernel is a quadratic polynomial, so the series
    is exact from order 2 on whenever every point pair is closer than ``h``.
    """

    name = "epanechnikov"
    scale_multiplier = 1.0

    def __init__(self, bandwidth: float, dim: int = 3, max_order: int = 8):
        super().__init__(bandwidth, dim=dim, max_order=max_order)
        unit = np.eye(self.dim, dtype=np.int64)
        self._linear_ranks = jnp.asarray(
            [_rank(tuple(int(v) for v in row)) for row in unit]
        )
        self._square_ranks = jnp.asarray(
            [_rank(tuple(int(v) for v in 2 * row)) for row in unit]
        )

    def kernel_value(self, dist_sq: Array) -> Array:
        return jnp.maximum(1.0 - jnp.asarray(dist_sq) / self.bandwidth**2, 0.0)

    def derivative_terms(self, x: Array, order: int) -> Array:
        """``D_alpha(x)`` for every ``|alpha| <= order``; ``x`` is ``(..., D)``."""

        indices = self.table.multi_indices_through(order)
        x = jnp.asarray(x, dtype=REAL_DTYPE)
        terms = jnp.zeros(x.shape[:-1] + (indices.shape[0],), dtype=REAL_DTYPE)
        terms = terms.at[..., 0].set(1.0 - jnp.sum(x * x, axis=-1))
        if order >= 1:
            terms = terms.at[..., self._linear_ranks].set(2.0 * x)
        if order >= 2:
            terms = terms.at[..., self._square_ranks].set(-2.0)
        return terms

    def _outside_support(self, max_dist_sq: float) -> bool:
        return float(max_dist_sq) > self.bandwidth**2

    @staticmethod
    def _truncation_term(order: int, reach: float, lever: float) -> float:
        if order >= 2:
            return 0.0
        if order == 1:
            return reach * reach
        return 2.0 * lever * reach + reach * reach

    def evaluation_error(
        self,
        order: int,
        far_reach: Array,
        min_dist_sq: float,
        max_dist_sq: float,
    ) -> float:
        if self._outside_support(max_dist_sq):
            return math.inf
        rho = float(np.linalg.norm(self._normalized_reach(far_reach)))
        tau = math.sqrt(clamp_non_negative(float(max_dist_sq))) / self.scale_factor
        return self._truncation_term(int(order), rho, tau + rho)

    def conversion_error(
        self,
        order: int,
        far_reach: Array,
        local_reach: Array,
        min_dist_sq: float,
        max_dist_sq: float,
    ) -> float:
        if self._outside_support(max_dist_sq):
            return math.inf
        rho = float(np.linalg.norm(self._normalized_reach(far_reach)))
        rho_local = float(np.linalg.norm(self._normalized_reach(local_reach)))
        tau = math.sqrt(clamp_non_negative(float(max_dist_sq))) / self.scale_factor
        far_part = self._truncation_term(int(order), rho, tau + rho)
        local_part = self._truncation_term(
            int(order), rho_local, tau + rho + rho_local
        )
        return far_part + local_part


KernelAuxFactory = Callable[[SeriesExpansionConfig], _CartesianKernelAux]


def _gaussian_from_config(config: SeriesExpansionConfig) -> GaussianKernelAux:
    return GaussianKernelAux(config.bandwidth, config.dim, config.max_order)


def _epanechnikov_from_config(
    config: SeriesExpansionConfig,
) -> EpanechnikovKernelAux:
    return EpanechnikovKernelAux(config.bandwidth, config.dim, config.max_order)


_KERNEL_AUX_FACTORIES: Dict[str, KernelAuxFactory] = {
    "gaussian": _gaussian_from_config,
    "epanechnikov": _epanechnikov_from_config,
}


def available_kernels() -> tuple[str, ...]:
    """Return registered kernel family identifiers."""

    return tuple(sorted(_KERNEL_AUX_FACTORIES.keys()))


def register_kernel_aux(
    name: str, factory: KernelAuxFactory, *, overwrite: bool = False
) -> None:
    """Register a factory for ``build_kernel_aux`` dispatch."""

    normalized = name.strip().lower()
    if not normalized:
        raise ValueError("kernel name must be a non-empty string")
    if (normalized in _KERNEL_AUX_FACTORIES) and (not overwrite):
        raise ValueError(
            f"kernel '{normalized}' is already registered; "
            "pass overwrite=True to replace it"
        )
    _KERNEL_AUX_FACTORIES[normalized] = factory


def build_kernel_aux(config: SeriesExpansionConfig) -> _CartesianKernelAux:
    """Build the kernel-auxiliary object described by ``config``."""

    factory = _KERNEL_AUX_FACTORIES.get(config.kernel.strip().lower())
    if factory is None:
        supported = ", ".join(f"'{name}'" for name in available_kernels())
        raise ValueError(
            f"Unsupported kernel '{config.kernel}'. Supported: ({supported})"
        )
    return factory(config)


__all__ = [
    "CRAMER_CONSTANT",
    "EpanechnikovKernelAux",
    "GaussianKernelAux",
    "KernelAuxFactory",
    "available_kernels",
    "build_kernel_aux",
    "hermite_functions",
    "register_kernel_aux",
]
