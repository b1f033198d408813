"""Translation operators acting on flat coefficient vectors.

These helpers are stateless linear maps.  The expansion classes call them
with the normalized center displacement and the shared multi-index table;
callers that manage raw coefficient arrays (for example a batched upward
pass) may use them directly.
"""

from __future__ import annotations

import jax.numpy as jnp
from beartype import beartype
from jaxtyping import Array, jaxtyped

from .dtypes import REAL_DTYPE
from .multi_index import MultiIndexTable
from .protocols import KernelAuxProtocol


def axis_powers(x: Array, order: int) -> Array:
    """Return ``x[..., d] ** k`` for ``k = 0..order`` with shape ``(..., D, order + 1)``."""

    base = jnp.asarray(x, dtype=REAL_DTYPE)[..., None]
    ones = jnp.ones_like(base)
    if order == 0:
        return ones
    repeated = jnp.repeat(base, repeats=order, axis=-1)
    stacked = jnp.concatenate([ones, repeated], axis=-1)
    return jnp.cumprod(stacked, axis=-1)


def raw_monomials(x: Array, table: MultiIndexTable, order: int) -> Array:
    """Return ``x^alpha`` for every ``|alpha| <= order``; ``x`` is ``(..., D)``."""

    total = table.total_num_coeffs(order)
    indices = table.multi_indices[:total]
    powers = axis_powers(x, order)
    result = jnp.ones(powers.shape[:-2] + (total,), dtype=REAL_DTYPE)
    for axis in range(table.dim):
        result = result * powers[..., axis, :][..., indices[:, axis]]
    return result


def monomials(x: Array, table: MultiIndexTable, order: int) -> Array:
    """Return ``x^alpha / alpha!`` for every ``|alpha| <= order``."""

    total = table.total_num_coeffs(order)
    return raw_monomials(x, table, order) * table.inv_multiindex_factorials[:total]


@jaxtyped(typechecker=beartype)
def farfield_to_farfield(
    coeffs: Array,
    delta: Array,
    table: MultiIndexTable,
    order: int,
) -> Array:
    """Recenter far-field coefficients.

    ``delta`` is ``(old_center - new_center) / kh``.  The translated
    coefficients are ``C'_alpha = sum_{beta <= alpha} C_beta
    delta^(alpha - beta) / (alpha - beta)!``.
    """

    total = table.total_num_coeffs(order)
    stencil = table.m2m_stencil
    gamma = stencil.gamma_indices[:total, :total]
    mask = stencil.mask[:total, :total]

    delta_terms = monomials(delta, table, order)
    matrix = jnp.where(mask, delta_terms[gamma], 0.0)
    return matrix @ coeffs[:total]


@jaxtyped(typechecker=beartype)
def local_to_local(
    coeffs: Array,
    delta: Array,
    table: MultiIndexTable,
    order: int,
) -> Array:
    """Recenter local coefficients.

    ``delta`` is ``(new_center - old_center) / kh``.  The translated
    coefficients are ``a'_gamma = sum_{beta >= gamma} a_beta C(beta, gamma)
    delta^(beta - gamma)``.
    """

    total = table.total_num_coeffs(order)
    stencil = table.m2m_stencil
    gamma = stencil.gamma_indices[:total, :total]
    mask = stencil.mask[:total, :total]
    binomial = stencil.binomial[:total, :total]

    delta_powers = raw_monomials(delta, table, order)
    matrix = jnp.where(mask, binomial * delta_powers[gamma], 0.0)
    return matrix.T @ coeffs[:total]


def farfield_to_local(
    coeffs: Array,
    far_order: int,
    delta: Array,
    kernel_aux: KernelAuxProtocol,
    local_order: int,
) -> Array:
    """Convert far-field coefficients into local coefficients.

    ``delta`` is ``(local_center - far_center) / kh``.  Returns
    ``a_beta = (-1)^|beta| / beta! sum_alpha C_alpha D_{alpha + beta}(delta)``
    for ``|beta| <= local_order`` and ``|alpha| <= far_order``.
    """

    table = kernel_aux.table
    far_total = table.total_num_coeffs(far_order)
    local_total = table.total_num_coeffs(local_order)

    derivatives = kernel_aux.derivative_terms(delta, far_order + local_order)
    sums = table.sum_indices[:local_total, :far_total]
    matrix = derivatives[sums]
    signs = table.neg_inv_multiindex_factorials[:local_total]
    return signs * (matrix @ coeffs[:far_total])


__all__ = [
    "axis_powers",
    "farfield_to_farfield",
    "farfield_to_local",
    "local_to_local",
    "monomials",
    "raw_monomials",
]
