"""Exact pairwise kernel sums.

Direct summation is the fallback when no expansion order meets the error
request, and the reference the expansions are validated against.
"""

from __future__ import annotations

import jax.numpy as jnp
from beartype import beartype
from jaxtyping import Array, jaxtyped

from .dtypes import REAL_DTYPE


@jaxtyped(typechecker=beartype)
def pairwise_distance_sq(queries: Array, references: Array) -> Array:
    """Return the ``(Q, R)`` matrix of squared Euclidean distances."""

    diff = queries[:, None, :] - references[None, :, :]
    return jnp.sum(diff * diff, axis=-1)


def direct_kernel_sum(
    queries: Array,
    references: Array,
    weights: Array,
    kernel_aux,
) -> Array:
    """Return ``sum_r w_r K(|q - r|)`` for every query row.

    ``kernel_aux`` supplies ``kernel_value(dist_sq)``; no normalization
    constant is applied.
    """

    queries = jnp.asarray(queries, dtype=REAL_DTYPE)
    references = jnp.asarray(references, dtype=REAL_DTYPE)
    weights = jnp.asarray(weights, dtype=REAL_DTYPE)
    if queries.ndim != 2 or references.ndim != 2:
        raise ValueError("queries and references must be rank-2 arrays")
    if queries.shape[1] != references.shape[1]:
        raise ValueError("queries and references must share the dimension")
    if weights.shape != (references.shape[0],):
        raise ValueError("weights must have one entry per reference row")

    dist_sq = pairwise_distance_sq(queries, references)
    return kernel_aux.kernel_value(dist_sq) @ weights


__all__ = ["direct_kernel_sum", "pairwise_distance_sq"]
