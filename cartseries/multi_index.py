"""Multi-index bookkeeping for Cartesian series expansions.

Every expansion of a given kernel configuration stores its coefficients in
one flat vector, one entry per ``D``-dimensional multi-index ``alpha`` with
``|alpha| <= order``.  The layout is graded: all multi-indices of degree 0
come first, then degree 1, and so on.  Inside one degree the exponent of
the first coordinate increases slowest, which for ``D = 3`` reproduces the
packed triangular layout ``(0, 0, l), (0, 1, l - 1), ...``.

:class:`MultiIndexTable` precomputes the enumeration, factorials and the
translation stencils once.  It is immutable and shared by reference among
all expansions built from the same kernel-auxiliary object.
"""

from __future__ import annotations

import math
from functools import cached_property, lru_cache
from typing import Dict, NamedTuple, Optional, Sequence

import jax.numpy as jnp
import numpy as np
from beartype import beartype
from jaxtyping import Array, jaxtyped

from .dtypes import INDEX_DTYPE, REAL_DTYPE

# Highest order a table may be built for. Table sizes grow as C(p + D, D).
MAX_SUPPORTED_ORDER = 32

MultiIndex = tuple[int, ...]


def _compositions(level: int, dim: int) -> tuple[MultiIndex, ...]:
    if dim == 1:
        return ((level,),)
    combos = []
    for first in range(level + 1):
        for rest in _compositions(level - first, dim - 1):
            combos.append((first,) + rest)
    return tuple(combos)


def _validate_dim(dim: int) -> int:
    dim_int = int(dim)
    if dim_int < 1:
        raise ValueError("dim must be >= 1")
    return dim_int


def multi_index_tuples(level: int, dim: int = 3) -> tuple[MultiIndex, ...]:
    """Return all ``dim``-tuples of non-negative integers summing to ``level``."""

    lvl = int(level)
    if lvl < 0:
        raise ValueError("level must be >= 0")
    return _compositions(lvl, _validate_dim(dim))


def multi_index_factorial(combo: Sequence[int]) -> int:
    """Return ``alpha! = alpha_1! * ... * alpha_D!``."""

    result = 1
    for entry in combo:
        result *= math.factorial(int(entry))
    return result


@jaxtyped(typechecker=beartype)
def multi_power(vec: Array, combo: tuple[int, ...]) -> Array:
    """Return ``prod_d vec[d] ** combo[d]``."""

    value = jnp.array(1.0, dtype=vec.dtype)
    for axis, exponent in enumerate(combo):
        if exponent:
            value = value * vec[axis] ** exponent
    return value


def level_size(level: int, dim: int = 3) -> int:
    """Return the number of multi-indices of degree exactly ``level``."""

    lvl = int(level)
    d = _validate_dim(dim)
    if lvl < 0:
        return 0
    return math.comb(lvl + d - 1, d - 1)


def total_coefficients(max_order: int, dim: int = 3) -> int:
    """Return the number of multi-indices of degree ``0..max_order``."""

    order = int(max_order)
    d = _validate_dim(dim)
    if order < 0:
        return 0
    return math.comb(order + d, d)


def level_offset(level: int, dim: int = 3) -> int:
    """Return the flat offset of the first multi-index of degree ``level``."""

    return total_coefficients(int(level) - 1, dim)


def _enumerate(max_order: int, dim: int) -> np.ndarray:
    rows = []
    for level in range(max_order + 1):
        rows.extend(_compositions(level, dim))
    return np.asarray(rows, dtype=np.int64).reshape(len(rows), dim)


def _factorials(indices: np.ndarray) -> np.ndarray:
    return np.asarray(
        [float(multi_index_factorial(row)) for row in indices.tolist()],
        dtype=np.float64,
    )


class TranslationStencil(NamedTuple):
    """Dense ``alpha`` x ``beta`` stencil for the ``beta <= alpha`` relation.

    ``gamma_indices[i, j]`` is the rank of ``alpha_i - beta_j`` when
    ``mask[i, j]`` is set and zero otherwise.  ``binomial[i, j]`` holds the
    multi-binomial ``C(alpha_i, beta_j)`` under the same mask.
    """

    gamma_indices: Array
    mask: Array
    binomial: Array


class _RankLookup:
    """Vectorised rank lookup for rows of a graded multi-index array."""

    def __init__(self, indices: np.ndarray, radix: int):
        self._radix = radix
        dim = indices.shape[1]
        self._use_keys = radix**dim < 2**62
        if self._use_keys:
            self._weights = np.asarray(
                [radix**axis for axis in range(dim)], dtype=np.int64
            )
            keys = indices @ self._weights
            self._order = np.argsort(keys)
            self._sorted_keys = keys[self._order]
        else:
            self._ranks = {
                tuple(row): rank for rank, row in enumerate(indices.tolist())
            }

    def __call__(self, queries: np.ndarray) -> np.ndarray:
        shape = queries.shape[:-1]
        flat = queries.reshape(-1, queries.shape[-1])
        if self._use_keys:
            keys = flat @ self._weights
            pos = np.searchsorted(self._sorted_keys, keys)
            ranks = self._order[np.clip(pos, 0, self._order.shape[0] - 1)]
        else:
            ranks = np.asarray(
                [self._ranks[tuple(row)] for row in flat.tolist()], dtype=np.int64
            )
        return ranks.reshape(shape)


class MultiIndexTable:
    """Immutable enumeration of ``D``-dimensional multi-indices up to an order.

    Parameters
    ----------
    dim:
        Number of spatial dimensions ``D``.
    max_order:
        Highest expansion order any expansion bound to this table may use.
        Coefficient vectors are allocated with
        ``total_num_coeffs(max_order)`` entries.
    """

    def __init__(self, dim: int, max_order: int):
        self._dim = _validate_dim(dim)
        order = int(max_order)
        if order < 0 or order > MAX_SUPPORTED_ORDER:
            raise ValueError(
                f"max_order must be between 0 and {MAX_SUPPORTED_ORDER} inclusive"
            )
        self._max_order = order

        self._host_indices = _enumerate(order, self._dim)
        self._host_indices.setflags(write=False)
        self._host_degrees = self._host_indices.sum(axis=1)
        self._host_factorials = _factorials(self._host_indices)
        self._ranks: Dict[MultiIndex, int] = {
            tuple(row): rank for rank, row in enumerate(self._host_indices.tolist())
        }

        signs = np.where(self._host_degrees % 2 == 0, 1.0, -1.0)
        self._indices = jnp.asarray(self._host_indices, dtype=INDEX_DTYPE)
        self._factorials = jnp.asarray(self._host_factorials, dtype=REAL_DTYPE)
        self._inv_factorials = jnp.asarray(
            1.0 / self._host_factorials, dtype=REAL_DTYPE
        )
        self._neg_inv_factorials = jnp.asarray(
            signs / self._host_factorials, dtype=REAL_DTYPE
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(dim={self._dim}, max_order={self._max_order})"
        )

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def max_order(self) -> int:
        return self._max_order

    @property
    def multi_indices(self) -> Array:
        """``(total_num_coeffs(max_order), D)`` exponent table."""
        return self._indices

    @property
    def degrees(self) -> Array:
        return jnp.asarray(self._host_degrees, dtype=INDEX_DTYPE)

    @property
    def factorials(self) -> Array:
        """``alpha!`` for each multi-index."""
        return self._factorials

    @property
    def inv_multiindex_factorials(self) -> Array:
        """``1 / alpha!`` for each multi-index."""
        return self._inv_factorials

    @property
    def neg_inv_multiindex_factorials(self) -> Array:
        """``(-1)^|alpha| / alpha!`` for each multi-index."""
        return self._neg_inv_factorials

    def check_order(self, order: int, *, limit: Optional[int] = None) -> int:
        """Validate ``order`` against the allocated capacity and return it."""

        order_int = int(order)
        cap = self._max_order if limit is None else int(limit)
        if order_int < 0 or order_int > cap:
            raise ValueError(
                f"order {order_int} outside allocated capacity 0..{cap}"
            )
        return order_int

    def total_num_coeffs(self, order: int) -> int:
        return total_coefficients(order, self._dim)

    def level_offset(self, level: int) -> int:
        return level_offset(level, self._dim)

    def level_size(self, level: int) -> int:
        return level_size(level, self._dim)

    def index_of(self, alpha: Sequence[int]) -> int:
        """Return the flat rank of ``alpha``."""

        key = tuple(int(a) for a in alpha)
        if len(key) != self._dim:
            raise ValueError(f"multi-index must have {self._dim} entries")
        try:
            return self._ranks[key]
        except KeyError:
            raise ValueError(
                f"multi-index {key} exceeds max_order {self._max_order}"
            ) from None

    def multi_index(self, rank: int) -> MultiIndex:
        """Return the multi-index stored at flat position ``rank``."""

        return tuple(int(a) for a in self._host_indices[int(rank)])

    @cached_property
    def _extended_host_indices(self) -> np.ndarray:
        return _enumerate(2 * self._max_order, self._dim)

    def multi_indices_through(self, order: int) -> Array:
        """Exponent table for degrees ``0..order`` with ``order <= 2 * max_order``.

        Far-to-local conversion needs derivative terms of ``alpha + beta``
        for ``|alpha|, |beta| <= max_order``; those live past ``max_order``.
        """

        order_int = self.check_order(order, limit=2 * self._max_order)
        total = self.total_num_coeffs(order_int)
        if order_int <= self._max_order:
            return self._indices[:total]
        return jnp.asarray(self._extended_host_indices[:total], dtype=INDEX_DTYPE)

    @cached_property
    def m2m_stencil(self) -> TranslationStencil:
        """Stencil for all ``beta <= alpha`` pairs up to ``max_order``."""

        alpha = self._host_indices[:, None, :]
        beta = self._host_indices[None, :, :]
        mask = np.all(beta <= alpha, axis=-1)
        gamma = np.where(mask[..., None], alpha - beta, 0)
        lookup = _RankLookup(self._host_indices, self._max_order + 1)
        gamma_indices = np.where(mask, lookup(gamma), 0)

        fact = self._host_factorials
        binomial = np.where(
            mask,
            fact[:, None] / (fact[None, :] * fact[gamma_indices]),
            0.0,
        )
        return TranslationStencil(
            gamma_indices=jnp.asarray(gamma_indices, dtype=INDEX_DTYPE),
            mask=jnp.asarray(mask, dtype=jnp.bool_),
            binomial=jnp.asarray(binomial, dtype=REAL_DTYPE),
        )

    @cached_property
    def sum_indices(self) -> Array:
        """Rank of ``alpha_i + alpha_j`` inside the extended enumeration."""

        total = self._host_indices
        summed = total[:, None, :] + total[None, :, :]
        lookup = _RankLookup(self._extended_host_indices, 2 * self._max_order + 1)
        return jnp.asarray(lookup(summed), dtype=INDEX_DTYPE)


@lru_cache(maxsize=None)
def build_multi_index_table(dim: int, max_order: int) -> MultiIndexTable:
    """Return the shared table for ``(dim, max_order)``."""

    return MultiIndexTable(int(dim), int(max_order))


__all__ = [
    "MAX_SUPPORTED_ORDER",
    "MultiIndex",
    "MultiIndexTable",
    "TranslationStencil",
    "build_multi_index_table",
    "level_offset",
    "level_size",
    "multi_index_factorial",
    "multi_index_tuples",
    "multi_power",
    "total_coefficients",
]
