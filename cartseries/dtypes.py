"""Local dtype policy for cartseries contracts."""

import jax.numpy as jnp

# Multi-index ranks and exponents share one integer dtype.
INDEX_DTYPE = jnp.int64
REAL_DTYPE = jnp.float64


def as_index(x):
    """Convert a scalar/array to the cartseries index dtype."""
    return jnp.asarray(x, dtype=INDEX_DTYPE)


def as_real(x):
    """Convert a scalar/array to the cartseries floating dtype."""
    return jnp.asarray(x, dtype=REAL_DTYPE)


__all__ = ["INDEX_DTYPE", "REAL_DTYPE", "as_index", "as_real"]
