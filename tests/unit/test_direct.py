"""Tests for exact pairwise kernel sums."""

import math

import jax.numpy as jnp
import pytest

from cartseries.direct import direct_kernel_sum, pairwise_distance_sq
from cartseries.dtypes import INDEX_DTYPE, REAL_DTYPE, as_index, as_real
from cartseries.kernels import EpanechnikovKernelAux, GaussianKernelAux


def test_pairwise_distance_sq():
    queries = jnp.array([[0.0, 0.0], [1.0, 1.0]])
    references = jnp.array([[1.0, 0.0], [0.0, 2.0], [1.0, 1.0]])
    expected = jnp.array([[1.0, 4.0, 2.0], [1.0, 2.0, 0.0]])
    assert jnp.allclose(pairwise_distance_sq(queries, references), expected)


def test_gaussian_direct_sum():
    aux = GaussianKernelAux(0.5, dim=1, max_order=0)
    queries = jnp.array([[0.0]])
    references = jnp.array([[0.5], [1.0]])
    weights = jnp.array([2.0, -1.0])
    expected = 2.0 * math.exp(-0.25 / 0.5) - math.exp(-1.0 / 0.5)
    result = direct_kernel_sum(queries, references, weights, aux)
    assert result.shape == (1,)
    assert float(result[0]) == pytest.approx(expected)


def test_epanechnikov_direct_sum_ignores_points_outside_support():
    aux = EpanechnikovKernelAux(1.0, dim=2, max_order=2)
    queries = jnp.array([[0.0, 0.0]])
    references = jnp.array([[0.5, 0.0], [2.0, 0.0]])
    result = direct_kernel_sum(queries, references, jnp.ones(2), aux)
    assert float(result[0]) == pytest.approx(0.75)


def test_direct_sum_validates_shapes():
    aux = GaussianKernelAux(1.0, dim=2, max_order=0)
    with pytest.raises(ValueError):
        direct_kernel_sum(jnp.zeros((1, 2)), jnp.zeros((2, 3)), jnp.ones(2), aux)
    with pytest.raises(ValueError):
        direct_kernel_sum(jnp.zeros((1, 2)), jnp.zeros((2, 2)), jnp.ones(3), aux)
    with pytest.raises(ValueError):
        direct_kernel_sum(jnp.zeros(2), jnp.zeros((2, 2)), jnp.ones(2), aux)


def test_dtype_helpers():
    assert as_index([1, 2]).dtype == INDEX_DTYPE
    assert as_real(3).dtype == REAL_DTYPE
