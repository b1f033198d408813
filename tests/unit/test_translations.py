"""Tests for the stateless translation operators."""

import math

import jax.numpy as jnp
import numpy as np
import pytest

from cartseries.kernels import GaussianKernelAux
from cartseries.multi_index import build_multi_index_table, multi_power
from cartseries.translations import (
    axis_powers,
    farfield_to_farfield,
    farfield_to_local,
    local_to_local,
    monomials,
    raw_monomials,
)


def test_axis_powers_shape_and_values():
    powers = axis_powers(jnp.array([2.0, -0.5]), 3)
    assert powers.shape == (2, 4)
    assert jnp.allclose(powers[0], jnp.array([1.0, 2.0, 4.0, 8.0]))
    assert jnp.allclose(powers[1], jnp.array([1.0, -0.5, 0.25, -0.125]))
    assert axis_powers(jnp.array([3.0]), 0).shape == (1, 1)


def test_monomials_follow_table_layout():
    table = build_multi_index_table(2, 3)
    x = jnp.array([0.3, -1.2])
    raw = raw_monomials(x, table, 3)
    scaled = monomials(x, table, 3)
    for rank in range(table.total_num_coeffs(3)):
        a, b = table.multi_index(rank)
        value = float(multi_power(x, (a, b)))
        assert float(raw[rank]) == pytest.approx(value)
        expected = value / (math.factorial(a) * math.factorial(b))
        assert float(scaled[rank]) == pytest.approx(expected)


def test_monomials_accept_batched_points():
    table = build_multi_index_table(3, 2)
    x = jnp.array([[0.1, 0.2, 0.3], [1.0, -1.0, 0.5]])
    batched = monomials(x, table, 2)
    assert batched.shape == (2, 10)
    assert jnp.allclose(batched[1], monomials(x[1], table, 2))


def test_farfield_shift_is_exact_for_single_point():
    # A point's moments about c1, shifted to c2, equal its moments about c2.
    table = build_multi_index_table(2, 5)
    point = jnp.array([0.4, -0.3])
    c_old = jnp.array([0.1, 0.1])
    c_new = jnp.array([-0.2, 0.3])
    about_old = monomials(point - c_old, table, 5)
    about_new = monomials(point - c_new, table, 5)
    shifted = farfield_to_farfield(about_old, c_old - c_new, table, 5)
    assert jnp.allclose(shifted, about_new, rtol=1e-12, atol=1e-14)


def test_farfield_shift_by_zero_is_identity():
    table = build_multi_index_table(3, 4)
    coeffs = jnp.linspace(-1.0, 1.0, table.total_num_coeffs(4))
    shifted = farfield_to_farfield(coeffs, jnp.zeros(3), table, 4)
    assert jnp.allclose(shifted, coeffs)


def test_farfield_shift_truncates_to_requested_order():
    table = build_multi_index_table(2, 4)
    coeffs = jnp.ones(table.total_num_coeffs(4))
    shifted = farfield_to_farfield(coeffs, jnp.array([0.5, 0.5]), table, 2)
    assert shifted.shape == (table.total_num_coeffs(2),)


def test_local_shift_reexpands_polynomial():
    table = build_multi_index_table(2, 4)
    rng = np.random.default_rng(0)
    coeffs = jnp.asarray(rng.normal(size=table.total_num_coeffs(4)))
    delta = jnp.array([0.3, -0.7])
    shifted = local_to_local(coeffs, delta, table, 4)

    for u in (jnp.array([0.1, 0.2]), jnp.array([-0.5, 0.4])):
        original = jnp.dot(raw_monomials(u + delta, table, 4), coeffs)
        moved = jnp.dot(raw_monomials(u, table, 4), shifted)
        assert float(moved) == pytest.approx(float(original), rel=1e-12)


def test_far_to_local_zero_order_reproduces_kernel_derivatives():
    aux = GaussianKernelAux(1.0, dim=1, max_order=3)
    table = aux.table
    coeffs = jnp.zeros(table.total_num_coeffs(3)).at[0].set(1.0)
    delta = jnp.array([0.8])
    local = farfield_to_local(coeffs, 0, delta, aux, 3)

    # K(delta + u) = exp(-(delta + u)^2), expanded about u = 0.
    d = 0.8
    g = math.exp(-d * d)
    expected = [g, -2 * d * g, (2 * d * d - 1) * g, (-4 * d**3 / 3 + 2 * d) * g]
    assert jnp.allclose(local, jnp.array(expected), rtol=1e-12)


def test_far_to_local_shape_mixes_orders():
    aux = GaussianKernelAux(1.0, dim=3, max_order=4)
    coeffs = jnp.ones(aux.table.total_num_coeffs(4))
    local = farfield_to_local(coeffs, 4, jnp.array([2.0, 0.0, 0.0]), aux, 1)
    assert local.shape == (4,)
