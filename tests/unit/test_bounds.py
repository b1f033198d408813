"""Tests for axis-aligned region bounds."""

import jax.numpy as jnp
import pytest

from cartseries.bounds import RegionBound, infer_bounds, region_from_points


def _box(lower, upper):
    return RegionBound(
        lower=jnp.asarray(lower, dtype=jnp.float64),
        upper=jnp.asarray(upper, dtype=jnp.float64),
    )


def test_basic_geometry():
    box = _box([0.0, -1.0, 2.0], [1.0, 3.0, 2.5])
    assert box.dim == 3
    assert jnp.allclose(box.center, jnp.array([0.5, 1.0, 2.25]))
    assert jnp.allclose(box.widths, jnp.array([1.0, 4.0, 0.5]))
    assert box.widest_dimension() == (1, 4.0)


def test_max_reach_is_per_axis():
    box = _box([0.0, 0.0], [2.0, 1.0])
    assert jnp.allclose(box.max_reach(jnp.array([0.5, 0.5])), jnp.array([1.5, 0.5]))
    assert jnp.allclose(box.max_reach(jnp.array([3.0, 0.0])), jnp.array([3.0, 1.0]))


def test_contains_includes_boundary():
    box = _box([0.0, 0.0], [1.0, 1.0])
    assert box.contains(jnp.array([1.0, 0.0]))
    assert not box.contains(jnp.array([1.0, 1.0001]))


def test_distances_between_boxes():
    a = _box([0.0, 0.0], [1.0, 1.0])
    b = _box([2.0, 3.0], [4.0, 5.0])
    assert a.min_distance_sq(b) == pytest.approx(1.0 + 4.0)
    assert b.min_distance_sq(a) == pytest.approx(5.0)
    assert a.max_distance_sq(b) == pytest.approx(16.0 + 25.0)


def test_overlapping_boxes_have_zero_min_distance():
    a = _box([0.0, 0.0], [2.0, 2.0])
    b = _box([1.0, 1.0], [3.0, 3.0])
    assert a.min_distance_sq(b) == 0.0
    assert a.max_distance_sq(b) == pytest.approx(18.0)


def test_region_from_points_is_tight():
    points = jnp.array([[0.0, 1.0], [2.0, -1.0], [1.0, 0.5]])
    box = region_from_points(points)
    assert jnp.allclose(box.lower, jnp.array([0.0, -1.0]))
    assert jnp.allclose(box.upper, jnp.array([2.0, 1.0]))


@pytest.mark.parametrize("points", [jnp.zeros((0, 2)), jnp.zeros(3)])
def test_region_from_points_rejects_bad_input(points):
    with pytest.raises(ValueError):
        region_from_points(points)


def test_infer_bounds_pads_box():
    points = jnp.array([[0.0, 0.0], [10.0, 0.0]])
    box = infer_bounds(points)
    assert jnp.allclose(box.lower, jnp.array([-0.5, -1e-6]))
    assert jnp.allclose(box.upper, jnp.array([10.5, 1e-6]))
