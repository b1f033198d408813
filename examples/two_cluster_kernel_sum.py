"""Compare series-expansion kernel sums with direct summation.

Builds one far field over a reference cluster, picks expansion orders from
the error bounds, and reports the observed error of far-field evaluation
and of far-to-local conversion against the direct sum:
    python examples/two_cluster_kernel_sum.py --kernel gaussian --max-error 1e-6
"""

from __future__ import annotations

import argparse

import jax
import jax.numpy as jnp

from cartseries import (
    CartesianFarField,
    CartesianLocal,
    SeriesExpansionConfig,
    build_kernel_aux,
    direct_kernel_sum,
    region_from_points,
)


def _make_cluster(
    n: int, dim: int, center: float, spread: float, seed: int
) -> tuple[jax.Array, jax.Array]:
    key = jax.random.PRNGKey(seed)
    k1, k2 = jax.random.split(key)
    points = center + jax.random.uniform(
        k1, (n, dim), minval=-spread, maxval=spread, dtype=jnp.float64
    )
    weights = 0.5 + jax.random.uniform(k2, (n,), dtype=jnp.float64)
    return points, weights


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--kernel", default="gaussian")
    parser.add_argument("--bandwidth", type=float, default=1.0)
    parser.add_argument("--dim", type=int, default=3)
    parser.add_argument("--max-order", type=int, default=10)
    parser.add_argument("--max-error", type=float, default=1e-6)
    parser.add_argument("--separation", type=float, default=4.0)
    parser.add_argument("--n-points", type=int, default=500)
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    print("jax:", jax.__version__)
    print("config:", vars(args))

    aux = build_kernel_aux(
        SeriesExpansionConfig(
            kernel=args.kernel,
            bandwidth=args.bandwidth,
            dim=args.dim,
            max_order=args.max_order,
        )
    )
    references, weights = _make_cluster(args.n_points, args.dim, 0.0, 0.25, args.seed)
    queries, _ = _make_cluster(
        args.n_points, args.dim, args.separation, 0.25, args.seed + 1
    )
    far_region = region_from_points(references)
    local_region = region_from_points(queries)
    min_sq = far_region.min_distance_sq(local_region)
    max_sq = far_region.max_distance_sq(local_region)
    exact = direct_kernel_sum(queries, references, weights, aux)
    weight_sum = float(jnp.sum(jnp.abs(weights)))

    far = CartesianFarField()
    far.init(far_region.center, aux)
    evaluation = far.order_for_evaluating(
        far_region, local_region, min_sq, max_sq, args.max_error
    )
    print("far-field evaluation:", evaluation)
    if evaluation.feasible:
        far.accumulate_coeffs(
            references, weights, 0, references.shape[0], evaluation.order
        )
        approx = far.evaluate_fields(queries, evaluation.order)
        observed = float(jnp.max(jnp.abs(approx - exact))) / weight_sum
        print(f"  observed error per unit weight: {observed:.3e}")

    conversion = far.order_for_converting_to_local(
        far_region, local_region, min_sq, max_sq, args.max_error
    )
    print("far-to-local conversion:", conversion)
    if conversion.feasible:
        far.refine_coeffs(references, weights, 0, references.shape[0], conversion.order)
        local = CartesianLocal()
        local.init(local_region.center, aux)
        far.translate_to_local(local, conversion.order)
        approx = local.evaluate_fields(queries, conversion.order)
        observed = float(jnp.max(jnp.abs(approx - exact))) / weight_sum
        print(f"  observed error per unit weight: {observed:.3e}")


if __name__ == "__main__":
    main()
