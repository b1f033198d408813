"""cartseries: Cartesian series expansions for fast kernel summation."""

from jax import config as _jax_config

# Coefficient tables and error bounds are only meaningful in float64.
_jax_config.update("jax_enable_x64", True)

from .bounds import RegionBound, infer_bounds, region_from_points
from .config import SeriesExpansionConfig
from .direct import direct_kernel_sum, pairwise_distance_sq
from .dtypes import INDEX_DTYPE, REAL_DTYPE, as_index, as_real
from .farfield import CartesianFarField
from .kernels import (
    EpanechnikovKernelAux,
    GaussianKernelAux,
    available_kernels,
    build_kernel_aux,
    hermite_functions,
    register_kernel_aux,
)
from .local import CartesianLocal
from .multi_index import (
    MAX_SUPPORTED_ORDER,
    MultiIndexTable,
    build_multi_index_table,
    level_offset,
    level_size,
    multi_index_factorial,
    multi_index_tuples,
    multi_power,
    total_coefficients,
)
from .order_selection import (
    INFEASIBLE_ORDER,
    OrderSearchResult,
    error_profile,
    search_minimal_order,
)
from .protocols import KernelAuxProtocol, LocalExpansionSink, RegionProtocol
from .translations import (
    farfield_to_farfield,
    farfield_to_local,
    local_to_local,
    monomials,
)

__all__ = [
    "INDEX_DTYPE",
    "INFEASIBLE_ORDER",
    "MAX_SUPPORTED_ORDER",
    "REAL_DTYPE",
    "CartesianFarField",
    "CartesianLocal",
    "EpanechnikovKernelAux",
    "GaussianKernelAux",
    "KernelAuxProtocol",
    "LocalExpansionSink",
    "MultiIndexTable",
    "OrderSearchResult",
    "RegionBound",
    "RegionProtocol",
    "SeriesExpansionConfig",
    "as_index",
    "as_real",
    "available_kernels",
    "build_kernel_aux",
    "build_multi_index_table",
    "direct_kernel_sum",
    "error_profile",
    "farfield_to_farfield",
    "farfield_to_local",
    "hermite_functions",
    "infer_bounds",
    "level_offset",
    "level_size",
    "local_to_local",
    "monomials",
    "multi_index_factorial",
    "multi_index_tuples",
    "multi_power",
    "pairwise_distance_sq",
    "region_from_points",
    "register_kernel_aux",
    "search_minimal_order",
    "total_coefficients",
]
