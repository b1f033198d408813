"""Structural protocols for the collaborators of the expansion classes."""

from __future__ import annotations

from typing import Protocol

from jaxtyping import Array

from .multi_index import MultiIndexTable


class RegionProtocol(Protocol):
    """Bounding geometry of a spatial region."""

    lower: Array
    upper: Array

    def max_reach(self, point: Array) -> Array: ...


class KernelAuxProtocol(Protocol):
    """Kernel-specific data an expansion is bound to.

    Supplies the bandwidth scaling ``k * h``, the shared multi-index table,
    the derivative terms used during evaluation and the truncation error
    formulas used by the order estimators.
    """

    name: str
    bandwidth: float
    scale_factor: float
    table: MultiIndexTable

    @property
    def max_order(self) -> int: ...

    def derivative_terms(self, x: Array, order: int) -> Array: ...

    def kernel_value(self, dist_sq: Array) -> Array: ...

    def evaluation_error(
        self,
        order: int,
        far_reach: Array,
        min_dist_sq: float,
        max_dist_sq: float,
    ) -> float: ...

    def conversion_error(
        self,
        order: int,
        far_reach: Array,
        local_reach: Array,
        min_dist_sq: float,
        max_dist_sq: float,
    ) -> float: ...


class LocalExpansionSink(Protocol):
    """Receiving half of the far-to-local conversion.

    Far-field expansions only depend on this narrow contract, so local
    expansion types never need to be imported by the far-field module.
    """

    @property
    def center(self) -> Array: ...

    @property
    def kernel_aux(self) -> KernelAuxProtocol: ...

    def add_coeffs(self, coeffs: Array, order: int) -> None: ...

    def evaluate_field(self, point: Array, order: int) -> float: ...


__all__ = ["KernelAuxProtocol", "LocalExpansionSink", "RegionProtocol"]
