"""Configuration model for kernel-auxiliary construction."""

from __future__ import annotations

from dataclasses import dataclass

from .multi_index import MAX_SUPPORTED_ORDER


@dataclass(frozen=True)
class SeriesExpansionConfig:
    """Resolved options for building a kernel-auxiliary object.

    ``bandwidth`` is the kernel bandwidth ``h``; the kernel family decides
    the factor ``k`` that multiplies it when displacements are normalized.
    """

    kernel: str = "gaussian"
    bandwidth: float = 1.0
    dim: int = 3
    max_order: int = 8

    def __post_init__(self):
        if not isinstance(self.kernel, str) or not self.kernel.strip():
            raise ValueError("kernel must be a non-empty string")
        if not float(self.bandwidth) > 0.0:
            raise ValueError("bandwidth must be positive")
        if int(self.dim) < 1:
            raise ValueError("dim must be >= 1")
        if not 0 <= int(self.max_order) <= MAX_SUPPORTED_ORDER:
            raise ValueError(
                f"max_order must be between 0 and {MAX_SUPPORTED_ORDER} inclusive"
            )


__all__ = ["SeriesExpansionConfig"]
