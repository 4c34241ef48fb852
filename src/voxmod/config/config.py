"""Unified voxmod configuration.

This module provides the top-level configuration dataclass shared by the
decomposer, the samplers and the resampling traversal. Components accept an
optional ``config`` argument and fall back to the ``CONFIG`` singleton.

Overrides are made with ``dataclasses.replace``:
    >>> from dataclasses import replace
    >>> cfg = replace(CONFIG, threaded=False)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class ResampleConfig:
    """Configuration for affine decomposition and grid resampling.

    Attributes:
        decompose_tolerance: Absolute tolerance when checking that a rebuilt
            linear block matches the input matrix
        guard_voxels: Minimum padding of the candidate output region, used
            when the kernel radius is smaller; absorbs floor/ceil rounding of
            nearest-point samples at its boundary
        transform_tiles: Default for the constant-tile fast path
        threaded: Use the parallel sampling kernels
        rotation_order: Default Euler factor order of GridTransformer
        default_sampler: Kernel used when none is given
        block_log2dim: log2 of the leaf block edge of newly created grids
    """

    decompose_tolerance: float = 1e-8
    guard_voxels: int = 1
    transform_tiles: bool = True
    threaded: bool = True
    rotation_order: str = "zxy"
    default_sampler: str = "point"
    block_log2dim: int = 3

    def get_all(self) -> dict[str, Any]:
        """Get all settings as a dictionary.

        :return: Dictionary mapping setting names to values
        """
        return asdict(self)


# Main singleton instance
CONFIG = ResampleConfig()
