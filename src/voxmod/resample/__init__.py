"""
Resample module - affine transformation of sparse grids.

Example:
    >>> from voxmod.resample import GridTransformer, resample_to_match
    >>> GridTransformer(scale=(2, 2, 2)).transform_grid(src, dst, sampler="box")
    >>> resample_to_match(src, dst)
"""

from voxmod.resample.match import relative_matrix, resample_to_match
from voxmod.resample.transformer import (
    GridResampler,
    GridTransformer,
    RegionClass,
    TransformStats,
)

__all__ = [
    "GridResampler",
    "GridTransformer",
    "RegionClass",
    "TransformStats",
    "relative_matrix",
    "resample_to_match",
]
