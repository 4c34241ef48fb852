"""
voxmod - Affine resampling of sparse volumetric grids

Moves sparse voxel data between coordinate frames without densifying it.

Features:
- Affine matrix decomposition into scale, rotation and translation
- Tile-aware traversal: background regions skipped, uniform tiles copied in bulk
- Point, box (trilinear) and quadratic interpolation kernels (Numba JIT)
- Resampling one grid into another grid's index space
- Reference block-structured sparse grid for bool, int, float and vec3 values

Example - Transform a grid:
    >>> from voxmod import CoordBBox, GridTransformer, SparseGrid
    >>>
    >>> grid = SparseGrid("float", background=0.0)
    >>> grid.fill(CoordBBox((0, 0, 0), (15, 15, 15)), 1.0)
    >>> out = SparseGrid("float", background=0.0)
    >>> xform = GridTransformer(scale=(2, 2, 2), rotation=(0, 0, 0.3), pivot=(8, 8, 8))
    >>> stats = xform.transform_grid(grid, out, sampler="box")
    >>> out.prune()

Example - Match another grid's transform:
    >>> from voxmod import LinearTransform, resample_to_match
    >>>
    >>> target = SparseGrid("float", transform=LinearTransform().pre_scale(0.5))
    >>> resample_to_match(grid, target, sampler="point")
"""

__version__ = "0.1.0"

from voxmod.bbox import CoordBBox
from voxmod.config import CONFIG, AffineMap, Decomposition, ResampleConfig
from voxmod.grid import SparseGrid, ValueType
from voxmod.protocols import IndexTransform, SamplingKernel, VoxelGrid
from voxmod.resample import (
    GridResampler,
    GridTransformer,
    RegionClass,
    TransformStats,
    resample_to_match,
)
from voxmod.sampling import BoxSampler, PointSampler, QuadraticSampler, get_sampler
from voxmod.transform import LinearTransform, compose_affine_matrix, decompose

__all__ = [
    # Grids
    "SparseGrid",
    "ValueType",
    "CoordBBox",
    "LinearTransform",
    # Resampling
    "GridTransformer",
    "GridResampler",
    "RegionClass",
    "TransformStats",
    "resample_to_match",
    # Samplers
    "PointSampler",
    "BoxSampler",
    "QuadraticSampler",
    "get_sampler",
    # Matrices
    "AffineMap",
    "Decomposition",
    "compose_affine_matrix",
    "decompose",
    # Config
    "CONFIG",
    "ResampleConfig",
    # Protocols
    "VoxelGrid",
    "IndexTransform",
    "SamplingKernel",
    "__version__",
]
