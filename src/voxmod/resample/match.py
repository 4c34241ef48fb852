"""
Resample one grid into another grid's index space.

The relative map takes an output voxel to the world and back into the input
grid's index space. Its inverse, input index to output index, drives the
traversal. A decomposable map gets a GridTransformer (with the tile fast
path); anything else, such as a map with shear, is applied directly as a
matrix with per-voxel sampling only.
"""

from __future__ import annotations

import logging

from voxmod.config.config import CONFIG, ResampleConfig
from voxmod.protocols import SamplingKernel, VoxelGrid
from voxmod.resample.transformer import GridResampler, GridTransformer, TransformStats
from voxmod.sampling.samplers import get_sampler
from voxmod.transform.api import invert_affine

logger = logging.getLogger(__name__)


def relative_matrix(in_grid: VoxelGrid, out_grid: VoxelGrid):
    """Matrix taking output index coordinates to input index coordinates.

    :returns: ``in.world_to_index @ out.index_to_world``
    """
    return in_grid.transform.world_to_index_matrix @ out_grid.transform.index_to_world_matrix


def resample_to_match(
    in_grid: VoxelGrid,
    out_grid: VoxelGrid,
    sampler: str | SamplingKernel | None = None,
    transform_tiles: bool | None = None,
    threaded: bool | None = None,
    config: ResampleConfig | None = None,
) -> TransformStats:
    """
    Resample in_grid so it lines up with out_grid's own transform.

    out_grid is cleared and refilled; its transform is left unchanged.

    :param in_grid: Source grid
    :param out_grid: Destination grid
    :param sampler: Kernel name, class or instance (CONFIG.default_sampler if None)
    :param transform_tiles: Copy uniform source tiles with one fill
    :param threaded: Use the parallel sampling kernels
    :param config: Configuration (CONFIG if None)
    :returns: Traversal statistics
    """
    config = config if config is not None else CONFIG
    kernel = get_sampler(sampler)

    relative = relative_matrix(in_grid, out_grid)
    forward = invert_affine(relative)

    out_grid.clear()
    if forward is None:
        logger.warning("[resample_to_match] Grid transforms are degenerate, output left empty")
        return TransformStats()

    resampler = GridTransformer.from_matrix(
        forward, transform_tiles=transform_tiles, threaded=threaded, config=config
    )
    if resampler is not None:
        logger.info("[resample_to_match] Using decomposed transform: %r", resampler)
    else:
        logger.info("[resample_to_match] Transform not decomposable, resampling voxel by voxel")
        resampler = GridResampler(forward, transform_tiles=False, threaded=threaded, config=config)

    return resampler.transform_grid(in_grid, out_grid, sampler=kernel)
