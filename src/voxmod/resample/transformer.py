"""
Tile-aware affine resampling of sparse grids.

The traversal runs in output index space. The candidate output region (the
input's active bounding box pushed through the forward matrix, padded by the
kernel radius but never less than the rounding guard) is partitioned on the
input's block boundaries. Each sub-region is classified by mapping it back
through the inverse matrix:

- SKIP: the radius-padded footprint is pure background, nothing is written
- CONSTANT_FILL: the footprint sits inside uniform source tiles, one bulk fill
- PER_VOXEL: every voxel centre is mapped back and sampled with the kernel

A per-voxel region whose source window would be much larger than the
kernel stencils of its voxels (strong downsampling) is halved further, so
the dense copy stays proportional to the output voxels it serves.

Example:
    >>> from voxmod import GridTransformer, SparseGrid
    >>> xform = GridTransformer(scale=(2.0, 2.0, 2.0), rotation=(0.0, 0.0, np.pi / 4))
    >>> out = SparseGrid("float")
    >>> stats = xform.transform_grid(grid, out, sampler="box")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from voxmod.bbox import CoordBBox
from voxmod.config.config import CONFIG, ResampleConfig
from voxmod.config.values import AffineMap
from voxmod.protocols import SamplingKernel, VoxelGrid
from voxmod.sampling.samplers import get_sampler
from voxmod.transform.api import (
    apply_homogeneous_transform,
    invert_affine,
    is_affine,
    transform_box,
)
from voxmod.transform.decompose import decompose

logger = logging.getLogger(__name__)

# A per-voxel window may hold at most this many times the voxels of the
# kernel stencils it serves before the region is halved
_WINDOW_SLACK = 4


class RegionClass(Enum):
    """How an output sub-region is produced."""

    SKIP = "skip"
    CONSTANT_FILL = "constant_fill"
    PER_VOXEL = "per_voxel"


@dataclass
class TransformStats:
    """Counters describing one transform_grid pass."""

    candidate: CoordBBox | None = None
    skipped_regions: int = 0
    filled_regions: int = 0
    sampled_regions: int = 0
    sampled_voxels: int = 0
    written_voxels: int = 0


class GridResampler:
    """
    Resample a grid through an arbitrary 4x4 affine index-space matrix.

    :param matrix: Forward matrix mapping input index to output index
    :param transform_tiles: Copy uniform source tiles with one fill
        (CONFIG.transform_tiles if None)
    :param threaded: Use the parallel sampling kernels (CONFIG.threaded if None)
    :param config: Configuration (CONFIG if None)
    :raises ValueError: If the matrix is not a 4x4 affine matrix
    """

    def __init__(
        self,
        matrix: np.ndarray,
        transform_tiles: bool | None = None,
        threaded: bool | None = None,
        config: ResampleConfig | None = None,
    ):
        self.config = config if config is not None else CONFIG
        M = np.array(matrix, dtype=np.float64)
        if M.shape != (4, 4):
            raise ValueError(f"Expected a 4x4 matrix, got shape {M.shape}")
        if not is_affine(M):
            raise ValueError(f"Matrix is not affine: bottom row is {M[3].tolist()}")

        self._forward = M
        self._inverse = invert_affine(M)
        self.transform_tiles = (
            self.config.transform_tiles if transform_tiles is None else bool(transform_tiles)
        )
        self.threaded = self.config.threaded if threaded is None else bool(threaded)

    # ------------------------------------------------------------------
    # Matrices
    # ------------------------------------------------------------------

    @property
    def forward_matrix(self) -> np.ndarray:
        """Input index to output index."""
        return self._forward.copy()

    @property
    def inverse_matrix(self) -> np.ndarray | None:
        """Output index to input index, or None if the map is singular."""
        return None if self._inverse is None else self._inverse.copy()

    def get_transform(self) -> np.ndarray:
        return self.forward_matrix

    def is_singular(self) -> bool:
        return self._inverse is None

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def candidate_region(self, in_bbox: CoordBBox, radius: int) -> CoordBBox:
        """Output region that can hold non-background values."""
        lo, hi = transform_box(in_bbox.min, in_bbox.max, self._forward)
        pad = max(radius, self.config.guard_voxels)
        return CoordBBox.from_continuous(lo, hi).expand(pad)

    def footprint(self, region: CoordBBox) -> CoordBBox:
        """Input voxels enclosing the inverse images of a region's voxel centres."""
        lo, hi = transform_box(region.min, region.max, self._inverse)
        return CoordBBox.from_continuous(lo, hi)

    def classify(
        self, in_grid: VoxelGrid, region: CoordBBox, radius: int
    ) -> tuple[RegionClass, tuple | None]:
        """
        Decide how an output region is produced.

        :param in_grid: Source grid
        :param region: Output region
        :param radius: Kernel support radius
        :returns: (classification, (value, active) for CONSTANT_FILL else None)
        """
        footprint = self.footprint(region)

        state = in_grid.probe_constant(footprint.expand(radius))
        if state is not None:
            value, active = state
            if not active and in_grid.values_equal(value, in_grid.background):
                return RegionClass.SKIP, None

        if self.transform_tiles:
            state = in_grid.probe_constant(footprint, tiles_only=True)
            is_background = (
                state is not None
                and not state[1]
                and in_grid.values_equal(state[0], in_grid.background)
            )
            if state is not None and not is_background:
                return RegionClass.CONSTANT_FILL, state

        return RegionClass.PER_VOXEL, None

    def transform_grid(
        self,
        in_grid: VoxelGrid,
        out_grid: VoxelGrid,
        sampler: str | SamplingKernel | None = None,
    ) -> TransformStats:
        """
        Resample in_grid into out_grid.

        Voxels outside the candidate region are not written, so out_grid
        should start out empty. Compaction of the result (e.g.
        ``SparseGrid.prune()``) is left to the caller.

        :param in_grid: Source grid
        :param out_grid: Destination grid (written in place)
        :param sampler: Kernel name, class or instance (CONFIG.default_sampler if None)
        :returns: Traversal statistics
        """
        kernel = get_sampler(sampler)
        name = type(self).__name__
        stats = TransformStats()

        if self._inverse is None:
            logger.warning("[%s] Singular transform, output left empty", name)
            return stats

        in_bbox = in_grid.active_bounding_box()
        if in_bbox is None:
            logger.debug("[%s] Input has no active voxels, nothing to do", name)
            return stats

        radius = kernel.radius
        candidate = self.candidate_region(in_bbox, radius)
        stats.candidate = candidate
        logger.debug(
            "[%s] Input bbox %s -> candidate %s (%s, radius %d)",
            name,
            in_bbox,
            candidate,
            kernel.name,
            radius,
        )

        log2dim = in_grid.block_log2dim
        stack = [candidate]
        while stack:
            region = stack.pop()
            kind, state = self.classify(in_grid, region, radius)

            if kind is RegionClass.SKIP:
                stats.skipped_regions += 1
                continue

            if kind is RegionClass.CONSTANT_FILL:
                out_grid.fill(region, state[0], state[1])
                stats.filled_regions += 1
                continue

            halves = region.split(log2dim)
            if halves is None and self._window_too_large(region, radius):
                halves = region.split(0)
            if halves is not None:
                stack.extend(halves)
                continue

            self._sample_region(in_grid, out_grid, region, kernel, stats)

        logger.debug(
            "[%s] Regions: %d skipped, %d filled, %d sampled (%d voxels, %d written)",
            name,
            stats.skipped_regions,
            stats.filled_regions,
            stats.sampled_regions,
            stats.sampled_voxels,
            stats.written_voxels,
        )
        return stats

    def _sample_window(self, region: CoordBBox, radius: int) -> CoordBBox:
        """Input voxels read when sampling every voxel of a region."""
        return self.footprint(region).expand(radius + 1)

    def _window_too_large(self, region: CoordBBox, radius: int) -> bool:
        stencil = (2 * radius + 2) ** 3
        limit = _WINDOW_SLACK * region.volume * stencil
        return self._sample_window(region, radius).volume > limit

    def _sample_region(
        self,
        in_grid: VoxelGrid,
        out_grid: VoxelGrid,
        region: CoordBBox,
        kernel: SamplingKernel,
        stats: TransformStats,
    ) -> None:
        """Sample every voxel of a region through the kernel."""
        coords = region.coords()
        source = apply_homogeneous_transform(coords, self._inverse)

        window = self._sample_window(region, kernel.radius)
        values, active = in_grid.dense(window)
        out_values, out_active = kernel.sample_window(
            values, active, source - np.array(window.min, dtype=np.float64), self.threaded
        )

        background = np.asarray(out_grid.background, dtype=out_values.dtype)
        differs = out_values != background
        if differs.ndim > 1:
            differs = differs.any(axis=1)
        keep = out_active | differs

        out_grid.set_values(coords[keep], out_values[keep], out_active[keep])
        stats.sampled_regions += 1
        stats.sampled_voxels += coords.shape[0]
        stats.written_voxels += int(keep.sum())


class GridTransformer(GridResampler):
    """
    Resample a grid through a pivoted scale, rotation and translation.

    The forward map is
    ``T(translation) @ T(pivot) @ R(rotation) @ S(scale) @ T(-pivot)``
    in index space, with rotation angles in radians applied in
    ``rotation_order`` (CONFIG.rotation_order if None).

    :param pivot: Center of scale and rotation
    :param scale: Per-axis scale
    :param rotation: Euler angles (rx, ry, rz) in radians
    :param translation: Translation in output voxels
    :param transform_tiles: Copy uniform source tiles with one fill
    :param rotation_order: Left-to-right factor order, e.g. "zxy" for Rz @ Rx @ Ry
    :param threaded: Use the parallel sampling kernels
    :param config: Configuration (CONFIG if None)
    """

    def __init__(
        self,
        pivot=(0.0, 0.0, 0.0),
        scale=(1.0, 1.0, 1.0),
        rotation=(0.0, 0.0, 0.0),
        translation=(0.0, 0.0, 0.0),
        transform_tiles: bool | None = None,
        rotation_order: str | None = None,
        threaded: bool | None = None,
        config: ResampleConfig | None = None,
    ):
        config = config if config is not None else CONFIG
        self.affine_map = AffineMap(
            pivot=pivot,
            scale=scale,
            rotation=rotation,
            translation=translation,
            rotation_order=config.rotation_order if rotation_order is None else rotation_order,
        )
        super().__init__(
            self.affine_map.to_matrix(),
            transform_tiles=transform_tiles,
            threaded=threaded,
            config=config,
        )
        # Inverse from the components, not numeric inversion
        self._inverse = self.affine_map.inverse_matrix()

    @classmethod
    def from_matrix(
        cls,
        matrix: np.ndarray,
        transform_tiles: bool | None = None,
        threaded: bool | None = None,
        config: ResampleConfig | None = None,
    ) -> GridTransformer | None:
        """
        Build a transformer from a decomposable matrix.

        :param matrix: 4x4 forward matrix
        :returns: GridTransformer in "zyx" order, or None if the matrix
            cannot be decomposed
        """
        config = config if config is not None else CONFIG
        parts = decompose(matrix, tolerance=config.decompose_tolerance)
        if parts is None:
            return None
        return cls(
            scale=parts.scale,
            rotation=parts.rotation,
            translation=parts.translation,
            transform_tiles=transform_tiles,
            rotation_order="zyx",
            threaded=threaded,
            config=config,
        )

    @property
    def pivot(self) -> tuple[float, float, float]:
        return self.affine_map.pivot

    @property
    def scale(self) -> tuple[float, float, float]:
        return self.affine_map.scale

    @property
    def rotation(self) -> tuple[float, float, float]:
        return self.affine_map.rotation

    @property
    def translation(self) -> tuple[float, float, float]:
        return self.affine_map.translation

    @property
    def rotation_order(self) -> str:
        return self.affine_map.rotation_order

    def __repr__(self) -> str:
        return (
            f"GridTransformer(pivot={self.pivot}, scale={self.scale}, "
            f"rotation={self.rotation}, translation={self.translation}, "
            f"rotation_order='{self.rotation_order}')"
        )
