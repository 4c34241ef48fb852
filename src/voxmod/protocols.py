"""
Protocol definitions for voxmod collaborator interfaces.

The resampling core only talks to grids, transforms and samplers through
these structural interfaces; ``voxmod.grid.SparseGrid``,
``voxmod.transform.linear.LinearTransform`` and the samplers in
``voxmod.sampling`` are the bundled implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    import numpy as np

    from voxmod.bbox import CoordBBox


@runtime_checkable
class IndexTransform(Protocol):
    """Protocol for a grid's index <-> world mapping."""

    @property
    def index_to_world_matrix(self) -> np.ndarray:
        """4x4 affine matrix from index to world space."""
        ...

    @property
    def world_to_index_matrix(self) -> np.ndarray:
        """4x4 affine matrix from world to index space."""
        ...


@runtime_checkable
class VoxelGrid(Protocol):
    """
    Protocol for sparse voxel grids consumed by the resampler.

    A grid maps integer coordinates to values with a background default
    and a per-voxel activity flag.
    """

    block_dim: int
    block_log2dim: int
    transform: IndexTransform

    @property
    def background(self) -> Any:
        """Value of every voxel not explicitly stored."""
        ...

    def get_value(self, ijk) -> Any:
        """Value at a voxel coordinate."""
        ...

    def is_active(self, ijk) -> bool:
        """Activity at a voxel coordinate."""
        ...

    def fill(self, bbox: CoordBBox, value: Any, active: bool = True) -> None:
        """Set every voxel in bbox to one value and activity state."""
        ...

    def set_values(self, coords: np.ndarray, values: np.ndarray, active: np.ndarray) -> None:
        """Write many voxels at once."""
        ...

    def dense(self, bbox: CoordBBox) -> tuple[np.ndarray, np.ndarray]:
        """Copy a box of values and activity into dense arrays."""
        ...

    def probe_constant(self, bbox: CoordBBox, tiles_only: bool = False) -> tuple[Any, bool] | None:
        """Return the (value, active) state shared by a whole box, or None."""
        ...

    def active_bounding_box(self) -> CoordBBox | None:
        """Tightest box around every active voxel."""
        ...

    def values_equal(self, a: Any, b: Any) -> bool:
        """Exact comparison of two values in the grid's type."""
        ...

    def clear(self) -> None:
        """Reset every voxel to background."""
        ...


@runtime_checkable
class SamplingKernel(Protocol):
    """
    Protocol for interpolation kernels.

    ``radius`` is how far (in voxels) outside a sample point the kernel
    reads; it pads every region the traversal inspects.
    """

    name: str
    radius: int

    def sample(self, grid: VoxelGrid, xyz) -> tuple[Any, bool]:
        """
        Sample a grid at a continuous index-space coordinate.

        :param grid: Grid to read
        :param xyz: Coordinate [3]
        :returns: (value, is_active)
        """
        ...

    def sample_window(
        self,
        values: np.ndarray,
        active: np.ndarray,
        coords: np.ndarray,
        threaded: bool = True,
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Sample a dense window at many coordinates.

        :param values: Window values [X, Y, Z] or [X, Y, Z, 3]
        :param active: Window activity [X, Y, Z]
        :param coords: Coordinates relative to the window origin [N, 3]
        :param threaded: Use the parallel kernel
        :returns: (values [N] or [N, 3] in the window dtype, active [N])
        """
        ...
