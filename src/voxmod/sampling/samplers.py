"""
Interpolation strategies for grid resampling.

- ``PointSampler``: nearest lattice point, value and activity copied verbatim
- ``BoxSampler``: trilinear blend of the 8 enclosing lattice points
- ``QuadraticSampler``: 27-point triquadratic blend

Blended results are cast back to the grid's value type: integers are rounded
to nearest and booleans are thresholded at 0.5.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from voxmod.bbox import CoordBBox
from voxmod.config.config import CONFIG
from voxmod.protocols import SamplingKernel, VoxelGrid
from voxmod.sampling.kernels import (
    box_sample_numba,
    box_sample_serial_numba,
    quadratic_sample_numba,
    quadratic_sample_serial_numba,
)


def _cast_blended(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    """Convert float64 blend results to the window dtype."""
    if dtype == np.bool_:
        return values >= 0.5
    if np.issubdtype(dtype, np.integer):
        return np.rint(values).astype(dtype)
    return values.astype(dtype)


def _export(value: np.ndarray) -> Any:
    if value.ndim:
        return tuple(value.tolist())
    return value.item()


class _Sampler:
    """Shared single-point sampling built on sample_window."""

    name: str = ""
    radius: int = 0

    def sample(self, grid: VoxelGrid, xyz) -> tuple[Any, bool]:
        """
        Sample a grid at one continuous index-space coordinate.

        :param grid: Grid to read
        :param xyz: Coordinate [3]
        :returns: (value, is_active)
        """
        point = np.asarray(xyz, dtype=np.float64).reshape(1, 3)
        base = np.floor(point[0]).astype(np.int64)
        pad = self.radius + 1
        window = CoordBBox(base - pad, base + pad)

        values, active = grid.dense(window)
        out_values, out_active = self.sample_window(
            values, active, point - np.array(window.min), threaded=False
        )
        return _export(out_values[0]), bool(out_active[0])

    def sample_window(
        self,
        values: np.ndarray,
        active: np.ndarray,
        coords: np.ndarray,
        threaded: bool = True,
    ) -> tuple[np.ndarray, np.ndarray]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(radius={self.radius})"


class PointSampler(_Sampler):
    """Nearest-neighbour sampling (radius 0)."""

    name = "point"
    radius = 0

    def sample_window(self, values, active, coords, threaded=True):
        idx = np.floor(np.asarray(coords, dtype=np.float64) + 0.5).astype(np.int64)
        i, j, k = idx[:, 0], idx[:, 1], idx[:, 2]
        return values[i, j, k], active[i, j, k]


class _BlendSampler(_Sampler):
    """Runs a Numba kernel over a float64 copy of the window."""

    _parallel_kernel = None
    _serial_kernel = None

    def sample_window(self, values, active, coords, threaded=True):
        dtype = values.dtype
        is_vector = values.ndim == 4
        window = np.ascontiguousarray(
            values if is_vector else values[..., np.newaxis], dtype=np.float64
        )
        mask = np.ascontiguousarray(active, dtype=np.bool_)
        points = np.ascontiguousarray(coords, dtype=np.float64).reshape(-1, 3)

        n = points.shape[0]
        out_values = np.empty((n, window.shape[3]), dtype=np.float64)
        out_active = np.empty(n, dtype=np.bool_)
        if n:
            kernel = self._parallel_kernel if threaded else self._serial_kernel
            kernel(window, mask, points, out_values, out_active)

        result = _cast_blended(out_values, dtype)
        if not is_vector:
            result = result[:, 0]
        return result, out_active


class BoxSampler(_BlendSampler):
    """Trilinear sampling (radius 1).

    A sample is active if any lattice point with non-zero weight is active,
    so a sample landing exactly on a voxel takes that voxel's activity.
    """

    name = "box"
    radius = 1
    _parallel_kernel = staticmethod(box_sample_numba)
    _serial_kernel = staticmethod(box_sample_serial_numba)


class QuadraticSampler(_BlendSampler):
    """Triquadratic sampling (radius 2).

    Like the box kernel, a sample is active if any of the 27 blended
    voxels with non-zero weight is active. On a lattice point only that
    voxel has weight.
    """

    name = "quadratic"
    radius = 2
    _parallel_kernel = staticmethod(quadratic_sample_numba)
    _serial_kernel = staticmethod(quadratic_sample_serial_numba)


_SAMPLERS: dict[str, type[_Sampler]] = {
    "point": PointSampler,
    "box": BoxSampler,
    "quadratic": QuadraticSampler,
}


def get_sampler(sampler: str | type | SamplingKernel | None = None) -> SamplingKernel:
    """
    Resolve a sampler from a name, class or instance.

    :param sampler: "point", "box", "quadratic", a sampler class or instance
        (CONFIG.default_sampler if None)
    :returns: Sampler instance
    :raises KeyError: If the name is unknown
    :raises TypeError: If the object is not a sampler
    """
    if sampler is None:
        sampler = CONFIG.default_sampler

    if isinstance(sampler, str):
        try:
            return _SAMPLERS[sampler.lower()]()
        except KeyError:
            available = list(_SAMPLERS.keys())
            raise KeyError(f"Unknown sampler '{sampler}'. Available: {available}") from None

    if isinstance(sampler, type):
        sampler = sampler()

    if not isinstance(sampler, SamplingKernel):
        raise TypeError(f"Expected a sampler, got {type(sampler).__name__}")
    return sampler


__all__ = [
    "PointSampler",
    "BoxSampler",
    "QuadraticSampler",
    "get_sampler",
]
