"""
Numba-optimized interpolation kernels.

Each kernel samples a dense window ``values [X, Y, Z, C]`` /
``active [X, Y, Z]`` at continuous coordinates given relative to the window
origin, writing blended values and activity into output buffers. The caller
guarantees the window covers the kernel support of every coordinate.

Parallel kernels spread samples over worker threads with ``prange``; the
``_serial`` variants run the same per-sample code on the calling thread.
fastmath is left off so floor/round decisions stay exact. Blends are written
in lerp form so a uniform neighbourhood reproduces its value exactly.
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

# ============================================================================
# Per-sample helpers
# ============================================================================


@njit(cache=True, nogil=True)
def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


@njit(cache=True, nogil=True)
def _box_sample_one(
    values: NDArray[np.float64],
    active: NDArray[np.bool_],
    x: float,
    y: float,
    z: float,
    out_values: NDArray[np.float64],
    out_active: NDArray[np.bool_],
    i: int,
) -> None:
    """Trilinear blend of the 8 lattice points enclosing (x, y, z)."""
    x0 = int(math.floor(x))
    y0 = int(math.floor(y))
    z0 = int(math.floor(z))
    fx = x - x0
    fy = y - y0
    fz = z - z0

    for c in range(values.shape[3]):
        v00 = _lerp(values[x0, y0, z0, c], values[x0, y0, z0 + 1, c], fz)
        v01 = _lerp(values[x0, y0 + 1, z0, c], values[x0, y0 + 1, z0 + 1, c], fz)
        v10 = _lerp(values[x0 + 1, y0, z0, c], values[x0 + 1, y0, z0 + 1, c], fz)
        v11 = _lerp(values[x0 + 1, y0 + 1, z0, c], values[x0 + 1, y0 + 1, z0 + 1, c], fz)
        out_values[i, c] = _lerp(_lerp(v00, v01, fy), _lerp(v10, v11, fy), fx)

    # Active if any corner with non-zero weight is on
    on = False
    for dx in range(2):
        if (fx if dx == 1 else 1.0 - fx) == 0.0:
            continue
        for dy in range(2):
            if (fy if dy == 1 else 1.0 - fy) == 0.0:
                continue
            for dz in range(2):
                if (fz if dz == 1 else 1.0 - fz) == 0.0:
                    continue
                if active[x0 + dx, y0 + dy, z0 + dz]:
                    on = True

    out_active[i] = on


@njit(cache=True, nogil=True)
def _quadratic(v0: float, v1: float, v2: float, t: float) -> float:
    """Quadratic through (-1, v0), (0, v1), (1, v2) evaluated at t."""
    a = 0.5 * (v0 + v2) - v1
    b = 0.5 * (v2 - v0)
    return t * (t * a + b) + v1


@njit(cache=True, nogil=True)
def _quadratic_line(
    values: NDArray[np.float64], ix: int, iy: int, mz: int, c: int, tz: float
) -> float:
    return _quadratic(
        values[ix, iy, mz - 1, c], values[ix, iy, mz, c], values[ix, iy, mz + 1, c], tz
    )


@njit(cache=True, nogil=True)
def _quadratic_plane(
    values: NDArray[np.float64], ix: int, my: int, mz: int, c: int, ty: float, tz: float
) -> float:
    return _quadratic(
        _quadratic_line(values, ix, my - 1, mz, c, tz),
        _quadratic_line(values, ix, my, mz, c, tz),
        _quadratic_line(values, ix, my + 1, mz, c, tz),
        ty,
    )


@njit(cache=True, nogil=True)
def _quadratic_sample_one(
    values: NDArray[np.float64],
    active: NDArray[np.bool_],
    x: float,
    y: float,
    z: float,
    out_values: NDArray[np.float64],
    out_active: NDArray[np.bool_],
    i: int,
) -> None:
    """27-point quadratic blend around the nearest lattice point of (x, y, z)."""
    mx = int(math.floor(x + 0.5))
    my = int(math.floor(y + 0.5))
    mz = int(math.floor(z + 0.5))
    tx = x - mx
    ty = y - my
    tz = z - mz

    for c in range(values.shape[3]):
        out_values[i, c] = _quadratic(
            _quadratic_plane(values, mx - 1, my, mz, c, ty, tz),
            _quadratic_plane(values, mx, my, mz, c, ty, tz),
            _quadratic_plane(values, mx + 1, my, mz, c, ty, tz),
            tx,
        )

    # Active if any contributor with non-zero weight is on. The outer
    # weights 0.5t(t - 1) and 0.5t(t + 1) vanish only when t is zero.
    on = False
    for dx in range(-1, 2):
        if dx != 0 and tx == 0.0:
            continue
        for dy in range(-1, 2):
            if dy != 0 and ty == 0.0:
                continue
            for dz in range(-1, 2):
                if dz != 0 and tz == 0.0:
                    continue
                if active[mx + dx, my + dy, mz + dz]:
                    on = True

    out_active[i] = on


# ============================================================================
# Batched kernels
# ============================================================================


@njit(parallel=True, cache=True, nogil=True)
def box_sample_numba(
    values: NDArray[np.float64],
    active: NDArray[np.bool_],
    coords: NDArray[np.float64],
    out_values: NDArray[np.float64],
    out_active: NDArray[np.bool_],
) -> None:
    """
    Trilinear sampling of a dense window.

    Args:
        values: Window values [X, Y, Z, C]
        active: Window activity [X, Y, Z]
        coords: Sample coordinates relative to the window origin [N, 3]
        out_values: Output values [N, C] (modified in-place)
        out_active: Output activity [N] (modified in-place)
    """
    n = coords.shape[0]
    for i in prange(n):
        _box_sample_one(
            values, active, coords[i, 0], coords[i, 1], coords[i, 2], out_values, out_active, i
        )


@njit(cache=True, nogil=True)
def box_sample_serial_numba(
    values: NDArray[np.float64],
    active: NDArray[np.bool_],
    coords: NDArray[np.float64],
    out_values: NDArray[np.float64],
    out_active: NDArray[np.bool_],
) -> None:
    """Single-threaded box_sample_numba."""
    n = coords.shape[0]
    for i in range(n):
        _box_sample_one(
            values, active, coords[i, 0], coords[i, 1], coords[i, 2], out_values, out_active, i
        )


@njit(parallel=True, cache=True, nogil=True)
def quadratic_sample_numba(
    values: NDArray[np.float64],
    active: NDArray[np.bool_],
    coords: NDArray[np.float64],
    out_values: NDArray[np.float64],
    out_active: NDArray[np.bool_],
) -> None:
    """
    Triquadratic sampling of a dense window.

    Args:
        values: Window values [X, Y, Z, C]
        active: Window activity [X, Y, Z]
        coords: Sample coordinates relative to the window origin [N, 3]
        out_values: Output values [N, C] (modified in-place)
        out_active: Output activity [N] (modified in-place)
    """
    n = coords.shape[0]
    for i in prange(n):
        _quadratic_sample_one(
            values, active, coords[i, 0], coords[i, 1], coords[i, 2], out_values, out_active, i
        )


@njit(cache=True, nogil=True)
def quadratic_sample_serial_numba(
    values: NDArray[np.float64],
    active: NDArray[np.bool_],
    coords: NDArray[np.float64],
    out_values: NDArray[np.float64],
    out_active: NDArray[np.bool_],
) -> None:
    """Single-threaded quadratic_sample_numba."""
    n = coords.shape[0]
    for i in range(n):
        _quadratic_sample_one(
            values, active, coords[i, 0], coords[i, 1], coords[i, 2], out_values, out_active, i
        )
