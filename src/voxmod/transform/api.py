"""
4x4 affine matrix utilities for index-space resampling.

All matrices use the column-vector convention: a point ``p`` maps to
``M[:3, :3] @ p + M[:3, 3]`` and the bottom row of an affine matrix is
exactly ``(0, 0, 0, 1)``.

Functions:

- ``compose_affine_matrix()``: pivoted scale/rotate/translate composition.
- ``is_affine()`` / ``invert_affine()``: validity check and inversion.
- ``apply_homogeneous_transform()`` / ``transform_box()``: map points and
  axis-aligned boxes through a matrix.
"""

from __future__ import annotations

import numpy as np

from voxmod.shared.rotation import euler_to_rotation_matrix

# Type aliases for better readability (Python 3.12+ syntax)
type ArrayLike = np.ndarray | tuple | list

_AFFINE_ROW = np.array([0.0, 0.0, 0.0, 1.0])

# Below this |det| the linear block is treated as singular
SINGULAR_EPS = 1e-12

# ============================================================================
# 4x4 Homogeneous Transformation Matrix Building
# ============================================================================


def _as_vec3(value: float | ArrayLike) -> np.ndarray:
    if isinstance(value, int | float):
        return np.array([value, value, value], dtype=np.float64)
    vec = np.asarray(value, dtype=np.float64)
    if vec.ndim == 0:
        return np.array([float(vec)] * 3)
    if vec.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {vec.shape}")
    return vec


def _build_translation_matrix_4x4(translation: np.ndarray) -> np.ndarray:
    """Build 4x4 translation matrix."""
    T = np.eye(4)
    T[:3, 3] = translation
    return T


def _build_rotation_matrix_4x4(rotation_3x3: np.ndarray) -> np.ndarray:
    """Build 4x4 rotation matrix from 3x3 rotation matrix."""
    R = np.eye(4)
    R[:3, :3] = rotation_3x3
    return R


def _build_scale_matrix_4x4(scale: np.ndarray) -> np.ndarray:
    """Build 4x4 scale matrix."""
    return np.diag([scale[0], scale[1], scale[2], 1.0])


def compose_affine_matrix(
    pivot: ArrayLike | None = None,
    scale: float | ArrayLike | None = None,
    rotation: ArrayLike | None = None,
    translation: ArrayLike | None = None,
    rotation_order: str = "zyx",
) -> np.ndarray:
    """
    Compose a pivoted affine matrix.

    The result is ``T(translation) @ T(pivot) @ R @ S @ T(-pivot)``: scale and
    rotate about the pivot, then translate.

    :param pivot: Center of scale and rotation [3]
    :param scale: Per-axis scale [3] or uniform scalar
    :param rotation: Euler angles (rx, ry, rz) in radians
    :param translation: Translation [3]
    :param rotation_order: Left-to-right factor order of the rotation
    :returns: 4x4 float64 matrix
    """
    M = np.eye(4)

    if pivot is not None:
        pivot = _as_vec3(pivot)
        M = _build_translation_matrix_4x4(-pivot) @ M

    if scale is not None:
        M = _build_scale_matrix_4x4(_as_vec3(scale)) @ M

    if rotation is not None:
        R = euler_to_rotation_matrix(_as_vec3(rotation), rotation_order)
        M = _build_rotation_matrix_4x4(R) @ M

    if pivot is not None:
        M = _build_translation_matrix_4x4(pivot) @ M

    if translation is not None:
        M = _build_translation_matrix_4x4(_as_vec3(translation)) @ M

    return M


# ============================================================================
# Validation and Inversion
# ============================================================================


def is_affine(M: np.ndarray) -> bool:
    """Check that M is 4x4 with an exact (0, 0, 0, 1) bottom row."""
    M = np.asarray(M)
    return M.shape == (4, 4) and bool(np.array_equal(M[3], _AFFINE_ROW))


def invert_affine(M: np.ndarray) -> np.ndarray | None:
    """
    Invert an affine matrix.

    :param M: 4x4 affine matrix
    :returns: Inverse matrix, or None if the linear block is singular
    """
    M = np.asarray(M, dtype=np.float64)
    L = M[:3, :3]
    det = np.linalg.det(L)
    if not np.isfinite(det) or abs(det) < SINGULAR_EPS:
        return None

    L_inv = np.linalg.inv(L)
    inv = np.eye(4)
    inv[:3, :3] = L_inv
    inv[:3, 3] = -L_inv @ M[:3, 3]
    return inv


# ============================================================================
# Point and Box Mapping
# ============================================================================


def apply_homogeneous_transform(points: np.ndarray, M: np.ndarray) -> np.ndarray:
    """
    Map points through an affine matrix.

    :param points: Points [N, 3] or [3]
    :param M: 4x4 affine matrix
    :returns: Transformed points, float64, same leading shape
    """
    pts = np.asarray(points, dtype=np.float64)
    return pts @ M[:3, :3].T + M[:3, 3]


def box_corners(lo: ArrayLike, hi: ArrayLike) -> np.ndarray:
    """The 8 corners of the box [lo, hi] as [8, 3] float64."""
    lo = np.asarray(lo, dtype=np.float64)
    hi = np.asarray(hi, dtype=np.float64)
    bits = np.array(
        [[(i >> 2) & 1, (i >> 1) & 1, i & 1] for i in range(8)], dtype=np.float64
    )
    return lo + bits * (hi - lo)


def transform_box(lo: ArrayLike, hi: ArrayLike, M: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Axis-aligned bounds of a transformed box.

    :param lo: Box minimum [3]
    :param hi: Box maximum [3]
    :param M: 4x4 affine matrix
    :returns: (min, max) of the 8 transformed corners
    """
    corners = apply_homogeneous_transform(box_corners(lo, hi), M)
    return corners.min(axis=0), corners.max(axis=0)


__all__ = [
    "compose_affine_matrix",
    "is_affine",
    "invert_affine",
    "apply_homogeneous_transform",
    "box_corners",
    "transform_box",
]
