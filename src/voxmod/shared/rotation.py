"""Rotation utilities shared by the transform and resample modules.

Euler angles are always given per axis as ``(rx, ry, rz)`` in radians. The
``order`` string names the factor order of the composed matrix read left to
right, so ``"zyx"`` means ``Rz @ Ry @ Rx`` (x is applied first to a column
vector).
"""

from __future__ import annotations

import math

import numpy as np

# Type aliases
type ArrayLike = np.ndarray | list | tuple

_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}

# Below this cos(beta) the Z and X rotations share an axis (gimbal lock)
_GIMBAL_EPS = 1e-10


# ============================================================================
# NumPy/CPU Implementation
# ============================================================================


def _validate_order(order: str) -> str:
    order = order.lower()
    if len(order) != 3 or sorted(order) != ["x", "y", "z"]:
        raise ValueError(f"Unknown rotation order '{order}'. Expected a permutation of 'xyz'")
    return order


def axis_rotation_matrix(axis: str, angle: float) -> np.ndarray:
    """Right-handed 3x3 rotation about a principal axis.

    :param axis: One of 'x', 'y', 'z'
    :param angle: Angle in radians
    :returns: 3x3 float64 rotation matrix
    """
    c = math.cos(angle)
    s = math.sin(angle)
    if axis == "x":
        return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
    if axis == "y":
        return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])
    if axis == "z":
        return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
    raise ValueError(f"Unknown rotation axis '{axis}'. Available: ['x', 'y', 'z']")


def euler_to_rotation_matrix(euler: ArrayLike, order: str = "zyx") -> np.ndarray:
    """Build a rotation matrix from per-axis Euler angles.

    :param euler: Angles [3] as (rx, ry, rz) in radians
    :param order: Left-to-right factor order, e.g. "zyx" for Rz @ Ry @ Rx
    :returns: 3x3 float64 rotation matrix
    """
    order = _validate_order(order)
    angles = np.asarray(euler, dtype=np.float64).reshape(3)

    R = np.eye(3)
    for axis in order:
        R = R @ axis_rotation_matrix(axis, float(angles[_AXIS_INDEX[axis]]))
    return R


def rotation_matrix_to_euler(R: np.ndarray) -> np.ndarray:
    """Extract (rx, ry, rz) such that ``R == Rz @ Ry @ Rx``.

    In gimbal lock only the combined X/Z angle is recoverable; rz is
    pinned to zero and the full rotation is assigned to rx.

    :param R: Proper 3x3 rotation matrix
    :returns: Angles [3] in radians, each in [-pi, pi]
    """
    R = np.asarray(R, dtype=np.float64)
    cos_beta = math.hypot(R[0, 0], R[1, 0])
    beta = math.atan2(-R[2, 0], cos_beta)

    if cos_beta > _GIMBAL_EPS:
        alpha = math.atan2(R[2, 1], R[2, 2])
        gamma = math.atan2(R[1, 0], R[0, 0])
    else:
        gamma = 0.0
        if R[2, 0] < 0.0:
            beta = math.pi / 2.0
            alpha = math.atan2(R[0, 1], R[1, 1])
        else:
            beta = -math.pi / 2.0
            alpha = math.atan2(-R[0, 1], R[1, 1])

    return np.array([alpha, beta, gamma])


def is_rotation_matrix(R: np.ndarray, atol: float = 1e-8) -> bool:
    """Check orthonormality and positive determinant."""
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        return False
    return bool(np.allclose(R.T @ R, np.eye(3), atol=atol) and np.linalg.det(R) > 0.0)


__all__ = [
    "axis_rotation_matrix",
    "euler_to_rotation_matrix",
    "rotation_matrix_to_euler",
    "is_rotation_matrix",
]
