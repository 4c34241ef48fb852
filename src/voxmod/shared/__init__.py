"""Shared utilities for voxmod.

Rotation helpers used by both the affine decomposer and the matrix
composition code.
"""

from voxmod.shared.rotation import (
    axis_rotation_matrix,
    euler_to_rotation_matrix,
    is_rotation_matrix,
    rotation_matrix_to_euler,
)

__all__ = [
    "axis_rotation_matrix",
    "euler_to_rotation_matrix",
    "rotation_matrix_to_euler",
    "is_rotation_matrix",
]
