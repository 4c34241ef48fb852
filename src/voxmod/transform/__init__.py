"""
Transform module - affine matrix utilities, decomposition and grid transforms.

Example:
    >>> from voxmod.transform import compose_affine_matrix, decompose
    >>> M = compose_affine_matrix(scale=2.0, rotation=(0.0, 0.0, 0.5), translation=(1, 2, 3))
    >>> decompose(M).translation
    (1.0, 2.0, 3.0)
"""

from voxmod.transform.api import (
    apply_homogeneous_transform,
    box_corners,
    compose_affine_matrix,
    invert_affine,
    is_affine,
    transform_box,
)
from voxmod.transform.decompose import decompose
from voxmod.transform.linear import LinearTransform

__all__ = [
    "LinearTransform",
    "apply_homogeneous_transform",
    "box_corners",
    "compose_affine_matrix",
    "decompose",
    "invert_affine",
    "is_affine",
    "transform_box",
]
