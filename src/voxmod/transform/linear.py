"""
Linear index-to-world transform attached to each grid.

A LinearTransform stores one 4x4 affine matrix mapping index space to world
space. "pre" operations act on index coordinates before the existing map
(``M @ op``); "post" operations act on world coordinates after it
(``op @ M``).
"""

from __future__ import annotations

import numpy as np

from voxmod.shared.rotation import axis_rotation_matrix
from voxmod.transform.api import (
    ArrayLike,
    _as_vec3,
    _build_rotation_matrix_4x4,
    _build_scale_matrix_4x4,
    _build_translation_matrix_4x4,
    apply_homogeneous_transform,
    invert_affine,
    is_affine,
)


class LinearTransform:
    """Affine index <-> world mapping.

    Example:
        >>> xform = LinearTransform.from_voxel_size(0.5)
        >>> xform.index_to_world([2, 2, 2])
        array([1., 1., 1.])
    """

    __slots__ = ("_matrix",)

    def __init__(self, matrix: ArrayLike | None = None):
        """
        :param matrix: 4x4 index-to-world matrix (identity if None)
        :raises ValueError: If the matrix is not affine or is singular
        """
        if matrix is None:
            M = np.eye(4)
        else:
            M = np.array(matrix, dtype=np.float64)
            if not is_affine(M):
                raise ValueError("LinearTransform requires a 4x4 affine matrix")
            if invert_affine(M) is None:
                raise ValueError("LinearTransform requires an invertible matrix")
        self._matrix = M

    @classmethod
    def identity(cls) -> LinearTransform:
        return cls()

    @classmethod
    def from_voxel_size(cls, voxel_size: float | ArrayLike) -> LinearTransform:
        """Uniform or per-axis voxel size with the origin at index (0, 0, 0)."""
        return cls(_build_scale_matrix_4x4(_as_vec3(voxel_size)))

    # ------------------------------------------------------------------
    # Matrices
    # ------------------------------------------------------------------

    @property
    def index_to_world_matrix(self) -> np.ndarray:
        return self._matrix.copy()

    @property
    def world_to_index_matrix(self) -> np.ndarray:
        return invert_affine(self._matrix)

    def voxel_size(self) -> np.ndarray:
        """World-space length of each index axis."""
        return np.linalg.norm(self._matrix[:3, :3], axis=0)

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def index_to_world(self, xyz: ArrayLike) -> np.ndarray:
        return apply_homogeneous_transform(xyz, self._matrix)

    def world_to_index(self, xyz: ArrayLike) -> np.ndarray:
        return apply_homogeneous_transform(xyz, self.world_to_index_matrix)

    # ------------------------------------------------------------------
    # Composition (in-place, return self for chaining)
    # ------------------------------------------------------------------

    def _set(self, M: np.ndarray) -> LinearTransform:
        if invert_affine(M) is None:
            raise ValueError("Operation would make the transform singular")
        self._matrix = M
        return self

    def pre_scale(self, scale: float | ArrayLike) -> LinearTransform:
        """Scale index coordinates before the existing map."""
        return self._set(self._matrix @ _build_scale_matrix_4x4(_as_vec3(scale)))

    def pre_translate(self, offset: ArrayLike) -> LinearTransform:
        """Translate index coordinates before the existing map."""
        return self._set(self._matrix @ _build_translation_matrix_4x4(_as_vec3(offset)))

    def pre_rotate(self, angle: float, axis: str = "z") -> LinearTransform:
        """Rotate index coordinates (radians) before the existing map."""
        R = _build_rotation_matrix_4x4(axis_rotation_matrix(axis, angle))
        return self._set(self._matrix @ R)

    def post_scale(self, scale: float | ArrayLike) -> LinearTransform:
        """Scale world coordinates after the existing map."""
        return self._set(_build_scale_matrix_4x4(_as_vec3(scale)) @ self._matrix)

    def post_translate(self, offset: ArrayLike) -> LinearTransform:
        """Translate world coordinates after the existing map."""
        return self._set(_build_translation_matrix_4x4(_as_vec3(offset)) @ self._matrix)

    def post_rotate(self, angle: float, axis: str = "z") -> LinearTransform:
        """Rotate world coordinates (radians) after the existing map."""
        R = _build_rotation_matrix_4x4(axis_rotation_matrix(axis, angle))
        return self._set(R @ self._matrix)

    def post_matrix(self, M: ArrayLike) -> LinearTransform:
        """Apply an arbitrary affine matrix in world space."""
        M = np.asarray(M, dtype=np.float64)
        if not is_affine(M):
            raise ValueError("post_matrix requires a 4x4 affine matrix")
        return self._set(M @ self._matrix)

    # ------------------------------------------------------------------

    def copy(self) -> LinearTransform:
        return LinearTransform(self._matrix)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LinearTransform):
            return NotImplemented
        return bool(np.array_equal(self._matrix, other._matrix))

    __hash__ = None

    def __repr__(self) -> str:
        return f"LinearTransform(voxel_size={self.voxel_size().tolist()})"
