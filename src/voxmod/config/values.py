"""Immutable value types describing affine index-space maps.

AffineMap is the parameter set of a GridTransformer; Decomposition is the
result of splitting a matrix back into scale, rotation and translation.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

type Vec3 = tuple[float, float, float]


def _vec3(value) -> Vec3:
    if isinstance(value, int | float):
        return (float(value), float(value), float(value))
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.shape == (1,):
        arr = np.repeat(arr, 3)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got {value!r}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


@dataclass(frozen=True)
class Decomposition:
    """Scale, rotation and translation recovered from an affine matrix.

    The rotation is (rx, ry, rz) in radians for the factor order
    ``Rz @ Ry @ Rx``. Recomposing gives ``T(translation) @ R @ S``.
    """

    scale: Vec3
    rotation: Vec3
    translation: Vec3

    def to_matrix(self) -> np.ndarray:
        """Recompose the 4x4 matrix.

        :returns: 4x4 float64 matrix
        """
        from voxmod.transform.api import compose_affine_matrix

        return compose_affine_matrix(
            scale=self.scale,
            rotation=self.rotation,
            translation=self.translation,
            rotation_order="zyx",
        )

    def to_affine_map(self) -> AffineMap:
        """Convert to an unpivoted AffineMap in "zyx" order."""
        return AffineMap(
            scale=self.scale,
            rotation=self.rotation,
            translation=self.translation,
            rotation_order="zyx",
        )


@dataclass(frozen=True)
class AffineMap:
    """Pivoted affine map in index space.

    ``M = T(translation) @ T(pivot) @ R(rotation) @ S(scale) @ T(-pivot)``

    Rotation angles are radians, applied in the factor order given by
    ``rotation_order`` (e.g. "zyx" means ``Rz @ Ry @ Rx``).

    Example:
        >>> m = AffineMap(scale=(2.0, 2.0, 2.0), pivot=(8.0, 8.0, 8.0))
        >>> m.to_matrix() @ [8.0, 8.0, 8.0, 1.0]
        array([8., 8., 8., 1.])
    """

    pivot: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    translation: Vec3 = (0.0, 0.0, 0.0)
    rotation_order: str = "zyx"

    def __post_init__(self):
        object.__setattr__(self, "pivot", _vec3(self.pivot))
        object.__setattr__(self, "scale", _vec3(self.scale))
        object.__setattr__(self, "rotation", _vec3(self.rotation))
        object.__setattr__(self, "translation", _vec3(self.translation))

    def to_matrix(self) -> np.ndarray:
        """Forward 4x4 matrix (input index to output index).

        :returns: 4x4 float64 matrix
        """
        from voxmod.transform.api import compose_affine_matrix

        return compose_affine_matrix(
            pivot=self.pivot,
            scale=self.scale,
            rotation=self.rotation,
            translation=self.translation,
            rotation_order=self.rotation_order,
        )

    def inverse_matrix(self) -> np.ndarray | None:
        """Inverse 4x4 matrix (output index to input index).

        Built from the components rather than by numeric inversion.

        :returns: 4x4 float64 matrix, or None if any scale component is zero
        """
        from voxmod.shared.rotation import euler_to_rotation_matrix

        scale = np.array(self.scale)
        if np.any(scale == 0.0):
            return None

        pivot = np.array(self.pivot)
        R_t = euler_to_rotation_matrix(self.rotation, self.rotation_order).T
        L_inv = (1.0 / scale)[:, None] * R_t

        # x = L_inv @ (y - translation - pivot) + pivot
        inv = np.eye(4)
        inv[:3, :3] = L_inv
        inv[:3, 3] = pivot - L_inv @ (np.array(self.translation) + pivot)
        return inv

    @classmethod
    def from_matrix(cls, M: np.ndarray, tolerance: float | None = None) -> AffineMap | None:
        """Decompose a 4x4 matrix into an unpivoted map.

        :param M: 4x4 affine matrix
        :param tolerance: Rebuild tolerance (defaults to CONFIG)
        :returns: AffineMap in "zyx" order, or None if not decomposable
        """
        from voxmod.transform.decompose import decompose

        result = decompose(M, tolerance=tolerance)
        if result is None:
            return None
        return result.to_affine_map()

    def is_neutral(self) -> bool:
        """Check if identity map.

        :returns: True if scale is one and rotation/translation are zero
        """
        return (
            np.allclose(self.scale, 1.0)
            and np.allclose(self.rotation, 0.0)
            and np.allclose(self.translation, 0.0)
        )

    # Factory methods
    @classmethod
    def from_scale(cls, factor: float | Vec3, pivot: Vec3 = (0.0, 0.0, 0.0)) -> AffineMap:
        """Create a scale about a pivot.

        :param factor: Uniform scalar or per-axis scale
        :param pivot: Fixed point of the scale
        :returns: AffineMap with only scale (and pivot) set
        """
        return cls(pivot=pivot, scale=_vec3(factor))

    @classmethod
    def from_translation(cls, x: float, y: float, z: float) -> AffineMap:
        """Create translation map.

        :param x: X translation
        :param y: Y translation
        :param z: Z translation
        :returns: AffineMap with only translation set
        """
        return cls(translation=(x, y, z))

    @classmethod
    def from_rotation_euler(
        cls, rx: float, ry: float, rz: float, rotation_order: str = "zyx"
    ) -> AffineMap:
        """Create rotation map from Euler angles in degrees."""
        angles = np.radians([rx, ry, rz])
        return cls(rotation=_vec3(angles), rotation_order=rotation_order)
