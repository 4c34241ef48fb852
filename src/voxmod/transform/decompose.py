"""
Affine matrix decomposition into scale, rotation and translation.

``decompose(M)`` returns a Decomposition whose recomposition
``T(translation) @ Rz @ Ry @ Rx @ S`` reproduces ``M``, or ``None`` when no
such split exists. Non-decomposability is a normal result, not an error.

A matrix is rejected when:

- its bottom row is not exactly (0, 0, 0, 1) (perspective)
- its linear block is singular
- its linear block carries shear, so no rotation/scale rebuild matches
- a non-uniform scale is combined with a non-zero rotation
"""

from __future__ import annotations

import itertools
import logging

import numpy as np

from voxmod.config.config import CONFIG
from voxmod.config.values import Decomposition
from voxmod.shared.rotation import euler_to_rotation_matrix, rotation_matrix_to_euler
from voxmod.transform.api import is_affine

logger = logging.getLogger(__name__)

# Sign patterns tried when resolving reflections into the scale
_SIGN_PATTERNS = tuple(
    np.array(s, dtype=np.float64) for s in itertools.product((1.0, -1.0), repeat=3)
)


def decompose(M: np.ndarray, tolerance: float | None = None) -> Decomposition | None:
    """
    Decompose a 4x4 affine matrix.

    Scale magnitudes are the column norms of the linear block. Every sign
    pattern of the scale is tried; patterns leaving an improper rotation
    are skipped. Among patterns whose rebuilt linear block matches the
    input, the one with the smallest maximum absolute Euler angle wins.

    :param M: 4x4 matrix (column-vector convention)
    :param tolerance: Absolute rebuild tolerance (defaults to CONFIG.decompose_tolerance)
    :returns: Decomposition, or None if M cannot be decomposed
    :raises ValueError: If M is not 4x4
    """
    M = np.asarray(M, dtype=np.float64)
    if M.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 matrix, got shape {M.shape}")

    if tolerance is None:
        tolerance = CONFIG.decompose_tolerance

    if not is_affine(M):
        logger.debug("[decompose] Rejected: bottom row %s is not (0, 0, 0, 1)", M[3])
        return None
    if not np.all(np.isfinite(M)):
        return None

    translation = M[:3, 3].copy()
    L = M[:3, :3]

    unsigned_scale = np.linalg.norm(L, axis=0)
    if np.any(unsigned_scale <= tolerance):
        logger.debug("[decompose] Rejected: singular linear block")
        return None

    uniform = bool(np.allclose(unsigned_scale, unsigned_scale[0], rtol=tolerance, atol=tolerance))

    best_scale = None
    best_angles = None
    best_max_angle = np.inf

    for signs in _SIGN_PATTERNS:
        scale = unsigned_scale * signs
        R = L / scale  # divides each column
        if np.linalg.det(R) < 0.0:
            continue

        angles = rotation_matrix_to_euler(R)
        rebuilt = euler_to_rotation_matrix(angles, "zyx") * scale
        if not np.allclose(L, rebuilt, rtol=0.0, atol=tolerance):
            continue

        max_angle = float(np.max(np.abs(angles)))
        if max_angle < best_max_angle:
            best_scale, best_angles, best_max_angle = scale, angles, max_angle

        if max_angle <= tolerance:
            break

    if best_scale is None:
        logger.debug("[decompose] Rejected: linear block has shear or is singular")
        return None

    if not uniform and best_max_angle > tolerance:
        logger.debug("[decompose] Rejected: non-uniform scale %s with rotation", best_scale)
        return None

    return Decomposition(
        scale=tuple(float(v) for v in best_scale),
        rotation=tuple(float(v) for v in best_angles),
        translation=tuple(float(v) for v in translation),
    )


__all__ = ["decompose"]
