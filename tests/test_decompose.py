"""Tests for affine matrix decomposition.

Verifies that:
1. Decomposable matrices recompose to the original within tolerance
2. Perspective, singular and sheared matrices are rejected without raising
3. Reflections are absorbed into the scale
"""

import itertools

import numpy as np
import pytest

from voxmod.config.values import AffineMap
from voxmod.transform.api import compose_affine_matrix
from voxmod.transform.decompose import decompose


def _rzyx_matrix(scale, angles_deg, translation):
    """T @ Rz @ Ry @ Rx @ S."""
    return compose_affine_matrix(
        scale=scale,
        rotation=np.radians(angles_deg),
        translation=translation,
        rotation_order="zyx",
    )


class TestDecomposeBasics:
    """Test simple decompositions."""

    def test_identity(self):
        result = decompose(np.eye(4))

        assert result is not None
        np.testing.assert_allclose(result.scale, (1.0, 1.0, 1.0))
        np.testing.assert_allclose(result.rotation, (0.0, 0.0, 0.0))
        np.testing.assert_allclose(result.translation, (0.0, 0.0, 0.0))

    def test_translation_extracted(self):
        M = np.eye(4)
        M[:3, 3] = [100.0, 0.0, -100.0]
        result = decompose(M)

        assert result is not None
        assert result.translation == (100.0, 0.0, -100.0)

    def test_uniform_scale_with_rotation(self):
        M = _rzyx_matrix((2.5, 2.5, 2.5), (10.0, -20.0, 30.0), (1.0, 2.0, 3.0))
        result = decompose(M)

        assert result is not None
        np.testing.assert_allclose(result.scale, (2.5, 2.5, 2.5))
        np.testing.assert_allclose(np.degrees(result.rotation), (10.0, -20.0, 30.0), atol=1e-9)

    def test_non_uniform_scale_without_rotation(self):
        M = np.diag([2.0, 0.5, 4.0, 1.0])
        result = decompose(M)

        assert result is not None
        np.testing.assert_allclose(result.scale, (2.0, 0.5, 4.0))
        np.testing.assert_allclose(result.rotation, (0.0, 0.0, 0.0), atol=1e-12)

    def test_reflection_absorbed_into_scale(self):
        """A single mirrored axis leaves a proper rotation."""
        M = np.diag([-3.0, 3.0, 3.0, 1.0])
        result = decompose(M)

        assert result is not None
        assert np.prod(np.sign(result.scale)) < 0
        np.testing.assert_allclose(result.to_matrix(), M, atol=1e-12)

    def test_negative_uniform_scale(self):
        M = _rzyx_matrix((-1.0, -1.0, -1.0), (0.0, 45.0, 90.0), (0.0, 0.0, 0.0))
        result = decompose(M)

        assert result is not None
        np.testing.assert_allclose(result.to_matrix(), M, atol=1e-12)

    def test_prefers_smallest_rotation(self):
        """A half turn about z folds into a pair of mirrored axes."""
        result = decompose(np.diag([-1.0, -1.0, 1.0, 1.0]))

        assert result is not None
        np.testing.assert_allclose(result.scale, (-1.0, -1.0, 1.0))
        np.testing.assert_allclose(result.rotation, (0.0, 0.0, 0.0), atol=1e-12)

    def test_malformed_shape_raises(self):
        with pytest.raises(ValueError, match="4x4"):
            decompose(np.eye(3))


class TestDecomposeRejects:
    """Test non-decomposable matrices return None."""

    def test_perspective(self):
        M = np.eye(4)
        M[3, 1] = 1.0
        assert decompose(M) is None

    def test_bottom_right_not_one(self):
        M = np.eye(4)
        M[3, 3] = 2.0
        assert decompose(M) is None

    def test_singular(self):
        assert decompose(np.diag([1.0, 0.0, 1.0, 1.0])) is None

    def test_shear(self):
        M = np.eye(4)
        M[0, 1] = 0.5
        assert decompose(M) is None

    def test_non_uniform_scale_with_rotation(self):
        M = _rzyx_matrix((1.0, 2.0, 3.0), (0.0, 0.0, 45.0), (0.0, 0.0, 0.0))
        assert decompose(M) is None

    def test_non_finite(self):
        M = np.eye(4)
        M[0, 3] = np.nan
        assert decompose(M) is None


class TestDecomposeSweep:
    """Recomposition must reproduce every matrix that decomposes."""

    SCALES = (1.0, 0.25, -0.25, -1.0, 10.0, -10.0)
    ANGLES = (0.0, 45.0, 90.0, 180.0, 225.0, 270.0, 315.0, 360.0)

    @pytest.mark.slow
    @pytest.mark.parametrize(
        "translation", [(0.0, 0.0, 0.0), (100.0, 0.0, -100.0), (-50.0, 100.0, 250.0)]
    )
    def test_recompose(self, translation):
        successes = 0
        failures = 0
        for scale in itertools.product(self.SCALES, repeat=3):
            for angles in itertools.product(self.ANGLES, repeat=3):
                M = _rzyx_matrix(scale, angles, translation)
                result = decompose(M)
                if result is None:
                    failures += 1
                    continue
                successes += 1
                np.testing.assert_allclose(result.to_matrix(), M, atol=1e-6)

        assert successes + failures == 6**3 * 8**3
        assert successes > 0
        assert failures > successes


class TestAffineMapFromMatrix:
    def test_roundtrip(self):
        M = _rzyx_matrix((0.5, 0.5, 0.5), (30.0, 60.0, -15.0), (4.0, -2.0, 7.0))
        affine = AffineMap.from_matrix(M)

        assert affine is not None
        assert affine.rotation_order == "zyx"
        np.testing.assert_allclose(affine.to_matrix(), M, atol=1e-10)

    def test_not_decomposable(self):
        M = np.eye(4)
        M[1, 2] = 0.25
        assert AffineMap.from_matrix(M) is None
