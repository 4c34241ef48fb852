"""Tests for the index-to-world LinearTransform."""

import numpy as np
import pytest

from voxmod.transform.linear import LinearTransform


class TestConstruction:
    def test_identity(self):
        xform = LinearTransform.identity()
        np.testing.assert_array_equal(xform.index_to_world_matrix, np.eye(4))
        np.testing.assert_array_equal(xform.world_to_index_matrix, np.eye(4))
        assert xform == LinearTransform()

    def test_from_voxel_size(self):
        xform = LinearTransform.from_voxel_size(0.5)
        np.testing.assert_allclose(xform.index_to_world([2, 4, 6]), [1.0, 2.0, 3.0])
        np.testing.assert_allclose(xform.world_to_index([1.0, 2.0, 3.0]), [2.0, 4.0, 6.0])
        np.testing.assert_allclose(xform.voxel_size(), [0.5, 0.5, 0.5])

    def test_per_axis_voxel_size(self):
        xform = LinearTransform.from_voxel_size((1.0, 2.0, 0.25))
        np.testing.assert_allclose(xform.voxel_size(), [1.0, 2.0, 0.25])

    def test_rejects_non_affine(self):
        M = np.eye(4)
        M[3, 0] = 1.0
        with pytest.raises(ValueError, match="affine"):
            LinearTransform(M)

    def test_rejects_singular(self):
        with pytest.raises(ValueError, match="invertible"):
            LinearTransform(np.diag([1.0, 0.0, 1.0, 1.0]))

    def test_matrix_property_is_a_copy(self):
        xform = LinearTransform()
        xform.index_to_world_matrix[0, 0] = 5.0
        assert xform == LinearTransform()


class TestComposition:
    """Test pre/post operations and their order."""

    def test_chaining_returns_self(self):
        xform = LinearTransform()
        assert xform.pre_scale(2.0).post_translate((1, 0, 0)) is xform

    def test_pre_acts_on_index(self):
        xform = LinearTransform().post_translate((10.0, 0.0, 0.0)).pre_scale(2.0)
        # index -> scale -> translate
        np.testing.assert_allclose(xform.index_to_world([1, 1, 1]), [12.0, 2.0, 2.0])

    def test_post_acts_on_world(self):
        xform = LinearTransform().pre_translate((10.0, 0.0, 0.0)).post_scale(2.0)
        # index -> translate -> scale
        np.testing.assert_allclose(xform.index_to_world([1, 1, 1]), [22.0, 2.0, 2.0])

    def test_pre_rotate(self):
        xform = LinearTransform().pre_rotate(np.pi / 2, "z")
        np.testing.assert_allclose(xform.index_to_world([1, 0, 0]), [0.0, 1.0, 0.0], atol=1e-12)

    def test_post_rotate_after_translate(self):
        xform = LinearTransform().post_translate((1.0, 0.0, 0.0)).post_rotate(np.pi / 2, "z")
        np.testing.assert_allclose(xform.index_to_world([0, 0, 0]), [0.0, 1.0, 0.0], atol=1e-12)

    def test_post_matrix(self):
        shear = np.eye(4)
        shear[0, 1] = 0.5
        xform = LinearTransform().post_matrix(shear)
        np.testing.assert_allclose(xform.index_to_world([0, 2, 0]), [1.0, 2.0, 0.0])

    def test_post_matrix_rejects_non_affine(self):
        with pytest.raises(ValueError, match="affine"):
            LinearTransform().post_matrix(np.ones((4, 4)))

    def test_singular_operation_leaves_transform_unchanged(self):
        xform = LinearTransform.from_voxel_size(2.0)
        with pytest.raises(ValueError, match="singular"):
            xform.pre_scale((1.0, 0.0, 1.0))
        assert xform == LinearTransform.from_voxel_size(2.0)

    def test_round_trip(self):
        xform = (
            LinearTransform.from_voxel_size(0.25)
            .pre_rotate(0.3, "x")
            .post_translate((4.0, -1.0, 2.0))
            .post_rotate(-1.1, "y")
        )
        rng = np.random.default_rng(42)
        points = rng.uniform(-50, 50, size=(32, 3))
        np.testing.assert_allclose(
            xform.world_to_index(xform.index_to_world(points)), points, atol=1e-9
        )


class TestCopyAndEquality:
    def test_copy_is_independent(self):
        xform = LinearTransform.from_voxel_size(0.5)
        clone = xform.copy()
        clone.pre_translate((1.0, 1.0, 1.0))

        assert clone != xform
        assert xform == LinearTransform.from_voxel_size(0.5)

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(LinearTransform())

    def test_repr(self):
        assert "voxel_size" in repr(LinearTransform.from_voxel_size(2.0))
