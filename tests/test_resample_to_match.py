"""Tests for resampling a grid into another grid's index space."""

import logging

import numpy as np
import pytest

from voxmod.bbox import CoordBBox
from voxmod.grid import SparseGrid
from voxmod.resample import relative_matrix, resample_to_match
from voxmod.transform.linear import LinearTransform


class TestResampleToMatch:
    """Test the relative-transform driver."""

    def test_identity(self, cube_grid):
        out = SparseGrid("float", background=0.0)
        resample_to_match(cube_grid, out, sampler="point")

        assert out.active_voxel_count() == 8000
        for ijk, value in cube_grid.iter_active_voxels():
            assert out.get_value(ijk) == value

    def test_pre_scale(self, cube_grid):
        out = SparseGrid("float", background=0.0)
        out.transform.pre_scale((0.5, 0.5, 1.0))
        resample_to_match(cube_grid, out)

        assert out.active_voxel_count() == 32000
        assert out.active_voxel_dim() == (40, 40, 20)
        assert out.active_bounding_box() == CoordBBox((9, 9, 5), (48, 48, 24))
        for _, value in out.iter_active_voxels():
            assert abs(value - 1.0) < 1e-6

    def test_output_transform_unchanged(self, cube_grid):
        xform = LinearTransform().pre_scale((0.5, 0.5, 1.0))
        out = SparseGrid("float", background=0.0, transform=xform.copy())
        resample_to_match(cube_grid, out)

        assert out.transform == xform

    def test_output_cleared_first(self, cube_grid):
        out = SparseGrid("float", background=0.0)
        out.set_value((100, 100, 100), 9.0)
        resample_to_match(cube_grid, out)

        assert not out.is_active((100, 100, 100))
        assert out.active_voxel_count() == 8000

    def test_voxel_size_downsample(self):
        fine = SparseGrid("float", transform=LinearTransform.from_voxel_size(0.5))
        fine.fill(CoordBBox((0, 0, 0), (15, 15, 15)), 3.0)
        coarse = SparseGrid("float", transform=LinearTransform.from_voxel_size(1.0))
        resample_to_match(fine, coarse)

        assert coarse.active_bounding_box() == CoordBBox((0, 0, 0), (7, 7, 7))
        assert coarse.active_voxel_count() == 512

    def test_rotated_output(self):
        grid = SparseGrid("float", background=0.0)
        grid.set_value((3, 0, 0), 1.0)
        out = SparseGrid("float", background=0.0)
        out.transform.pre_rotate(np.pi / 2, "z")
        resample_to_match(grid, out)

        assert {ijk for ijk, _ in out.iter_active_voxels()} == {(0, -3, 0)}

    def test_vector_grid(self):
        grid = SparseGrid("vec3d", background=(0.0, 0.0, 0.0))
        grid.set_value((2, 2, 2), (1.0, -1.0, 0.5))
        out = SparseGrid("vec3d", background=(0.0, 0.0, 0.0))
        out.transform.pre_translate((1.0, 0.0, 0.0))
        resample_to_match(grid, out)

        assert out.get_value((1, 2, 2)) == (1.0, -1.0, 0.5)
        assert out.active_voxel_count() == 1


class TestNonDecomposable:
    """A sheared relative transform falls back to per-voxel resampling."""

    @pytest.fixture
    def sheared_output(self):
        shear = np.eye(4)
        shear[0, 1] = 0.5
        return SparseGrid("float", background=0.0, transform=LinearTransform(shear))

    def test_relative_matrix(self, sheared_output):
        grid = SparseGrid("float")
        expected = np.eye(4)
        expected[0, 1] = 0.5
        np.testing.assert_allclose(relative_matrix(grid, sheared_output), expected)

    def test_shear_fallback(self, sheared_output, caplog):
        grid = SparseGrid("float", background=0.0)
        grid.set_value((6, 2, 3), 5.0)

        with caplog.at_level(logging.INFO):
            stats = resample_to_match(grid, sheared_output)

        assert "not decomposable" in caplog.text
        assert stats.filled_regions == 0
        assert {ijk: v for ijk, v in sheared_output.iter_active_voxels()} == {(5, 2, 3): 5.0}

    def test_shear_fallback_keeps_tile_values(self, sheared_output):
        grid = SparseGrid("float", background=0.0)
        grid.fill(CoordBBox((8, 8, 8), (15, 15, 15)), 2.0)
        resample_to_match(grid, sheared_output)

        assert sheared_output.active_voxel_count() > 0
        assert all(v == 2.0 for _, v in sheared_output.iter_active_voxels())
