"""Tests for point, box and quadratic sampling kernels."""

import numpy as np
import pytest

from voxmod.bbox import CoordBBox
from voxmod.grid import SparseGrid
from voxmod.protocols import SamplingKernel
from voxmod.sampling import BoxSampler, PointSampler, QuadraticSampler, get_sampler


@pytest.fixture
def ramp_grid():
    """Double grid whose value is the x index, active over 0..15."""
    grid = SparseGrid("double", background=0.0)
    coords = CoordBBox((0, 0, 0), (15, 15, 15)).coords()
    grid.set_values(coords, coords[:, 0].astype(np.float64), True)
    return grid


@pytest.fixture
def single_voxel_grid():
    """Float grid with one active voxel at (10, 10, 10)."""
    grid = SparseGrid("float", background=0.0)
    grid.set_value((10, 10, 10), 4.0)
    return grid


class TestGetSampler:
    """Test sampler resolution."""

    @pytest.mark.parametrize(
        "name,cls,radius",
        [("point", PointSampler, 0), ("box", BoxSampler, 1), ("quadratic", QuadraticSampler, 2)],
    )
    def test_by_name(self, name, cls, radius):
        sampler = get_sampler(name)
        assert isinstance(sampler, cls)
        assert sampler.radius == radius
        assert sampler.name == name

    def test_default(self):
        assert isinstance(get_sampler(), PointSampler)

    def test_class_and_instance(self):
        assert isinstance(get_sampler(BoxSampler), BoxSampler)
        sampler = QuadraticSampler()
        assert get_sampler(sampler) is sampler

    def test_unknown_name(self):
        with pytest.raises(KeyError, match="Unknown sampler 'cubic'"):
            get_sampler("cubic")

    def test_not_a_sampler(self):
        with pytest.raises(TypeError):
            get_sampler(42)

    def test_protocol(self):
        assert isinstance(BoxSampler(), SamplingKernel)


class TestPointSampler:
    """Test nearest-neighbour sampling."""

    def test_rounds_to_nearest(self, ramp_grid):
        value, active = PointSampler().sample(ramp_grid, (3.4, 2.6, 1.5))
        assert value == 3.0
        assert active

    def test_half_rounds_up(self, ramp_grid):
        value, _ = PointSampler().sample(ramp_grid, (3.5, 0.0, 0.0))
        assert value == 4.0

    def test_outside_is_background(self, ramp_grid):
        value, active = PointSampler().sample(ramp_grid, (-0.6, 0.0, 0.0))
        assert value == 0.0
        assert not active

    def test_keeps_dtype(self):
        values = np.arange(27, dtype=np.int32).reshape(3, 3, 3)
        active = np.ones((3, 3, 3), dtype=np.bool_)
        out, _ = PointSampler().sample_window(values, active, np.array([[1.2, 0.9, 2.4]]))
        assert out.dtype == np.int32
        assert out[0] == values[1, 1, 2]


class TestBoxSampler:
    """Test trilinear sampling."""

    def test_linear_ramp(self, ramp_grid):
        value, active = BoxSampler().sample(ramp_grid, (2.25, 1.0, 7.5))
        assert value == 2.25
        assert active

    def test_constant_is_exact(self):
        grid = SparseGrid("double", background=1.0)
        grid.fill(CoordBBox((0, 0, 0), (7, 7, 7)), 2.0)
        rng = np.random.default_rng(42)
        for xyz in rng.uniform(1.0, 6.0, size=(20, 3)):
            value, _ = BoxSampler().sample(grid, xyz)
            assert value == 2.0

    def test_lattice_point_uses_single_voxel(self, single_voxel_grid):
        sampler = BoxSampler()
        assert sampler.sample(single_voxel_grid, (10.0, 10.0, 10.0)) == (4.0, True)
        assert sampler.sample(single_voxel_grid, (11.0, 10.0, 10.0)) == (0.0, False)
        assert sampler.sample(single_voxel_grid, (9.0, 10.0, 10.0)) == (0.0, False)

    def test_activity_from_nonzero_weight(self, single_voxel_grid):
        sampler = BoxSampler()
        assert sampler.sample(single_voxel_grid, (10.5, 10.0, 10.0))[1]
        assert sampler.sample(single_voxel_grid, (9.001, 9.5, 10.999))[1]
        assert not sampler.sample(single_voxel_grid, (11.5, 10.0, 10.0))[1]

    def test_int_rounding(self):
        grid = SparseGrid("int32", background=0)
        grid.set_value((1, 0, 0), 4)
        value, _ = BoxSampler().sample(grid, (0.3, 0.0, 0.0))
        assert value == 1

    def test_bool_threshold(self):
        grid = SparseGrid("bool", background=False)
        grid.set_value((1, 0, 0), True)
        assert BoxSampler().sample(grid, (0.75, 0.0, 0.0))[0] is True
        assert BoxSampler().sample(grid, (0.25, 0.0, 0.0))[0] is False

    def test_vector_per_component(self):
        grid = SparseGrid("vec3d", background=(0.0, 0.0, 0.0))
        grid.set_value((0, 0, 0), (0.0, 2.0, 4.0))
        grid.set_value((1, 0, 0), (2.0, 2.0, 0.0))
        value, active = BoxSampler().sample(grid, (0.5, 0.0, 0.0))
        assert value == (1.0, 2.0, 2.0)
        assert active


class TestQuadraticSampler:
    """Test triquadratic sampling."""

    def test_reproduces_quadratic(self):
        grid = SparseGrid("double", background=0.0)
        coords = CoordBBox((-4, -4, -4), (12, 4, 4)).coords()
        grid.set_values(coords, coords[:, 0].astype(np.float64) ** 2, True)

        for x in (3.3, 4.5, 5.9, 0.1):
            value, _ = QuadraticSampler().sample(grid, (x, 0.4, -0.2))
            np.testing.assert_allclose(value, x * x, rtol=1e-12)

    def test_lattice_point_is_exact(self, ramp_grid):
        value, _ = QuadraticSampler().sample(ramp_grid, (6.0, 6.0, 6.0))
        assert value == 6.0

    def test_constant_is_exact(self):
        grid = SparseGrid("double", background=1.0)
        grid.fill(CoordBBox((0, 0, 0), (15, 15, 15)), 2.0)
        rng = np.random.default_rng(42)
        for xyz in rng.uniform(2.0, 13.0, size=(20, 3)):
            value, _ = QuadraticSampler().sample(grid, xyz)
            assert value == 2.0

    def test_activity_from_weighted_contributors(self, single_voxel_grid):
        sampler = QuadraticSampler()
        assert sampler.sample(single_voxel_grid, (9.3, 10.0, 10.0))[1]
        assert sampler.sample(single_voxel_grid, (8.6, 10.0, 10.0))[1]
        assert sampler.sample(single_voxel_grid, (10.4, 10.6, 9.5))[1]
        assert sampler.sample(single_voxel_grid, (10.0, 10.0, 10.0))[1]
        # Lattice point: the neighbours carry no weight
        assert not sampler.sample(single_voxel_grid, (11.0, 10.0, 10.0))[1]
        # Stencils of 8 and 12 do not reach 10
        assert not sampler.sample(single_voxel_grid, (8.4, 10.0, 10.0))[1]
        assert not sampler.sample(single_voxel_grid, (11.6, 10.0, 10.0))[1]

    def test_voxel_outside_stencil_is_ignored(self):
        grid = SparseGrid("float", background=0.0)
        grid.set_value((2, 0, 0), 1.0)
        assert QuadraticSampler().sample(grid, (0.3, 0.0, 0.0)) == (0.0, False)

    def test_lattice_sample_ignores_neighbours(self):
        grid = SparseGrid("float", background=0.0)
        grid.set_value((1, 0, 0), 1.0)
        assert QuadraticSampler().sample(grid, (0.0, 0.0, 0.0)) == (0.0, False)


class TestSampleWindow:
    """Test batched sampling used by the resampler."""

    @pytest.mark.parametrize("sampler", [BoxSampler(), QuadraticSampler()])
    def test_threaded_matches_serial(self, sampler):
        rng = np.random.default_rng(42)
        values = rng.random((12, 12, 12)).astype(np.float32)
        active = rng.random((12, 12, 12)) > 0.7
        coords = rng.uniform(3.0, 8.0, size=(500, 3))

        v_par, a_par = sampler.sample_window(values, active, coords, threaded=True)
        v_ser, a_ser = sampler.sample_window(values, active, coords, threaded=False)

        assert v_par.dtype == np.float32
        np.testing.assert_array_equal(v_par, v_ser)
        np.testing.assert_array_equal(a_par, a_ser)

    def test_empty_coords(self):
        values = np.zeros((4, 4, 4))
        active = np.zeros((4, 4, 4), dtype=np.bool_)
        out, on = BoxSampler().sample_window(values, active, np.empty((0, 3)))
        assert out.shape == (0,)
        assert on.shape == (0,)
