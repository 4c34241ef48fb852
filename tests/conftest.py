"""Shared fixtures for the voxmod test suite."""

import pytest

from voxmod.bbox import CoordBBox
from voxmod.grid import SparseGrid


@pytest.fixture
def cube_grid():
    """Float grid, identity transform, 20^3 cube of ones over 5..24.

    The cube straddles block boundaries: 8 whole blocks become tiles and
    the 56 partial blocks stay leaves.
    """
    grid = SparseGrid("float", background=0.0)
    grid.fill(CoordBBox((5, 5, 5), (24, 24, 24)), 1.0)
    return grid
