"""Inclusive integer bounding boxes in index space."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

type Coord = tuple[int, int, int]


def _coord(values) -> Coord:
    return (int(values[0]), int(values[1]), int(values[2]))


@dataclass(frozen=True)
class CoordBBox:
    """Axis-aligned box of voxel coordinates, both ends inclusive.

    A box with any ``max < min`` is empty.
    """

    min: Coord
    max: Coord

    def __post_init__(self):
        object.__setattr__(self, "min", _coord(self.min))
        object.__setattr__(self, "max", _coord(self.max))

    @classmethod
    def from_continuous(cls, lo, hi) -> CoordBBox:
        """Round a continuous box outward (floor of min, ceil of max)."""
        return cls(_coord(np.floor(lo)), _coord(np.ceil(hi)))

    @classmethod
    def from_points(cls, points: np.ndarray) -> CoordBBox:
        """Tightest box around integer points [N, 3]."""
        return cls(_coord(points.min(axis=0)), _coord(points.max(axis=0)))

    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return any(hi < lo for lo, hi in zip(self.min, self.max, strict=True))

    @property
    def dim(self) -> Coord:
        return _coord([max(hi - lo + 1, 0) for lo, hi in zip(self.min, self.max, strict=True)])

    @property
    def volume(self) -> int:
        x, y, z = self.dim
        return x * y * z

    def expand(self, n: int) -> CoordBBox:
        return CoordBBox(
            (self.min[0] - n, self.min[1] - n, self.min[2] - n),
            (self.max[0] + n, self.max[1] + n, self.max[2] + n),
        )

    def contains(self, ijk) -> bool:
        return all(lo <= c <= hi for lo, c, hi in zip(self.min, ijk, self.max, strict=True))

    def contains_bbox(self, other: CoordBBox) -> bool:
        return self.contains(other.min) and self.contains(other.max)

    def intersection(self, other: CoordBBox) -> CoordBBox | None:
        lo = tuple(max(a, b) for a, b in zip(self.min, other.min, strict=True))
        hi = tuple(min(a, b) for a, b in zip(self.max, other.max, strict=True))
        box = CoordBBox(lo, hi)
        return None if box.is_empty else box

    def union(self, other: CoordBBox) -> CoordBBox:
        lo = tuple(min(a, b) for a, b in zip(self.min, other.min, strict=True))
        hi = tuple(max(a, b) for a, b in zip(self.max, other.max, strict=True))
        return CoordBBox(lo, hi)

    # ------------------------------------------------------------------

    def coords(self) -> np.ndarray:
        """All voxel coordinates as [N, 3] int64 (x slowest, z fastest)."""
        if self.is_empty:
            return np.empty((0, 3), dtype=np.int64)
        axes = [
            np.arange(lo, hi + 1, dtype=np.int64)
            for lo, hi in zip(self.min, self.max, strict=True)
        ]
        grid = np.meshgrid(*axes, indexing="ij")
        return np.stack([g.reshape(-1) for g in grid], axis=1)

    def blocks(self, log2dim: int) -> Iterator[Coord]:
        """Keys (coord >> log2dim) of every block the box touches."""
        lo = [c >> log2dim for c in self.min]
        hi = [c >> log2dim for c in self.max]
        for bx in range(lo[0], hi[0] + 1):
            for by in range(lo[1], hi[1] + 1):
                for bz in range(lo[2], hi[2] + 1):
                    yield (bx, by, bz)

    def split(self, log2dim: int) -> tuple[CoordBBox, CoordBBox] | None:
        """
        Halve the box on a block boundary.

        Splits the axis spanning the most blocks at the block boundary
        nearest its middle.

        :param log2dim: log2 of the block edge length
        :returns: Two disjoint boxes covering this one, or None if the box
            lies within a single block
        """
        spans = [
            (hi >> log2dim) - (lo >> log2dim) for lo, hi in zip(self.min, self.max, strict=True)
        ]
        axis = int(np.argmax(spans))
        if spans[axis] == 0:
            return None

        b0 = self.min[axis] >> log2dim
        b1 = self.max[axis] >> log2dim
        cut = ((b0 + b1 + 1) // 2) << log2dim

        left_max = list(self.max)
        left_max[axis] = cut - 1
        right_min = list(self.min)
        right_min[axis] = cut
        return CoordBBox(self.min, left_max), CoordBBox(right_min, self.max)

    def __repr__(self) -> str:
        return f"CoordBBox({self.min} -> {self.max})"
