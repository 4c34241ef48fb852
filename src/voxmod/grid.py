"""
Reference in-memory sparse voxel grid.

Voxels are stored in cubic blocks of ``block_dim**3`` voxels keyed by
``coord >> block_log2dim``. A block is either absent (background, inactive),
a tile (one value and one activity state for the whole block) or a dense
leaf (a value array plus an activity mask).

Example:
    >>> grid = SparseGrid("float", background=0.0)
    >>> grid.fill(CoordBBox((0, 0, 0), (15, 15, 15)), 1.0)
    >>> grid.active_voxel_count()
    4096
    >>> grid.tile_count
    8
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any

import numpy as np

from voxmod.bbox import Coord, CoordBBox
from voxmod.config.config import CONFIG
from voxmod.transform.linear import LinearTransform


class ValueType(Enum):
    """Value types a grid can hold."""

    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    DOUBLE = "double"
    VEC3S = "vec3s"
    VEC3D = "vec3d"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(_VALUE_DTYPES[self])

    @property
    def is_vector(self) -> bool:
        return self in (ValueType.VEC3S, ValueType.VEC3D)

    @property
    def channels(self) -> int:
        return 3 if self.is_vector else 1

    @classmethod
    def from_name(cls, name: str | ValueType) -> ValueType:
        """Look up a value type by name.

        :raises KeyError: If the name is unknown
        """
        if isinstance(name, ValueType):
            return name
        try:
            return cls(name.lower())
        except ValueError:
            available = [v.value for v in cls]
            raise KeyError(f"Unknown value type '{name}'. Available: {available}") from None


_VALUE_DTYPES = {
    ValueType.BOOL: np.bool_,
    ValueType.INT32: np.int32,
    ValueType.INT64: np.int64,
    ValueType.FLOAT: np.float32,
    ValueType.DOUBLE: np.float64,
    ValueType.VEC3S: np.float32,
    ValueType.VEC3D: np.float64,
}


class SparseGrid:
    """Sparse block-structured voxel grid.

    :param value_type: ValueType or its name
    :param background: Value of every voxel not explicitly stored
    :param block_log2dim: log2 of the block edge (defaults to CONFIG)
    :param transform: Index-to-world transform (identity if None)
    """

    def __init__(
        self,
        value_type: str | ValueType = "float",
        background: Any = None,
        block_log2dim: int | None = None,
        transform: LinearTransform | None = None,
    ):
        self.value_type = ValueType.from_name(value_type)
        self.block_log2dim = CONFIG.block_log2dim if block_log2dim is None else block_log2dim
        self.block_dim = 1 << self.block_log2dim
        self.transform = transform if transform is not None else LinearTransform()

        self._tail: tuple[int, ...] = (3,) if self.value_type.is_vector else ()
        self._background = self._cast(0 if background is None else background)
        self._leaves: dict[Coord, tuple[np.ndarray, np.ndarray]] = {}
        self._tiles: dict[Coord, tuple[np.ndarray, bool]] = {}

    # ------------------------------------------------------------------
    # Value conversion
    # ------------------------------------------------------------------

    @property
    def dtype(self) -> np.dtype:
        return self.value_type.dtype

    @property
    def value_shape(self) -> tuple[int, ...]:
        """Trailing shape of one value: () for scalars, (3,) for vectors."""
        return self._tail

    def _cast(self, value: Any) -> np.ndarray:
        arr = np.asarray(value).astype(self.dtype)
        if arr.size == 1 and self._tail:
            arr = np.repeat(arr.reshape(1), 3)
        return arr.reshape(self._tail)

    def _export(self, value: np.ndarray) -> Any:
        if self._tail:
            return tuple(value.tolist())
        return value.item()

    def values_equal(self, a: Any, b: Any) -> bool:
        """Exact comparison of two values after casting to the grid type."""
        return bool(np.array_equal(self._cast(a), self._cast(b)))

    @property
    def background(self) -> Any:
        return self._export(self._background)

    # ------------------------------------------------------------------
    # Block helpers
    # ------------------------------------------------------------------

    def _split_coord(self, ijk) -> tuple[Coord, Coord]:
        log2 = self.block_log2dim
        mask = self.block_dim - 1
        i, j, k = int(ijk[0]), int(ijk[1]), int(ijk[2])
        return (i >> log2, j >> log2, k >> log2), (i & mask, j & mask, k & mask)

    def _block_bbox(self, key: Coord) -> CoordBBox:
        origin = tuple(c << self.block_log2dim for c in key)
        return CoordBBox(origin, tuple(o + self.block_dim - 1 for o in origin))

    def _local_slices(self, key: Coord, box: CoordBBox) -> tuple[slice, slice, slice]:
        origin = [c << self.block_log2dim for c in key]
        return tuple(
            slice(lo - o, hi - o + 1) for lo, hi, o in zip(box.min, box.max, origin, strict=True)
        )

    def _leaf(self, key: Coord) -> tuple[np.ndarray, np.ndarray]:
        """Get the dense leaf for a block, densifying a tile or background."""
        leaf = self._leaves.get(key)
        if leaf is None:
            value, active = self._tiles.pop(key, (self._background, False))
            shape = (self.block_dim,) * 3
            values = np.empty(shape + self._tail, dtype=self.dtype)
            values[...] = value
            leaf = (values, np.full(shape, active, dtype=np.bool_))
            self._leaves[key] = leaf
        return leaf

    def _stored_blocks_in(self, bbox: CoordBBox) -> Iterator[Coord]:
        """Keys of stored leaves and tiles overlapping bbox."""
        log2 = self.block_log2dim
        lo = [c >> log2 for c in bbox.min]
        hi = [c >> log2 for c in bbox.max]
        n_range = (hi[0] - lo[0] + 1) * (hi[1] - lo[1] + 1) * (hi[2] - lo[2] + 1)

        if n_range <= len(self._leaves) + len(self._tiles):
            for key in bbox.blocks(log2):
                if key in self._leaves or key in self._tiles:
                    yield key
            return

        for store in (self._leaves, self._tiles):
            for key in store:
                if all(a <= c <= b for a, c, b in zip(lo, key, hi, strict=True)):
                    yield key

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    @property
    def tile_count(self) -> int:
        return len(self._tiles)

    # ------------------------------------------------------------------
    # Single-voxel access
    # ------------------------------------------------------------------

    def get_value(self, ijk) -> Any:
        key, off = self._split_coord(ijk)
        leaf = self._leaves.get(key)
        if leaf is not None:
            return self._export(leaf[0][off])
        tile = self._tiles.get(key)
        if tile is not None:
            return self._export(tile[0])
        return self.background

    def is_active(self, ijk) -> bool:
        key, off = self._split_coord(ijk)
        leaf = self._leaves.get(key)
        if leaf is not None:
            return bool(leaf[1][off])
        tile = self._tiles.get(key)
        return bool(tile[1]) if tile is not None else False

    def set_value(self, ijk, value: Any) -> None:
        """Set a voxel value and mark it active."""
        key, off = self._split_coord(ijk)
        values, active = self._leaf(key)
        values[off] = self._cast(value)
        active[off] = True

    def set_value_off(self, ijk, value: Any) -> None:
        """Set a voxel value and mark it inactive."""
        key, off = self._split_coord(ijk)
        values, active = self._leaf(key)
        values[off] = self._cast(value)
        active[off] = False

    def set_active(self, ijk, on: bool = True) -> None:
        key, off = self._split_coord(ijk)
        self._leaf(key)[1][off] = on

    # ------------------------------------------------------------------
    # Bulk access
    # ------------------------------------------------------------------

    def fill(self, bbox: CoordBBox, value: Any, active: bool = True) -> None:
        """
        Set every voxel in bbox to one value and activity state.

        Blocks entirely inside bbox become tiles; partially covered blocks
        are densified.
        """
        if bbox.is_empty:
            return
        value = self._cast(value)
        active = bool(active)
        is_background = not active and np.array_equal(value, self._background)

        for key in bbox.blocks(self.block_log2dim):
            block = self._block_bbox(key)
            if bbox.contains_bbox(block):
                self._leaves.pop(key, None)
                if is_background:
                    self._tiles.pop(key, None)
                else:
                    self._tiles[key] = (value.copy(), active)
            else:
                sl = self._local_slices(key, bbox.intersection(block))
                values, mask = self._leaf(key)
                values[sl] = value
                mask[sl] = active

    def set_values(self, coords: np.ndarray, values: np.ndarray, active: np.ndarray | bool) -> None:
        """
        Write many voxels at once.

        :param coords: Voxel coordinates [N, 3]
        :param values: Values [N] or [N, 3]
        :param active: Activity [N] or a single bool
        """
        coords = np.asarray(coords, dtype=np.int64).reshape(-1, 3)
        n = coords.shape[0]
        if n == 0:
            return
        values = np.asarray(values).astype(self.dtype).reshape((n,) + self._tail)
        active = np.broadcast_to(np.asarray(active, dtype=np.bool_), (n,))

        keys = coords >> self.block_log2dim
        offsets = coords & (self.block_dim - 1)
        unique_keys, inverse = np.unique(keys, axis=0, return_inverse=True)
        inverse = inverse.reshape(-1)
        order = np.argsort(inverse, kind="stable")
        groups = np.split(order, np.cumsum(np.bincount(inverse))[:-1])

        for key, idx in zip(unique_keys, groups, strict=True):
            leaf_values, leaf_active = self._leaf((int(key[0]), int(key[1]), int(key[2])))
            off = offsets[idx]
            leaf_values[off[:, 0], off[:, 1], off[:, 2]] = values[idx]
            leaf_active[off[:, 0], off[:, 1], off[:, 2]] = active[idx]

    def dense(self, bbox: CoordBBox) -> tuple[np.ndarray, np.ndarray]:
        """
        Copy a box of the grid into dense arrays.

        :param bbox: Region to copy
        :returns: (values [X, Y, Z] or [X, Y, Z, 3], active [X, Y, Z])
        """
        values = np.empty(bbox.dim + self._tail, dtype=self.dtype)
        values[...] = self._background
        active = np.zeros(bbox.dim, dtype=np.bool_)
        if bbox.is_empty:
            return values, active

        for key in self._stored_blocks_in(bbox):
            sub = bbox.intersection(self._block_bbox(key))
            dst = tuple(
                slice(lo - b, hi - b + 1)
                for lo, hi, b in zip(sub.min, sub.max, bbox.min, strict=True)
            )
            leaf = self._leaves.get(key)
            if leaf is not None:
                src = self._local_slices(key, sub)
                values[dst] = leaf[0][src]
                active[dst] = leaf[1][src]
            else:
                tile_value, tile_active = self._tiles[key]
                values[dst] = tile_value
                active[dst] = tile_active
        return values, active

    def probe_constant(self, bbox: CoordBBox, tiles_only: bool = False) -> tuple[Any, bool] | None:
        """
        Check whether a box holds a single value and activity state.

        Absent blocks count as (background, inactive).

        :param bbox: Region to probe
        :param tiles_only: Treat any dense leaf in the region as non-constant
        :returns: (value, active) shared by every voxel, or None
        """
        state: tuple[np.ndarray, bool] | None = None
        covered = 0

        def same(a: tuple[np.ndarray, bool], b: tuple[np.ndarray, bool]) -> bool:
            return a[1] == b[1] and bool(np.array_equal(a[0], b[0]))

        for key in self._stored_blocks_in(bbox):
            sub = bbox.intersection(self._block_bbox(key))
            leaf = self._leaves.get(key)
            if leaf is not None:
                if tiles_only:
                    return None
                src = self._local_slices(key, sub)
                vals = leaf[0][src]
                mask = leaf[1][src]
                first = vals.reshape((-1,) + self._tail)[0]
                if not (np.all(vals == first) and (mask.all() or not mask.any())):
                    return None
                candidate = (first, bool(mask.flat[0]))
            else:
                candidate = self._tiles[key]

            if state is None:
                state = candidate
            elif not same(state, candidate):
                return None
            covered += sub.volume

        if covered < bbox.volume:
            candidate = (self._background, False)
            if state is not None and not same(state, candidate):
                return None
            state = candidate

        return self._export(state[0]), state[1]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def active_voxel_count(self) -> int:
        count = sum(int(mask.sum()) for _, mask in self._leaves.values())
        count += sum(1 for _, active in self._tiles.values() if active) * self.block_dim**3
        return count

    def active_bounding_box(self) -> CoordBBox | None:
        """Tightest box around every active voxel, or None if there are none."""
        box = None
        for key, (_, mask) in self._leaves.items():
            if not mask.any():
                continue
            idx = np.argwhere(mask)
            origin = np.array(key) << self.block_log2dim
            leaf_box = CoordBBox(idx.min(axis=0) + origin, idx.max(axis=0) + origin)
            box = leaf_box if box is None else box.union(leaf_box)
        for key, (_, active) in self._tiles.items():
            if active:
                tile_box = self._block_bbox(key)
                box = tile_box if box is None else box.union(tile_box)
        return box

    def active_voxel_dim(self) -> Coord:
        box = self.active_bounding_box()
        return (0, 0, 0) if box is None else box.dim

    def iter_active_voxels(self) -> Iterator[tuple[Coord, Any]]:
        """Yield (coord, value) for every active voxel, expanding tiles."""
        for key, (values, mask) in self._leaves.items():
            origin = np.array(key) << self.block_log2dim
            for off in np.argwhere(mask):
                yield tuple(int(c) for c in off + origin), self._export(values[tuple(off)])
        for key, (value, active) in self._tiles.items():
            if active:
                exported = self._export(value)
                for ijk in self._block_bbox(key).coords():
                    yield tuple(int(c) for c in ijk), exported

    def iter_tiles(self) -> Iterator[tuple[CoordBBox, Any, bool]]:
        """Yield (bbox, value, active) for every tile."""
        for key, (value, active) in self._tiles.items():
            yield self._block_bbox(key), self._export(value), active

    # ------------------------------------------------------------------
    # Whole-grid operations
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Reset every voxel to background (inactive)."""
        self._leaves.clear()
        self._tiles.clear()

    def copy(self) -> SparseGrid:
        out = SparseGrid(
            self.value_type,
            background=self._background,
            block_log2dim=self.block_log2dim,
            transform=self.transform.copy(),
        )
        out._leaves = {k: (v.copy(), m.copy()) for k, (v, m) in self._leaves.items()}
        out._tiles = {k: (v.copy(), a) for k, (v, a) in self._tiles.items()}
        return out

    def prune(self, tolerance: float = 0.0) -> int:
        """
        Collapse uniform leaves into tiles.

        A leaf is uniform when its activity is all-on or all-off and every
        value is within tolerance of its first value. Uniform inactive
        leaves holding the background are dropped.

        :param tolerance: Absolute value tolerance (ignored for bool grids)
        :returns: Number of leaves collapsed
        """
        collapsed = 0
        for key in list(self._leaves):
            values, mask = self._leaves[key]
            if not (mask.all() or not mask.any()):
                continue
            first = values.reshape((-1,) + self._tail)[0]
            if tolerance > 0.0 and self.value_type is not ValueType.BOOL:
                uniform = np.allclose(values, first, rtol=0.0, atol=tolerance)
            else:
                uniform = bool(np.all(values == first))
            if not uniform:
                continue

            del self._leaves[key]
            active = bool(mask.flat[0])
            if active or not np.array_equal(first, self._background):
                self._tiles[key] = (first.copy(), active)
            collapsed += 1
        return collapsed

    def __repr__(self) -> str:
        return (
            f"SparseGrid({self.value_type.value}, background={self.background!r}, "
            f"leaves={self.leaf_count}, tiles={self.tile_count})"
        )
