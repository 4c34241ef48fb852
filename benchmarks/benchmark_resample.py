"""Benchmark grid resampling across kernels, tile handling and threading."""

import logging
import time
from dataclasses import replace

import numpy as np

from voxmod import CONFIG, CoordBBox, GridTransformer, SparseGrid

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def create_test_grid(size: int = 96) -> SparseGrid:
    """A dense cube plus a noisy shell of scattered voxels."""
    grid = SparseGrid("float", background=0.0)
    grid.fill(CoordBBox((0, 0, 0), (size - 1, size - 1, size - 1)), 1.0)

    rng = np.random.default_rng(42)
    coords = rng.integers(-size // 4, size + size // 4, size=(20_000, 3))
    grid.set_values(coords, rng.random(20_000).astype(np.float32), True)
    return grid


def benchmark(func, warmup=1, iterations=3):
    """Benchmark a function."""
    for _ in range(warmup):
        func()

    start = time.perf_counter()
    for _ in range(iterations):
        func()
    elapsed = time.perf_counter() - start

    return (elapsed / iterations) * 1000


def run_benchmarks():
    """Run resampling benchmarks."""
    logger.info("=" * 70)
    logger.info("GRID RESAMPLING BENCHMARKS")
    logger.info("=" * 70)

    grid = create_test_grid()
    logger.info(f"Input: {grid}")
    logger.info("")

    for sampler in ("point", "box", "quadratic"):
        for tiles in (True, False):
            for threaded in (True, False):
                config = replace(CONFIG, transform_tiles=tiles, threaded=threaded)
                transformer = GridTransformer(
                    pivot=(48.0, 48.0, 48.0),
                    scale=(1.5, 1.5, 1.5),
                    rotation=(0.2, 0.1, 0.4),
                    config=config,
                )

                def run(transformer=transformer, sampler=sampler):
                    transformer.transform_grid(grid, SparseGrid("float"), sampler=sampler)

                ms = benchmark(run)
                logger.info(
                    f"{sampler:>10} tiles={tiles!s:5} threaded={threaded!s:5}: {ms:9.1f} ms"
                )

    logger.info("=" * 70)


if __name__ == "__main__":
    run_benchmarks()
