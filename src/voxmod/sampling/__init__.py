"""
Sampling module - interpolation kernels used by the resampler.

Example:
    >>> from voxmod.sampling import get_sampler
    >>> sampler = get_sampler("box")
    >>> value, active = sampler.sample(grid, (3.5, 2.0, 1.25))
"""

from voxmod.sampling.samplers import BoxSampler, PointSampler, QuadraticSampler, get_sampler

__all__ = [
    "PointSampler",
    "BoxSampler",
    "QuadraticSampler",
    "get_sampler",
]
