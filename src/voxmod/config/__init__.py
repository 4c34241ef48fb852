"""Configuration module for voxmod.

Usage:
    from voxmod.config import CONFIG
    CONFIG.guard_voxels  # 1
    CONFIG.rotation_order  # "zxy"
"""

from voxmod.config.config import CONFIG, ResampleConfig
from voxmod.config.values import AffineMap, Decomposition

__all__ = [
    "CONFIG",
    "ResampleConfig",
    "AffineMap",
    "Decomposition",
]
