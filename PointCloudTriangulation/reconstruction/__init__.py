"""
Surface Reconstruction
======================

Strategies turning a smoothed point set into polygons:
    base.py        - ReconstructionStrategy interface
    convex_hull.py - Convex hull (Qhull)
    factory.py     - Strategy registry
"""

from .base import ReconstructionStrategy, ReconstructionResult
from .convex_hull import ConvexHullReconstruction
from .factory import create_strategy, create_from_config, register_strategy, available_strategies

__all__ = [
    'ReconstructionStrategy',
    'ReconstructionResult',
    'ConvexHullReconstruction',
    'create_strategy',
    'create_from_config',
    'register_strategy',
    'available_strategies'
]
