"""
Spatial Indexing
================

Neighborhood search over a fixed point cloud.
"""

from .kdtree_index import SpatialIndex

__all__ = ['SpatialIndex']
