"""
KD-Tree Spatial Index
=====================

Radius / k-nearest neighborhood queries over a fixed point cloud, backed by
scipy's cKDTree. The index is built once per cloud and never mutated.
"""

from typing import List, Optional

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import cKDTree

from ..core.structures import PointCloud, as_point_array
from ..logger import get_logger

logger = get_logger("spatial")


class SpatialIndex:
    """
    Read-only neighborhood index over one point cloud.

    Points closer together than ``duplicate_tolerance`` are treated as one
    position: each belongs to a duplicate group whose representative is the
    lowest input index in the group.
    """

    def __init__(self, cloud, duplicate_tolerance: float = 1e-9, leafsize: int = 16):
        """
        Build the index.

        Args:
            cloud: PointCloud or (N, 3) array
            duplicate_tolerance: Distance below which two points coincide
            leafsize: cKDTree leaf size
        """
        points = cloud.points if isinstance(cloud, PointCloud) else as_point_array(cloud)
        self._points = np.array(points, dtype=np.float64)
        self._points.setflags(write=False)
        self.duplicate_tolerance = float(duplicate_tolerance)

        self._tree = cKDTree(self._points, leafsize=leafsize) if len(self._points) else None
        self._representative = self._build_duplicate_groups()

        num_duplicates = int(np.sum(self._representative != np.arange(len(self._points))))
        logger.debug(f"Spatial index built: {len(self._points)} points, {num_duplicates} duplicates")

    def _build_duplicate_groups(self) -> np.ndarray:
        """Map every point to the lowest index within its duplicate group"""
        n = len(self._points)
        identity = np.arange(n, dtype=np.int64)
        if n < 2 or self.duplicate_tolerance <= 0:
            return identity

        pairs = self._tree.query_pairs(r=self.duplicate_tolerance, output_type='ndarray')
        if len(pairs) == 0:
            return identity

        graph = coo_matrix(
            (np.ones(len(pairs)), (pairs[:, 0], pairs[:, 1])),
            shape=(n, n)
        )
        num_groups, labels = connected_components(graph, directed=False)

        representative_of_group = np.full(num_groups, n, dtype=np.int64)
        np.minimum.at(representative_of_group, labels, identity)
        return representative_of_group[labels]

    @property
    def points(self) -> np.ndarray:
        return self._points

    @property
    def num_unique(self) -> int:
        """Number of distinct positions after duplicate collapsing"""
        return len(np.unique(self._representative))

    def __len__(self) -> int:
        return len(self._points)

    def radius_search(self, query: np.ndarray, radius: float,
                      max_neighbors: Optional[int] = None) -> np.ndarray:
        """
        Find indexed points within ``radius`` of ``query``.

        Args:
            query: Query position (3,)
            radius: Search radius, must be positive
            max_neighbors: Keep only the k nearest inside the radius

        Returns:
            Indices sorted by (distance, index)
        """
        if radius <= 0:
            raise ValueError(f"Search radius must be positive, got {radius}")
        if self._tree is None:
            return np.empty(0, dtype=np.int64)

        query = np.asarray(query, dtype=np.float64).reshape(3)
        indices = np.asarray(self._tree.query_ball_point(query, radius), dtype=np.int64)
        if len(indices) == 0:
            return indices

        distances = np.linalg.norm(self._points[indices] - query, axis=1)
        order = np.lexsort((indices, distances))
        indices = indices[order]

        if max_neighbors is not None:
            indices = indices[:max_neighbors]
        return indices

    def neighbors_of(self, index: int, radius: float,
                     max_neighbors: Optional[int] = None) -> np.ndarray:
        """Neighborhood of an indexed point (includes the point itself)"""
        return self.radius_search(self._points[index], radius, max_neighbors)

    def unique_neighbors(self, indices: np.ndarray) -> np.ndarray:
        """
        Collapse duplicates in a neighborhood.

        Each duplicate group is represented once, by its representative
        index, in the order the group is first encountered.
        """
        indices = np.asarray(indices, dtype=np.int64)
        if len(indices) == 0:
            return indices
        representatives = self._representative[indices]
        _, first = np.unique(representatives, return_index=True)
        return representatives[np.sort(first)]

    def knn(self, query: np.ndarray, k: int) -> np.ndarray:
        """Indices of the k nearest points, nearest first"""
        if self._tree is None or k <= 0:
            return np.empty(0, dtype=np.int64)
        k = min(k, len(self._points))
        _, indices = self._tree.query(np.asarray(query, dtype=np.float64).reshape(3), k=k)
        return np.atleast_1d(np.asarray(indices, dtype=np.int64))

    def nearest_distances(self, queries: np.ndarray) -> np.ndarray:
        """Distance from each query to its nearest indexed point"""
        queries = as_point_array(queries)
        if self._tree is None:
            return np.full(len(queries), np.inf)
        distances, _ = self._tree.query(queries, k=1)
        return np.asarray(distances, dtype=np.float64)

    def batch_radius_search(self, radius: float,
                            max_neighbors: Optional[int] = None) -> List[np.ndarray]:
        """Neighborhood of every indexed point, in input order"""
        return [self.neighbors_of(i, radius, max_neighbors) for i in range(len(self._points))]
