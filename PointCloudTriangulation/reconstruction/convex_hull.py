"""
Convex Hull Reconstruction
==========================

Surface triangulation by the 3D convex hull (Qhull through scipy).

This only approximates the true surface when it is convex, or star-shaped
from the cloud centroid. Concave regions are bridged by hull facets.
"""

from typing import List

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from ..core.structures import Polygon, as_point_array
from ..logger import get_logger
from .base import ReconstructionResult, ReconstructionStrategy

logger = get_logger("reconstruction.convex_hull")


class ConvexHullReconstruction(ReconstructionStrategy):
    """
    Convex hull of the smoothed cloud.

    The output vertex cloud holds only the hull vertices, in ascending input
    order. Facets are oriented counter-clockwise seen from outside.

    Degenerate input is never an error:
    - fewer than 4 points, coincident or collinear points -> empty result
    - coplanar points -> the 2D hull, emitted as a triangle fan
    """

    name = "convex_hull"
    MIN_POINTS = 4

    def __init__(self, coplanar_tolerance: float = 1e-6, merge_coplanar_facets: bool = False):
        """
        Args:
            coplanar_tolerance: Relative singular value below which the cloud
                (or two adjacent facets) count as coplanar
            merge_coplanar_facets: Report adjacent coplanar facets as one n-gon
        """
        self.coplanar_tolerance = coplanar_tolerance
        self.merge_coplanar_facets = merge_coplanar_facets

    def reconstruct(self, points: np.ndarray) -> ReconstructionResult:
        points = as_point_array(points)

        if len(points) < self.MIN_POINTS:
            return ReconstructionResult.degenerate(
                f"{len(points)} points cannot form a 3D hull (need {self.MIN_POINTS})"
            )

        centered = points - points.mean(axis=0)
        _, singular_values, axes = np.linalg.svd(centered, full_matrices=False)

        if singular_values[0] <= np.finfo(np.float64).eps:
            return ReconstructionResult.degenerate("all points coincide")
        if singular_values[1] <= self.coplanar_tolerance * singular_values[0]:
            return ReconstructionResult.degenerate("points are collinear")
        if singular_values[2] <= self.coplanar_tolerance * singular_values[0]:
            return self._planar_hull(points, centered, axes)

        try:
            hull = ConvexHull(points)
        except QhullError as e:
            logger.warning(f"Qhull failed, treating input as degenerate: {e}")
            return ReconstructionResult.degenerate(f"qhull error: {e}")

        facets = self._oriented_facets(points, hull)

        if self.merge_coplanar_facets:
            faces = self._merge_coplanar(points, hull, facets)
        else:
            faces = [list(facet) for facet in facets]

        used = np.unique(hull.simplices)
        remap = np.full(len(points), -1, dtype=np.int64)
        remap[used] = np.arange(len(used))

        polygons = [Polygon(tuple(int(remap[v]) for v in face)) for face in faces]

        logger.debug(
            f"Hull: {len(used)} vertices, {len(hull.simplices)} facets, {len(polygons)} polygons"
        )

        return ReconstructionResult(
            vertices=points[used],
            polygons=polygons,
            metadata={
                'planar': False,
                'num_facets': int(len(hull.simplices)),
                'volume': float(hull.volume),
                'area': float(hull.area),
            }
        )

    def _planar_hull(self, points: np.ndarray, centered: np.ndarray,
                     axes: np.ndarray) -> ReconstructionResult:
        """2D hull in the plane of the cloud, fanned into triangles"""
        planar = centered @ axes[:2].T

        try:
            hull = ConvexHull(planar)
        except QhullError as e:
            logger.warning(f"Qhull failed on planar input, treating as degenerate: {e}")
            return ReconstructionResult.degenerate(f"qhull error: {e}")

        # Counter-clockwise loop, rotated to start at the lowest input index
        loop = [int(v) for v in hull.vertices]
        start = loop.index(min(loop))
        loop = loop[start:] + loop[:start]

        used = np.array(sorted(loop), dtype=np.int64)
        remap = {int(v): i for i, v in enumerate(used)}
        loop = [remap[v] for v in loop]

        polygons = [
            Polygon((loop[0], loop[k], loop[k + 1]))
            for k in range(1, len(loop) - 1)
        ]

        logger.info(f"Coplanar input: flattened {len(loop)}-gon hull into {len(polygons)} triangles")

        return ReconstructionResult(
            vertices=points[used],
            polygons=polygons,
            metadata={
                'planar': True,
                'num_facets': 1,
                'volume': 0.0,
                'area': float(hull.volume),
            }
        )

    @staticmethod
    def _oriented_facets(points: np.ndarray, hull: ConvexHull) -> np.ndarray:
        """Reorder each simplex so its winding agrees with the outward facet normal"""
        facets = hull.simplices.copy()
        a, b, c = points[facets[:, 0]], points[facets[:, 1]], points[facets[:, 2]]
        winding = np.cross(b - a, c - a)
        inward = np.einsum('ij,ij->i', winding, hull.equations[:, :3]) < 0
        facets[inward] = facets[inward][:, [0, 2, 1]]
        return facets

    def _merge_coplanar(self, points: np.ndarray, hull: ConvexHull,
                        facets: np.ndarray) -> List[List[int]]:
        """
        Merge adjacent facets lying in the same plane into single polygons.

        Each region grows from its lowest-index facet (the seed) across facet
        adjacency; a facet joins only if it lies in the seed's plane.
        Polygons are ordered by their seed; vertices run counter-clockwise
        around the outward normal.
        """
        equations = hull.equations
        extent = float(np.ptp(points, axis=0).max())

        def in_seed_plane(seed: int, other: int) -> bool:
            same_normal = np.dot(equations[seed, :3], equations[other, :3]) >= 1.0 - self.coplanar_tolerance
            same_offset = abs(equations[seed, 3] - equations[other, 3]) <= self.coplanar_tolerance * extent
            return same_normal and same_offset

        num_facets = len(facets)
        assigned = np.zeros(num_facets, dtype=bool)

        faces = []
        for seed in range(num_facets):
            if assigned[seed]:
                continue
            assigned[seed] = True

            members = [seed]
            frontier = [seed]
            while frontier:
                facet = frontier.pop()
                for other in hull.neighbors[facet]:
                    if not assigned[other] and in_seed_plane(seed, other):
                        assigned[other] = True
                        members.append(int(other))
                        frontier.append(int(other))

            if len(members) == 1:
                faces.append([int(v) for v in facets[seed]])
                continue

            normal = equations[seed, :3]
            vertex_ids = np.unique(facets[members])
            faces.append(self._order_around_normal(points, vertex_ids, normal))

        return faces

    @staticmethod
    def _order_around_normal(points: np.ndarray, vertex_ids: np.ndarray,
                             normal: np.ndarray) -> List[int]:
        """Sort vertices of a planar convex face counter-clockwise about ``normal``"""
        face_points = points[vertex_ids]
        center = face_points.mean(axis=0)

        e1 = face_points[0] - center
        e1 -= np.dot(e1, normal) * normal
        e1 /= np.linalg.norm(e1)
        e2 = np.cross(normal, e1)

        offsets = face_points - center
        angles = np.arctan2(offsets @ e2, offsets @ e1)
        order = np.argsort(angles, kind='stable')
        ordered = [int(v) for v in vertex_ids[order]]

        start = ordered.index(min(ordered))
        return ordered[start:] + ordered[:start]
