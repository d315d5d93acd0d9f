"""
Moving Least Squares Smoothing
==============================

Denoises a point cloud by fitting a local surface around every point and
projecting the point onto it. The surface is a plane through the
neighborhood's principal directions or, with polynomial fitting enabled, a
weighted bivariate polynomial height field over that plane.

Based on:
    - Alexa et al., "Computing and Rendering Point Set Surfaces", IEEE TVCG 2003
    - PCL MovingLeastSquares (polynomial fit, Gaussian weights exp(-d^2 / h))
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..config import SmoothingConfig
from ..core.diagnostics import Diagnostics
from ..core.exceptions import DegenerateFitWarning, InsufficientDataError
from ..core.structures import PointCloud, SmoothedCloud, as_point_array
from ..logger import get_logger
from ..spatial import SpatialIndex

logger = get_logger("smoothing")


@dataclass
class LocalFit:
    """
    Outcome of fitting one point's neighborhood.

    Exactly one of (point, reason) is set: a fitted point carries its
    projected position and normal, a dropped point carries the reason.
    """
    index: int
    point: Optional[np.ndarray] = None
    normal: Optional[np.ndarray] = None
    used_polynomial: bool = False
    fallback: Optional[str] = None
    reason: Optional[str] = None

    @property
    def dropped(self) -> bool:
        return self.point is None


def polynomial_exponents(order: int) -> List[Tuple[int, int]]:
    """
    Monomial exponents (i, j) of u^i v^j with i + j <= order.

    The constant term comes first, followed by u and v.
    """
    exponents = [(0, 0), (1, 0), (0, 1)]
    for total in range(2, order + 1):
        for i in range(total, -1, -1):
            exponents.append((i, total - i))
    return exponents


class MovingLeastSquares:
    """
    Moving least squares smoother.

    Points whose neighborhood cannot support a fit (too few distinct
    neighbors, or neighbors that are collinear/coincident) are dropped and a
    DegenerateFitWarning is recorded for each. Output order follows input
    order; results do not depend on ``num_workers``.
    """

    def __init__(self, config: Optional[SmoothingConfig] = None):
        """
        Initialize smoother.

        Args:
            config: Smoothing configuration. If None, uses defaults.
        """
        self.config = config or SmoothingConfig()

        if self.config.search_radius <= 0:
            raise ValueError(f"Search radius must be positive, got {self.config.search_radius}")
        if self.config.polynomial_order < 1:
            raise ValueError(f"Polynomial order must be at least 1, got {self.config.polynomial_order}")
        if self.config.min_neighbors < 3:
            raise ValueError("At least 3 neighbors are needed to define a tangent plane")

        self._exponents = polynomial_exponents(self.config.polynomial_order)

    @property
    def num_coefficients(self) -> int:
        """Coefficients of the local polynomial, i.e. neighbors needed to fit it"""
        return len(self._exponents)

    def process(self, cloud, index: Optional[SpatialIndex] = None) -> SmoothedCloud:
        """
        Smooth a point cloud.

        Args:
            cloud: PointCloud or (N, 3) array
            index: Prebuilt spatial index over ``cloud``; built here if None

        Returns:
            SmoothedCloud with M <= N points

        Raises:
            InsufficientDataError: If the cloud is empty
        """
        points = cloud.points if isinstance(cloud, PointCloud) else as_point_array(cloud)
        n = len(points)
        if n == 0:
            raise InsufficientDataError("Cannot smooth an empty point cloud")

        cfg = self.config
        logger.info(
            f"Smoothing {n} points (radius={cfg.search_radius}, "
            f"{'polynomial order ' + str(cfg.polynomial_order) if cfg.polynomial_fit else 'planar'} fit)"
        )

        if index is None:
            index = SpatialIndex(points, duplicate_tolerance=cfg.duplicate_tolerance)
        elif len(index) != n:
            raise ValueError(f"Spatial index covers {len(index)} points, cloud has {n}")

        if cfg.num_workers > 1 and n > 1:
            with ThreadPoolExecutor(max_workers=cfg.num_workers) as executor:
                fits = list(executor.map(lambda i: self.fit_point(index, i), range(n)))
        else:
            fits = [self.fit_point(index, i) for i in range(n)]

        return self._assemble(points, fits)

    def _assemble(self, points: np.ndarray, fits: List[LocalFit]) -> SmoothedCloud:
        """Collect fits in input order and record diagnostics"""
        diagnostics = Diagnostics()
        diagnostics.increment('input_points', len(points))

        kept = [fit for fit in fits if not fit.dropped]
        for fit in fits:
            if fit.dropped:
                diagnostics.add_warning(DegenerateFitWarning(fit.index, fit.reason))
            elif fit.used_polynomial:
                diagnostics.increment('polynomial_fits')
            elif fit.fallback is not None:
                diagnostics.increment('planar_fallbacks')

        diagnostics.increment('smoothed_points', len(kept))

        if not kept:
            logger.warning(f"All {len(points)} points were dropped; no neighborhood supported a fit")
            return SmoothedCloud(
                points=np.empty((0, 3)),
                normals=np.empty((0, 3)) if self.config.compute_normals else None,
                source_indices=np.empty(0, dtype=np.int64),
                diagnostics=diagnostics
            )

        smoothed = np.vstack([fit.point for fit in kept])
        normals = np.vstack([fit.normal for fit in kept])
        source_indices = np.array([fit.index for fit in kept], dtype=np.int64)

        if self.config.orient_normals:
            outward = smoothed - points.mean(axis=0)
            flip = np.einsum('ij,ij->i', normals, outward) < 0
            normals[flip] *= -1.0

        if diagnostics.dropped_points:
            logger.warning(
                f"Dropped {diagnostics.dropped_points} points with degenerate neighborhoods"
            )
        if diagnostics.counters.get('planar_fallbacks'):
            logger.debug(f"{diagnostics.counters['planar_fallbacks']} points fell back to a planar fit")
        logger.info(f"✓ Smoothed cloud: {len(kept)}/{len(points)} points kept")

        return SmoothedCloud(
            points=smoothed,
            normals=normals if self.config.compute_normals else None,
            source_indices=source_indices,
            diagnostics=diagnostics
        )

    def fit_point(self, index: SpatialIndex, i: int) -> LocalFit:
        """
        Fit the local surface around point ``i`` and project the point onto it.

        The projected point lies within 2 * search_radius of the input point:
        the plane projection moves it by at most the radius, and polynomial
        heights larger than the radius are rejected in favor of the plane.
        """
        cfg = self.config
        query = index.points[i]

        # Collapse duplicates before capping, so the cap counts distinct positions
        neighbors = index.unique_neighbors(index.neighbors_of(i, cfg.search_radius))
        if cfg.max_neighbors is not None:
            neighbors = neighbors[:cfg.max_neighbors]
        if len(neighbors) < cfg.min_neighbors:
            return LocalFit(
                index=i,
                reason=f"{len(neighbors)} distinct neighbors within radius {cfg.search_radius} "
                       f"(need {cfg.min_neighbors})"
            )

        neighborhood = index.points[neighbors]
        frame = self._tangent_frame(neighborhood)
        if frame is None:
            return LocalFit(index=i, reason="collinear or coincident neighborhood")

        centroid, normal, u_axis, v_axis = frame

        # Project the query onto the tangent plane; this is the local origin
        distance = float(np.dot(query - centroid, normal))
        origin = query - distance * normal

        if not cfg.polynomial_fit:
            return LocalFit(index=i, point=origin, normal=normal)

        if len(neighbors) < self.num_coefficients:
            return LocalFit(index=i, point=origin, normal=normal, fallback="too few neighbors")

        surface = self._fit_polynomial(neighborhood, origin, normal, u_axis, v_axis)
        if surface is None:
            return LocalFit(index=i, point=origin, normal=normal, fallback="rank deficient")

        height, grad_u, grad_v = surface
        if abs(height) > cfg.search_radius:
            return LocalFit(index=i, point=origin, normal=normal, fallback="unstable height")

        projected = origin + height * normal
        surface_normal = normal - grad_u * u_axis - grad_v * v_axis
        surface_normal /= np.linalg.norm(surface_normal)

        return LocalFit(index=i, point=projected, normal=surface_normal, used_polynomial=True)

    def _tangent_frame(self, neighborhood: np.ndarray
                       ) -> Optional[Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]]:
        """
        Principal axes of a neighborhood.

        Returns:
            (centroid, normal, u_axis, v_axis), or None when the two largest
            principal variances do not span a plane
        """
        centroid = neighborhood.mean(axis=0)
        centered = neighborhood - centroid
        covariance = centered.T @ centered / len(neighborhood)

        # eigh returns eigenvalues in ascending order
        eigenvalues, eigenvectors = np.linalg.eigh(covariance)
        largest = eigenvalues[2]
        if largest <= np.finfo(np.float64).tiny or eigenvalues[1] <= self.config.rank_tolerance * largest:
            return None

        normal = eigenvectors[:, 0]
        u_axis = eigenvectors[:, 2]
        v_axis = np.cross(normal, u_axis)
        return centroid, normal, u_axis, v_axis

    def _fit_polynomial(self, neighborhood: np.ndarray, origin: np.ndarray,
                        normal: np.ndarray, u_axis: np.ndarray, v_axis: np.ndarray
                        ) -> Optional[Tuple[float, float, float]]:
        """
        Weighted least squares fit of heights above the tangent plane.

        Coordinates are scaled by the search radius to keep the design matrix
        well conditioned.

        Returns:
            (height at origin, dh/du, dh/dv), or None if the fit is rank deficient
        """
        radius = self.config.search_radius
        offsets = neighborhood - origin

        weights = np.exp(-np.einsum('ij,ij->i', offsets, offsets) / self.config.gauss_param)
        u = offsets @ u_axis / radius
        v = offsets @ v_axis / radius
        heights = offsets @ normal

        design = np.column_stack([u ** a * v ** b for a, b in self._exponents])
        sqrt_w = np.sqrt(weights)

        coefficients, _, rank, _ = np.linalg.lstsq(design * sqrt_w[:, None], heights * sqrt_w, rcond=None)
        if rank < len(self._exponents):
            return None

        return float(coefficients[0]), float(coefficients[1] / radius), float(coefficients[2] / radius)
