"""
Triangulation Pipeline
======================

The two core operations and the orchestrator chaining them:

    raw points -> smooth() -> smoothed points -> reconstruct() -> mesh

Both operations are pure functions: every call builds its own spatial index
and buffers, so concurrent calls share no mutable state.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .config import ReconstructionConfig, SmoothingConfig, TriangulationConfig
from .core.diagnostics import Diagnostics
from .core.exceptions import InsufficientDataError
from .core.structures import Mesh, PointCloud, SmoothedCloud, as_point_array
from .logger import ROOT_LOGGER_NAME, get_logger, setup_logger
from .mesh import polygons_to_mesh
from .reconstruction import ReconstructionStrategy, create_from_config
from .smoothing import MovingLeastSquares

logger = get_logger("pipeline")


def smooth(cloud,
           radius: Optional[float] = None,
           use_polynomial_fit: Optional[bool] = None,
           config: Optional[SmoothingConfig] = None) -> SmoothedCloud:
    """
    Smooth a raw point cloud with moving least squares.

    Args:
        cloud: PointCloud or (N, 3) array
        radius: Neighborhood search radius (default 0.03, or config.search_radius)
        use_polynomial_fit: Polynomial (True) or planar (False) local fit
            (default True, or config.polynomial_fit)
        config: Remaining smoothing settings

    Returns:
        SmoothedCloud with at most N points

    Raises:
        InsufficientDataError: If the cloud is empty
    """
    config = config or SmoothingConfig()
    overrides = {}
    if radius is not None:
        overrides['search_radius'] = float(radius)
    if use_polynomial_fit is not None:
        overrides['polynomial_fit'] = bool(use_polynomial_fit)
    if overrides:
        config = replace(config, **overrides)

    points = cloud.points if isinstance(cloud, PointCloud) else as_point_array(cloud)
    if len(points) == 0:
        raise InsufficientDataError("Point cloud is empty; nothing to triangulate")

    return MovingLeastSquares(config).process(points)


def reconstruct(cloud,
                config: Optional[ReconstructionConfig] = None,
                strategy: Optional[ReconstructionStrategy] = None) -> Mesh:
    """
    Triangulate a smoothed cloud.

    Never raises on degenerate input: fewer than 4 points, or points without
    3D extent, give an empty mesh.

    Args:
        cloud: SmoothedCloud, PointCloud or (M, 3) array
        config: Reconstruction settings
        strategy: Strategy instance; defaults to the one named in ``config``

    Returns:
        Mesh whose triangles index its own vertices
    """
    config = config or ReconstructionConfig()
    strategy = strategy or create_from_config(config)

    if isinstance(cloud, (SmoothedCloud, PointCloud)):
        points = cloud.points
    else:
        points = as_point_array(cloud)

    diagnostics = Diagnostics()
    result = strategy.reconstruct(points)

    if result.is_degenerate:
        diagnostics.increment('degenerate_inputs')
        logger.info(f"Degenerate input ({result.degenerate_reason}); returning empty mesh")
        return Mesh.empty(diagnostics)

    mesh = polygons_to_mesh(
        result.vertices,
        result.polygons,
        fan_polygons=config.fan_polygons,
        diagnostics=diagnostics
    )
    mesh.validate()
    return mesh


@dataclass
class TriangulationResult:
    """
    Output of one pipeline run.

    Attributes:
        smoothed: Smoother output
        mesh: Reconstructed mesh
        statistics: Counts and per-stage timings
        diagnostics: Smoothing and reconstruction diagnostics combined
    """
    smoothed: SmoothedCloud
    mesh: Mesh
    statistics: Dict[str, Any] = field(default_factory=dict)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


class TriangulationPipeline:
    """
    Smoothing followed by reconstruction.

    The pipeline only holds its immutable configuration, so one instance can
    serve concurrent requests.
    """

    def __init__(self, config: Optional[TriangulationConfig] = None,
                 strategy: Optional[ReconstructionStrategy] = None):
        """
        Initialize triangulation pipeline.

        Args:
            config: Configuration object. If None, uses defaults.
            strategy: Reconstruction strategy overriding config.reconstruction.strategy
        """
        self.config = config or TriangulationConfig()
        self.strategy = strategy or create_from_config(self.config.reconstruction)
        self.logger = self._setup_logger()

        self.logger.info(
            f"Triangulation pipeline initialized: radius={self.config.smoothing.search_radius}, "
            f"polynomial_fit={self.config.smoothing.polynomial_fit}, strategy={self.strategy.name}"
        )

    def _setup_logger(self):
        """Attach handlers to the package logger unless the host already did"""
        setup_logger(
            ROOT_LOGGER_NAME,
            level="DEBUG" if self.config.verbose else "INFO",
            log_file=self.config.log_file
        )
        return logger

    def run(self, cloud) -> TriangulationResult:
        """
        Run smoothing and reconstruction on one point cloud.

        Raises:
            InsufficientDataError: If the cloud is empty
        """
        start_time = time.time()
        statistics = {'processing_time': {}}

        points = cloud.points if isinstance(cloud, PointCloud) else as_point_array(cloud)
        statistics['input_points'] = len(points)

        # Stage 1: smoothing
        self.logger.info("--- Stage 1: Surface Smoothing ---")
        stage_start = time.time()
        smoothed = smooth(points, config=self.config.smoothing)
        statistics['processing_time']['smoothing'] = time.time() - stage_start
        statistics['smoothed_points'] = len(smoothed)
        statistics['dropped_points'] = smoothed.diagnostics.dropped_points

        # Stage 2: reconstruction
        self.logger.info("--- Stage 2: Mesh Reconstruction ---")
        stage_start = time.time()
        mesh = reconstruct(smoothed, config=self.config.reconstruction, strategy=self.strategy)
        statistics['processing_time']['reconstruction'] = time.time() - stage_start
        statistics['vertices'] = mesh.num_vertices
        statistics['triangles'] = mesh.num_triangles
        statistics['dropped_polygons'] = mesh.diagnostics.dropped_polygons

        statistics['total_time'] = time.time() - start_time

        diagnostics = smoothed.diagnostics.merge(mesh.diagnostics)
        if not diagnostics.is_clean:
            self.logger.warning(
                f"Dropped {diagnostics.dropped_points} points and "
                f"{diagnostics.dropped_polygons} polygons"
            )

        self.logger.info(
            f"✓ Triangulation done: {statistics['input_points']} points -> "
            f"{mesh.num_vertices} vertices, {mesh.num_triangles} triangles "
            f"in {statistics['total_time']:.2f}s"
        )

        return TriangulationResult(
            smoothed=smoothed,
            mesh=mesh,
            statistics=statistics,
            diagnostics=diagnostics
        )

