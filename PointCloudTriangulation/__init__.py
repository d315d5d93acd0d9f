"""
Point Cloud Triangulation
=========================

Turns a noisy sampled point cloud into a triangle mesh:

    1. Moving least squares smoothing (polynomial or planar local fits)
    2. Convex hull surface reconstruction
    3. Polygon sanitation and triangle emission

Architecture:
    core/           - Point, cloud and mesh types, diagnostics, errors
    spatial/        - KD-tree neighborhood index
    smoothing/      - Moving least squares smoother
    reconstruction/ - Reconstruction strategies (convex hull)
    mesh/           - Polygons -> triangles
    io/             - Service messages and files

Example:
    >>> from PointCloudTriangulation import smooth, reconstruct
    >>>
    >>> smoothed = smooth(points, radius=0.05)
    >>> mesh = reconstruct(smoothed)
    >>> print(mesh.num_triangles)
"""

from .config import (
    SmoothingConfig,
    ReconstructionConfig,
    TriangulationConfig,
    create_config_from_preset,
    load_config,
    save_config,
    validate_config
)
from .core import (
    Point3D,
    PointCloud,
    SmoothedCloud,
    Polygon,
    Mesh,
    Diagnostics,
    InsufficientDataError,
    DegenerateFitWarning,
    DegenerateMeshWarning
)
from .pipeline import smooth, reconstruct, TriangulationPipeline, TriangulationResult
from .reconstruction import ReconstructionStrategy, ConvexHullReconstruction, create_strategy
from .service import TriangulationService

__version__ = "1.0.0"
__all__ = [
    # Core operations
    'smooth',
    'reconstruct',
    'TriangulationPipeline',
    'TriangulationResult',
    'TriangulationService',

    # Types
    'Point3D',
    'PointCloud',
    'SmoothedCloud',
    'Polygon',
    'Mesh',
    'Diagnostics',

    # Errors
    'InsufficientDataError',
    'DegenerateFitWarning',
    'DegenerateMeshWarning',

    # Reconstruction strategies
    'ReconstructionStrategy',
    'ConvexHullReconstruction',
    'create_strategy',

    # Configuration
    'SmoothingConfig',
    'ReconstructionConfig',
    'TriangulationConfig',
    'create_config_from_preset',
    'load_config',
    'save_config',
    'validate_config'
]
