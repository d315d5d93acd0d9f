"""
Core Types
==========

Data structures, diagnostics and the error taxonomy shared by every stage.
"""

from .structures import Point3D, PointCloud, SmoothedCloud, Polygon, Mesh, as_point_array
from .diagnostics import Diagnostics
from .exceptions import InsufficientDataError, DegenerateFitWarning, DegenerateMeshWarning

__all__ = [
    # Structures
    'Point3D',
    'PointCloud',
    'SmoothedCloud',
    'Polygon',
    'Mesh',
    'as_point_array',

    # Diagnostics and errors
    'Diagnostics',
    'InsufficientDataError',
    'DegenerateFitWarning',
    'DegenerateMeshWarning',
]
