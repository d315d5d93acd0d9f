"""
Error taxonomy for the triangulation core.

Only InsufficientDataError is ever raised. The two warning classes are
instantiated and recorded on a Diagnostics object; the offending point or
polygon is dropped and processing continues.
"""


class InsufficientDataError(ValueError):
    """Raised when the smoother receives an empty point cloud."""


class DegenerateFitWarning(UserWarning):
    """A point's neighborhood could not support a stable local surface fit."""

    def __init__(self, point_index: int, reason: str):
        super().__init__(f"point {point_index}: {reason}")
        self.point_index = point_index
        self.reason = reason


class DegenerateMeshWarning(UserWarning):
    """A reconstructed polygon was malformed and dropped from the mesh."""

    def __init__(self, polygon_index: int, reason: str):
        super().__init__(f"polygon {polygon_index}: {reason}")
        self.polygon_index = polygon_index
        self.reason = reason
