"""
Core Data Structures
====================

Point, cloud and mesh types passed between the smoother, the reconstructor
and the service shell. Coordinates are always stored as (N, 3) float64 arrays.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import trimesh

from .diagnostics import Diagnostics


@dataclass(frozen=True)
class Point3D:
    """A single sampled point. No identity beyond its position."""
    x: float
    y: float
    z: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


def as_point_array(points) -> np.ndarray:
    """
    Normalize points to a float64 array of shape (N, 3).

    Accepts (N, 3) or (3, N) arrays, nested lists and sequences of Point3D.
    A (3, 3) array is read as three points.
    """
    if isinstance(points, PointCloud):
        return points.points.copy()

    if isinstance(points, np.ndarray):
        array = np.asarray(points, dtype=np.float64)
    else:
        points = list(points)
        if points and isinstance(points[0], Point3D):
            array = np.array([[p.x, p.y, p.z] for p in points], dtype=np.float64)
        else:
            array = np.asarray(points, dtype=np.float64)

    if array.size == 0:
        return np.empty((0, 3), dtype=np.float64)

    # Transposed layout used by the reconstruction code (3, N)
    if array.ndim == 2 and array.shape[0] == 3 and array.shape[1] != 3:
        array = array.T

    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError(f"Expected points of shape (N, 3), got {array.shape}")

    if not np.all(np.isfinite(array)):
        raise ValueError("Point coordinates must be finite")

    return np.ascontiguousarray(array)


class PointCloud:
    """
    Ordered sequence of 3D points.

    Order carries no meaning for reconstruction but is preserved so that
    input index i corresponds to neighborhood query i during smoothing.
    Duplicate points are allowed.
    """

    def __init__(self, points: Union[np.ndarray, Sequence, None] = None):
        if points is None:
            points = np.empty((0, 3), dtype=np.float64)
        self._points = as_point_array(points)
        self._points.setflags(write=False)

    @classmethod
    def from_points(cls, points: Iterable[Point3D]) -> 'PointCloud':
        return cls(list(points))

    @property
    def points(self) -> np.ndarray:
        """Read-only (N, 3) coordinate array"""
        return self._points

    @property
    def is_empty(self) -> bool:
        return len(self._points) == 0

    def to_points(self) -> List[Point3D]:
        return [Point3D(float(x), float(y), float(z)) for x, y, z in self._points]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point3D]:
        return iter(self.to_points())

    def __getitem__(self, index: int) -> Point3D:
        x, y, z = self._points[index]
        return Point3D(float(x), float(y), float(z))

    def __repr__(self) -> str:
        return f"PointCloud(n={len(self)})"


@dataclass(eq=False)
class SmoothedCloud:
    """
    Output of the surface smoother.

    Attributes:
        points: Smoothed positions (M, 3), M <= input size
        normals: Unit surface normals (M, 3), or None when not computed
        source_indices: Input index each smoothed point was computed from (M,)
        diagnostics: Dropped points and fit statistics
    """
    points: np.ndarray
    normals: Optional[np.ndarray] = None
    source_indices: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int64))
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def __post_init__(self):
        self.points = as_point_array(self.points)
        if self.normals is not None:
            self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)
            if len(self.normals) != len(self.points):
                raise ValueError("normals must have one row per smoothed point")
        self.source_indices = np.asarray(self.source_indices, dtype=np.int64).reshape(-1)
        if len(self.source_indices) == 0 and len(self.points) > 0:
            self.source_indices = np.arange(len(self.points), dtype=np.int64)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def has_normals(self) -> bool:
        return self.normals is not None


@dataclass(frozen=True)
class Polygon:
    """Closed loop of vertex indices into a reconstruction output cloud."""
    vertices: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.vertices)

    def __iter__(self) -> Iterator[int]:
        return iter(self.vertices)


@dataclass(eq=False)
class Mesh:
    """
    Triangulated surface.

    Vertices own their positions; triangles are (T, 3) index triples into
    ``vertices`` and carry no ownership over vertex data.
    """
    vertices: np.ndarray
    triangles: np.ndarray
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def __post_init__(self):
        self.vertices = as_point_array(self.vertices)
        triangles = np.asarray(self.triangles, dtype=np.int64)
        self.triangles = triangles.reshape(-1, 3) if triangles.size else np.empty((0, 3), dtype=np.int64)

    @classmethod
    def empty(cls, diagnostics: Optional[Diagnostics] = None) -> 'Mesh':
        return cls(
            vertices=np.empty((0, 3), dtype=np.float64),
            triangles=np.empty((0, 3), dtype=np.int64),
            diagnostics=diagnostics if diagnostics is not None else Diagnostics()
        )

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_triangles(self) -> int:
        return len(self.triangles)

    @property
    def is_empty(self) -> bool:
        return self.num_triangles == 0

    def validate(self):
        """
        Check structural validity.

        Raises:
            ValueError: If any triangle references an index outside the vertex cloud
        """
        if self.num_triangles == 0:
            return
        if self.triangles.min() < 0 or self.triangles.max() >= self.num_vertices:
            raise ValueError(
                f"Triangle indices must lie in [0, {self.num_vertices}), "
                f"got range [{self.triangles.min()}, {self.triangles.max()}]"
            )

    def to_trimesh(self):
        """Convert to a trimesh.Trimesh (vertices are not merged or reordered)"""
        return trimesh.Trimesh(vertices=self.vertices, faces=self.triangles, process=False)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Mesh):
            return NotImplemented
        return (np.array_equal(self.vertices, other.vertices)
                and np.array_equal(self.triangles, other.triangles))

    def __repr__(self) -> str:
        return f"Mesh(vertices={self.num_vertices}, triangles={self.num_triangles})"
