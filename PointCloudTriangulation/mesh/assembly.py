"""
Mesh Assembly
=============

Turns reconstructed polygons into mesh triangles. Malformed polygons are
dropped with a DegenerateMeshWarning; every surviving polygon has at least 3
in-range indices. By default only the first 3 indices of each polygon are
kept; with ``fan_polygons`` an n-gon becomes n - 2 fan triangles.
"""

from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..core.diagnostics import Diagnostics
from ..core.exceptions import DegenerateMeshWarning
from ..core.structures import Mesh, Polygon, as_point_array
from ..logger import get_logger

logger = get_logger("mesh")


def sanitize_polygons(polygons: Iterable, num_vertices: int,
                      diagnostics: Diagnostics) -> List[Polygon]:
    """
    Drop polygons that cannot become triangles.

    Args:
        polygons: Polygon objects or plain index sequences
        num_vertices: Size of the vertex cloud the indices refer to
        diagnostics: Receives one DegenerateMeshWarning per dropped polygon

    Returns:
        Polygons with >= 3 indices, all in [0, num_vertices)
    """
    valid = []
    for k, polygon in enumerate(polygons):
        vertices = tuple(int(v) for v in polygon)

        if len(vertices) < 3:
            diagnostics.add_warning(
                DegenerateMeshWarning(k, f"only {len(vertices)} vertices")
            )
            continue

        if min(vertices) < 0 or max(vertices) >= num_vertices:
            diagnostics.add_warning(
                DegenerateMeshWarning(k, f"vertex index outside [0, {num_vertices})")
            )
            continue

        valid.append(Polygon(vertices))
    return valid


def polygon_to_triangles(polygon: Sequence[int], fan: bool = False) -> List[tuple]:
    """
    Triangles for one polygon of at least 3 vertices.

    Without ``fan`` this is the single triangle of the first 3 indices.
    """
    vertices = tuple(polygon)
    if not fan:
        return [vertices[:3]]
    return [(vertices[0], vertices[k], vertices[k + 1]) for k in range(1, len(vertices) - 1)]


def polygons_to_mesh(vertices, polygons: Iterable, fan_polygons: bool = False,
                     diagnostics: Optional[Diagnostics] = None) -> Mesh:
    """
    Build a mesh from a vertex cloud and polygons indexing it.

    Args:
        vertices: (V, 3) vertex positions
        polygons: Polygons (or index sequences) into ``vertices``
        fan_polygons: Fan n-gons instead of truncating them to 3 indices
        diagnostics: Record to append warnings to; a new one is created if None

    Returns:
        Mesh whose triangles all index ``vertices``
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    vertices = as_point_array(vertices)
    polygons = list(polygons)

    logger.info(f"Found {len(polygons)} polygons")

    dropped_before = diagnostics.dropped_polygons
    valid = sanitize_polygons(polygons, len(vertices), diagnostics)
    dropped = diagnostics.dropped_polygons - dropped_before
    if dropped:
        logger.warning(f"Not enough points in {dropped} polygons. Ignoring them.")

    triangles = []
    truncated = 0
    for polygon in valid:
        if len(polygon) > 3 and not fan_polygons:
            truncated += 1
        triangles.extend(polygon_to_triangles(polygon.vertices, fan=fan_polygons))

    if truncated:
        diagnostics.increment('truncated_polygons', truncated)
        logger.debug(f"{truncated} polygons with more than 3 vertices truncated to triangles")

    triangle_array = np.array(triangles, dtype=np.int64).reshape(-1, 3)

    if len(triangle_array) == 0:
        # Unreferenced vertices are not part of an empty mesh
        return Mesh.empty(diagnostics)

    return Mesh(vertices=vertices, triangles=triangle_array, diagnostics=diagnostics)
