"""
Mesh Assembly
=============

Polygon sanitation and triangle emission.
"""

from .assembly import polygons_to_mesh, sanitize_polygons, polygon_to_triangles

__all__ = ['polygons_to_mesh', 'sanitize_polygons', 'polygon_to_triangles']
