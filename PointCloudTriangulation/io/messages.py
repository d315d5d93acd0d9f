"""
Message Conversion
==================

Conversion between the service's external message layouts and the core
types. Layouts follow the ROS messages the triangulation service was
designed around:

    point set (sensor_msgs/PointCloud):
        {'header': {'frame_id': ...}, 'points': [{'x':..,'y':..,'z':..}, ...], 'channels': [...]}
    mesh (shape_msgs/Mesh):
        {'vertices': [{'x':..,'y':..,'z':..}, ...], 'triangles': [{'vertex_indices': [a, b, c]}, ...]}

A flat point list {'points': [[x, y, z], ...]} is accepted on input too.
"""

from typing import Any, Dict, List, Mapping

import numpy as np

from ..core.structures import Mesh, Point3D, PointCloud


def point_from_message(message: Any) -> Point3D:
    """
    Read a geometry_msgs/Point style mapping or an [x, y, z] sequence.

    Raises:
        ValueError: If a coordinate is missing or not a number
    """
    if isinstance(message, Mapping):
        try:
            return Point3D(float(message['x']), float(message['y']), float(message['z']))
        except KeyError as e:
            raise ValueError(f"Point message is missing coordinate {e}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"Point message has a non-numeric coordinate: {e}") from e

    try:
        values = list(message)
    except TypeError as e:
        raise ValueError(f"Point must be a mapping or a sequence, got {type(message).__name__}") from e
    if len(values) != 3:
        raise ValueError(f"Point must have 3 coordinates, got {len(values)}")
    try:
        return Point3D(float(values[0]), float(values[1]), float(values[2]))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Point has a non-numeric coordinate: {e}") from e


def point_to_message(point) -> Dict[str, float]:
    x, y, z = point
    return {'x': float(x), 'y': float(y), 'z': float(z)}


def point_cloud_from_message(message: Mapping) -> PointCloud:
    """
    Convert an incoming point-set message to a PointCloud.

    Raises:
        ValueError: If the message has no 'points' list or a point is malformed
    """
    if not isinstance(message, Mapping) or 'points' not in message:
        raise ValueError("Point cloud message must contain a 'points' list")

    points = message['points']
    if isinstance(points, np.ndarray):
        return PointCloud(points)

    return PointCloud.from_points(point_from_message(p) for p in points)


def point_cloud_to_message(cloud, frame_id: str = "") -> Dict[str, Any]:
    points = cloud.points if hasattr(cloud, 'points') else np.asarray(cloud)
    return {
        'header': {'frame_id': frame_id},
        'points': [point_to_message(p) for p in points],
        'channels': []
    }


def mesh_to_message(mesh: Mesh) -> Dict[str, List]:
    """Convert a Mesh to the outgoing mesh layout (vertex positions + index triples)"""
    return {
        'vertices': [point_to_message(v) for v in mesh.vertices],
        'triangles': [
            {'vertex_indices': [int(a), int(b), int(c)]}
            for a, b, c in mesh.triangles
        ]
    }


def mesh_from_message(message: Mapping) -> Mesh:
    """
    Convert a mesh message back to a Mesh.

    Raises:
        ValueError: If a triangle does not carry exactly 3 indices
    """
    vertices = [point_from_message(v) for v in message.get('vertices', [])]
    triangles = []
    for triangle in message.get('triangles', []):
        indices = triangle['vertex_indices'] if isinstance(triangle, Mapping) else triangle
        if len(indices) != 3:
            raise ValueError(f"Mesh triangle must have 3 vertex indices, got {len(indices)}")
        triangles.append([int(i) for i in indices])

    mesh = Mesh(
        vertices=np.array([v.as_array() for v in vertices]).reshape(-1, 3),
        triangles=np.array(triangles, dtype=np.int64).reshape(-1, 3)
    )
    mesh.validate()
    return mesh
