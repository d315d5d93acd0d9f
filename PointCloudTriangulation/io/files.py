"""
Point cloud and mesh file IO.

Open3D handles PCD/PLY/XYZ point clouds and mesh export when it is
installed; trimesh covers PLY/OBJ/STL otherwise. Plain text clouds
(.xyz/.txt/.csv) and JSON messages need neither.
"""

import json
from pathlib import Path
from typing import Union

import numpy as np
import trimesh

from ..core.structures import Mesh, PointCloud
from ..logger import get_logger
from .messages import mesh_to_message, point_cloud_from_message, point_cloud_to_message

try:
    import open3d as o3d
    HAS_OPEN3D = True
except ImportError:
    HAS_OPEN3D = False

logger = get_logger("io")

TEXT_CLOUD_SUFFIXES = {'.xyz', '.txt', '.csv'}


def load_point_cloud(path: Union[str, Path]) -> PointCloud:
    """
    Load a point cloud from file.

    Args:
        path: .xyz/.txt/.csv (first 3 columns), .json (point-set message),
              or any format Open3D / trimesh can read (.pcd, .ply, ...)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format cannot be read
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Point cloud file not found: {path}")

    suffix = path.suffix.lower()

    if suffix in TEXT_CLOUD_SUFFIXES:
        delimiter = ',' if suffix == '.csv' else None
        points = np.loadtxt(path, delimiter=delimiter, usecols=(0, 1, 2), ndmin=2)
    elif suffix == '.json':
        with open(path, 'r') as f:
            return point_cloud_from_message(json.load(f))
    elif HAS_OPEN3D:
        pcd = o3d.io.read_point_cloud(str(path))
        points = np.asarray(pcd.points)
    elif suffix == '.pcd':
        raise ValueError("Reading .pcd files requires open3d (pip install open3d)")
    else:
        loaded = trimesh.load(str(path))
        if not hasattr(loaded, 'vertices'):
            raise ValueError(f"No point data found in {path}")
        points = np.asarray(loaded.vertices)

    cloud = PointCloud(points)
    logger.info(f"Loaded: {path.name} - {len(cloud):,} points")
    return cloud


def save_point_cloud(cloud, path: Union[str, Path]) -> None:
    """Save a point cloud (.json message, text, or any Open3D/trimesh format)"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    points = cloud.points if hasattr(cloud, 'points') else np.asarray(cloud)
    suffix = path.suffix.lower()

    if suffix == '.json':
        with open(path, 'w') as f:
            json.dump(point_cloud_to_message(PointCloud(points)), f)
    elif suffix in TEXT_CLOUD_SUFFIXES:
        np.savetxt(path, points, delimiter=',' if suffix == '.csv' else ' ')
    elif HAS_OPEN3D:
        pcd = o3d.geometry.PointCloud()
        pcd.points = o3d.utility.Vector3dVector(points)
        o3d.io.write_point_cloud(str(path), pcd)
    else:
        trimesh.PointCloud(points).export(str(path))

    logger.info(f"Saved: {path.name} ({len(points):,} points)")


def save_mesh(mesh: Mesh, path: Union[str, Path]) -> None:
    """Save a mesh (.json message, or PLY/OBJ/STL via Open3D or trimesh)"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() == '.json':
        with open(path, 'w') as f:
            json.dump(mesh_to_message(mesh), f)
    elif HAS_OPEN3D:
        o3d_mesh = o3d.geometry.TriangleMesh()
        o3d_mesh.vertices = o3d.utility.Vector3dVector(mesh.vertices)
        o3d_mesh.triangles = o3d.utility.Vector3iVector(mesh.triangles.astype(np.int32))
        o3d.io.write_triangle_mesh(str(path), o3d_mesh)
    else:
        mesh.to_trimesh().export(str(path))

    logger.info(f"Saved: {path.name} ({mesh.num_vertices:,} verts, {mesh.num_triangles:,} tris)")


def load_mesh(path: Union[str, Path]) -> Mesh:
    """Load a triangle mesh with trimesh (vertices are not merged)"""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Mesh file not found: {path}")

    loaded = trimesh.load(str(path), process=False, force='mesh')
    mesh = Mesh(vertices=np.asarray(loaded.vertices), triangles=np.asarray(loaded.faces))
    logger.info(f"Loaded: {path.name} - {mesh.num_vertices:,} verts, {mesh.num_triangles:,} tris")
    return mesh
