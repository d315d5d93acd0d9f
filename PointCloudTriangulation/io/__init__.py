"""
Input / Output
==============

messages.py - Service message dicts <-> core types
files.py    - Point cloud and mesh files (open3d / trimesh)
"""

from .messages import (
    point_from_message,
    point_to_message,
    point_cloud_from_message,
    point_cloud_to_message,
    mesh_to_message,
    mesh_from_message
)
from .files import load_point_cloud, save_point_cloud, save_mesh, load_mesh, HAS_OPEN3D

__all__ = [
    # Messages
    'point_from_message',
    'point_to_message',
    'point_cloud_from_message',
    'point_cloud_to_message',
    'mesh_to_message',
    'mesh_from_message',

    # Files
    'load_point_cloud',
    'save_point_cloud',
    'save_mesh',
    'load_mesh',
    'HAS_OPEN3D'
]
