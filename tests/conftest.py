"""Shared fixtures: small synthetic point clouds with fixed seeds."""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from PointCloudTriangulation import SmoothingConfig, TriangulationConfig


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def sphere_points(rng):
    """200 points on the unit sphere with Gaussian noise (sigma = 0.01)."""
    directions = rng.normal(size=(200, 3))
    directions /= np.linalg.norm(directions, axis=1, keepdims=True)
    return directions + rng.normal(scale=0.01, size=(200, 3))


@pytest.fixture
def noisy_square():
    """Unit square corners at z ~ 0 with small fixed noise."""
    return np.array([
        [0.0, 0.0, 0.001],
        [1.0, 0.0, -0.0005],
        [1.0, 1.0, 0.0008],
        [0.0, 1.0, -0.001],
    ])


@pytest.fixture
def flat_grid():
    """11 x 11 grid with 0.1 spacing on the z = 0 plane."""
    xs, ys = np.meshgrid(np.linspace(0.0, 1.0, 11), np.linspace(0.0, 1.0, 11))
    return np.column_stack([xs.ravel(), ys.ravel(), np.zeros(xs.size)])


@pytest.fixture
def tetrahedron():
    return np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ])


@pytest.fixture
def cube():
    return np.array([[x, y, z] for x in (0.0, 1.0) for y in (0.0, 1.0) for z in (0.0, 1.0)])


@pytest.fixture
def sphere_config():
    """Pipeline settings with a radius suited to the 200 point sphere."""
    return TriangulationConfig(smoothing=SmoothingConfig(search_radius=0.5))
