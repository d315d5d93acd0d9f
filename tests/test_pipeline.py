"""End-to-end tests: smoothing followed by reconstruction."""

import numpy as np
import pytest

from PointCloudTriangulation import (
    InsufficientDataError,
    PointCloud,
    SmoothingConfig,
    TriangulationConfig,
    TriangulationPipeline,
    create_config_from_preset,
    reconstruct,
    smooth
)


class TestNearlyCoplanarSquare:
    """Four noisy corners of a unit square."""

    def test_default_radius_drops_everything(self, noisy_square):
        smoothed = smooth(noisy_square)
        assert len(smoothed) <= 4
        mesh = reconstruct(smoothed)
        assert mesh.num_triangles == 0

    def test_large_radius_gives_two_triangles(self, noisy_square):
        smoothed = smooth(noisy_square, radius=2.0)
        assert len(smoothed) == 4
        assert np.all(np.abs(smoothed.points[:, 2]) <= 0.0025)

        mesh = reconstruct(smoothed)
        assert mesh.num_triangles == 2
        assert mesh.num_vertices == 4
        assert mesh.triangles.max() < mesh.num_vertices

    def test_reproducible(self, noisy_square):
        first = reconstruct(smooth(noisy_square, radius=2.0))
        second = reconstruct(smooth(noisy_square, radius=2.0))
        assert first == second


class TestNoisySphere:
    """200 noisy samples of the unit sphere."""

    def test_smoothing_keeps_most_points(self, sphere_points):
        smoothed = smooth(sphere_points, radius=0.5)
        assert 0.9 * len(sphere_points) <= len(smoothed) <= len(sphere_points)

    def test_closed_mesh_close_to_sphere(self, sphere_points):
        mesh = reconstruct(smooth(sphere_points, radius=0.5))
        assert mesh.num_triangles > 0
        assert mesh.to_trimesh().is_watertight

        mean_distance = np.linalg.norm(mesh.vertices, axis=1).mean()
        assert 0.95 <= mean_distance <= 1.05

    def test_pipeline_run(self, sphere_points, sphere_config):
        result = TriangulationPipeline(sphere_config).run(PointCloud(sphere_points))

        assert result.statistics['input_points'] == 200
        assert result.statistics['smoothed_points'] == len(result.smoothed)
        assert result.statistics['triangles'] == result.mesh.num_triangles
        assert set(result.statistics['processing_time']) == {'smoothing', 'reconstruction'}
        assert result.diagnostics.counters['input_points'] == 200
        result.mesh.validate()


class TestThreePoints:
    """Too few points for a hull."""

    def test_empty_mesh(self):
        points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        smoothed = smooth(points)
        assert len(smoothed) <= 3
        assert reconstruct(smoothed).num_triangles == 0
        assert reconstruct(points).num_triangles == 0


class TestPipeline:
    """Pipeline orchestration."""

    def test_empty_cloud_raises(self):
        with pytest.raises(InsufficientDataError):
            TriangulationPipeline().run(PointCloud())

    def test_dropped_points_reported(self, flat_grid):
        points = np.vstack([flat_grid, [[5.0, 5.0, 5.0]]])
        config = TriangulationConfig(smoothing=SmoothingConfig(search_radius=0.25))
        result = TriangulationPipeline(config).run(points)
        assert result.statistics['dropped_points'] == 1
        assert result.diagnostics.dropped_points == 1
        assert result.mesh.num_triangles > 0

    def test_faceted_preset(self, sphere_points):
        config = create_config_from_preset('faceted', smoothing={'search_radius': 0.5})
        result = TriangulationPipeline(config).run(sphere_points)
        assert result.mesh.num_triangles > 0
        assert result.mesh.to_trimesh().is_watertight

    def test_every_triangle_index_in_range(self, rng):
        points = rng.normal(size=(120, 3))
        config = TriangulationConfig(smoothing=SmoothingConfig(search_radius=1.0))
        mesh = TriangulationPipeline(config).run(points).mesh
        assert mesh.num_triangles > 0
        assert mesh.triangles.min() >= 0
        assert mesh.triangles.max() < mesh.num_vertices
