"""Tests for convex hull reconstruction and the strategy registry."""

import numpy as np
import pytest

from PointCloudTriangulation import (
    ConvexHullReconstruction,
    ReconstructionConfig,
    ReconstructionStrategy,
    create_strategy,
    reconstruct
)
from PointCloudTriangulation.reconstruction import (
    ReconstructionResult,
    available_strategies,
    create_from_config,
    factory,
    register_strategy
)


def outward_facing(vertices, triangles):
    """True when every triangle's winding normal points away from the vertex centroid"""
    center = vertices.mean(axis=0)
    a, b, c = vertices[triangles[:, 0]], vertices[triangles[:, 1]], vertices[triangles[:, 2]]
    normals = np.cross(b - a, c - a)
    return np.all(np.einsum('ij,ij->i', normals, (a + b + c) / 3 - center) > 0)


def canonical_triangles(triangles):
    """Triangles as a set of index triples rotated to start at their lowest index"""
    canonical = set()
    for triangle in triangles.tolist():
        start = triangle.index(min(triangle))
        canonical.add(tuple(triangle[start:] + triangle[:start]))
    return canonical


class TestDegenerateInput:
    """Inputs that cannot form a 3D hull give an empty result."""

    @pytest.mark.parametrize('count', [0, 1, 2, 3])
    def test_fewer_than_four_points(self, count):
        points = np.eye(3)[:count] if count else np.empty((0, 3))
        result = ConvexHullReconstruction().reconstruct(points)
        assert result.is_degenerate
        assert reconstruct(points).num_triangles == 0

    def test_collinear(self):
        points = np.column_stack([np.linspace(0, 1, 6), np.zeros(6), np.zeros(6)])
        result = ConvexHullReconstruction().reconstruct(points)
        assert result.is_degenerate
        assert 'collinear' in result.degenerate_reason

    def test_coincident(self):
        result = ConvexHullReconstruction().reconstruct(np.ones((5, 3)))
        assert result.is_degenerate

    def test_empty_mesh_records_degenerate_input(self):
        mesh = reconstruct(np.ones((5, 3)))
        assert mesh.is_empty
        assert mesh.num_vertices == 0
        assert mesh.diagnostics.counters['degenerate_inputs'] == 1


class TestCoplanarInput:
    """Flat clouds are triangulated through their 2D hull."""

    @pytest.fixture
    def pentagon(self):
        angles = 2 * np.pi * np.arange(5) / 5
        ring = np.column_stack([np.cos(angles), np.sin(angles), np.zeros(5)])
        # Interior point at index 2 is not a hull vertex
        return np.insert(ring, 2, [0.1, 0.1, 0.0], axis=0)

    def test_fan_over_hull_vertices(self, pentagon):
        result = ConvexHullReconstruction().reconstruct(pentagon)
        assert result.metadata['planar']
        assert len(result.vertices) == 5
        assert len(result.polygons) == 3
        assert all(polygon.vertices[0] == 0 for polygon in result.polygons)

    def test_mesh_indices_valid(self, pentagon):
        mesh = reconstruct(pentagon)
        assert mesh.num_triangles == 3
        assert mesh.triangles.max() < mesh.num_vertices
        assert not np.any(np.all(mesh.vertices == [0.1, 0.1, 0.0], axis=1))

    def test_tilted_plane(self, rng):
        uv = rng.uniform(size=(30, 2))
        points = np.column_stack([uv[:, 0], uv[:, 1], 0.5 * uv[:, 0] + 0.2 * uv[:, 1]])
        mesh = reconstruct(points)
        assert mesh.num_triangles == mesh.num_vertices - 2


class TestConvexHull:
    """Hulls of clouds with 3D extent."""

    def test_tetrahedron(self, tetrahedron):
        result = ConvexHullReconstruction().reconstruct(tetrahedron)
        assert not result.is_degenerate
        assert len(result.vertices) == 4
        assert len(result.polygons) == 4
        assert result.metadata['volume'] == pytest.approx(1.0 / 6.0)

    def test_interior_points_excluded(self, tetrahedron):
        points = np.vstack([tetrahedron, [0.1, 0.1, 0.1]])
        mesh = reconstruct(points)
        assert mesh.num_vertices == 4
        np.testing.assert_array_equal(mesh.vertices, tetrahedron)

    def test_vertices_in_input_order(self, tetrahedron):
        points = np.vstack([[0.1, 0.1, 0.1], tetrahedron[::-1]])
        mesh = reconstruct(points)
        np.testing.assert_array_equal(mesh.vertices, tetrahedron[::-1])

    def test_outward_orientation(self, sphere_points):
        mesh = reconstruct(sphere_points)
        assert outward_facing(mesh.vertices, mesh.triangles)

    def test_closed_surface(self, sphere_points):
        mesh = reconstruct(sphere_points)
        assert mesh.num_triangles == 2 * mesh.num_vertices - 4
        assert mesh.to_trimesh().is_watertight

    def test_deterministic(self, sphere_points):
        assert reconstruct(sphere_points) == reconstruct(sphere_points)

    def test_reconstructing_hull_is_stable(self, sphere_points):
        first = reconstruct(sphere_points)
        second = reconstruct(first.vertices)
        np.testing.assert_array_equal(first.vertices, second.vertices)
        assert canonical_triangles(first.triangles) == canonical_triangles(second.triangles)


class TestCoplanarFacets:
    """Merging coplanar facets and the truncate/fan rule."""

    def test_cube_default_triangulation(self, cube):
        mesh = reconstruct(cube)
        assert mesh.num_triangles == 12

    def test_merged_faces_are_quads(self, cube):
        result = ConvexHullReconstruction(merge_coplanar_facets=True).reconstruct(cube)
        assert len(result.polygons) == 6
        assert all(len(polygon) == 4 for polygon in result.polygons)

    def test_merged_faces_truncated(self, cube):
        mesh = reconstruct(cube, config=ReconstructionConfig(merge_coplanar_facets=True))
        assert mesh.num_triangles == 6
        assert mesh.diagnostics.counters['truncated_polygons'] == 6

    def test_merged_faces_fanned(self, cube):
        config = ReconstructionConfig(merge_coplanar_facets=True, fan_polygons=True)
        mesh = reconstruct(cube, config=config)
        assert mesh.num_triangles == 12
        assert outward_facing(mesh.vertices, mesh.triangles)
        assert mesh.to_trimesh().is_watertight

    def test_bent_facets_do_not_chain(self):
        # 200-sided prism: neighboring sides are within tolerance, distant ones are not
        angles = 2 * np.pi * np.arange(200) / 200
        ring = np.column_stack([np.cos(angles), np.sin(angles)])
        points = np.vstack([np.column_stack([ring, np.zeros(200)]), np.column_stack([ring, np.ones(200)])])

        result = ConvexHullReconstruction(coplanar_tolerance=1e-3, merge_coplanar_facets=True).reconstruct(points)

        assert len(result.polygons) > 3
        for polygon in result.polygons:
            face = result.vertices[list(polygon.vertices)]
            centered = face - face.mean(axis=0)
            normal = np.linalg.svd(centered)[2][-1]
            assert np.abs(centered @ normal).max() < 0.01


class BrokenStrategy(ReconstructionStrategy):
    """Emits malformed polygons on purpose."""

    name = "broken"

    def reconstruct(self, points):
        return ReconstructionResult(
            vertices=np.asarray(points)[:4],
            polygons=[(0, 1), (0, 1, 2), (0, 1, 9), (0, 1, 2, 3)]
        )


class TestStrategies:
    """Strategy registry and custom strategies."""

    def test_convex_hull_registered(self):
        assert 'convex_hull' in available_strategies()
        assert isinstance(create_strategy('convex_hull'), ConvexHullReconstruction)

    def test_unknown_strategy_raises(self):
        with pytest.raises(ValueError):
            create_strategy('poisson')

    def test_register_requires_strategy_class(self):
        with pytest.raises(TypeError):
            register_strategy('bad', object)

    def test_register_and_create(self, monkeypatch):
        monkeypatch.setattr(factory, '_STRATEGIES', dict(factory._STRATEGIES))
        register_strategy(BrokenStrategy.name, BrokenStrategy)
        assert isinstance(create_from_config(ReconstructionConfig(strategy='broken')), BrokenStrategy)

    def test_create_from_config_passes_options(self):
        strategy = create_from_config(ReconstructionConfig(coplanar_tolerance=1e-3, merge_coplanar_facets=True))
        assert strategy.coplanar_tolerance == 1e-3
        assert strategy.merge_coplanar_facets

    def test_custom_strategy_polygons_sanitized(self, tetrahedron):
        mesh = reconstruct(tetrahedron, strategy=BrokenStrategy())
        assert mesh.diagnostics.dropped_polygons == 2
        assert mesh.triangles.tolist() == [[0, 1, 2], [0, 1, 2]]

    def test_custom_strategy_fanned(self, tetrahedron):
        mesh = reconstruct(tetrahedron, config=ReconstructionConfig(fan_polygons=True),
                           strategy=BrokenStrategy())
        assert mesh.triangles.tolist() == [[0, 1, 2], [0, 1, 2], [0, 2, 3]]
