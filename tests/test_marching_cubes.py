"""
Tests for marching-cubes tables and surface extraction.
"""

import sys
import os

# Add the parent directory to path for importing tessmesh
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np
import pytest

from tessmesh.demo import block_volume, isolated_voxel_volume, sphere_volume, torus_volume
from tessmesh.marching import cube_configurations, marching_cubes
from tessmesh.mc_tables import CORNER_OFFSETS, EDGE_CORNERS, EDGE_TABLE, TRI_TABLE
from tessmesh.mesh import Mesh
from tessmesh.voxels import VoxelVolume


def _all_valid(m):
    return m.basic_validity() and m.manifold_validity() and m.connection_validity()


def _outward_fraction(m, center):
    radial = m.verts - np.asarray(center, dtype=float)
    return float(np.mean(np.einsum("ij,ij->i", m.norms, radial) > 0.0))


class TestTables:
    def test_shapes(self):
        assert len(EDGE_TABLE) == 256
        assert TRI_TABLE.shape == (256, 16)
        assert CORNER_OFFSETS.shape == (8, 3)
        assert len(EDGE_CORNERS) == 12

    def test_edges_join_adjacent_corners(self):
        for a, b in EDGE_CORNERS:
            assert np.abs(CORNER_OFFSETS[a] - CORNER_OFFSETS[b]).sum() == 1

    def test_triangle_edges_match_edge_mask(self):
        for code in range(256):
            row = [int(e) for e in TRI_TABLE[code] if e >= 0]
            assert len(row) % 3 == 0
            mask = 0
            for e in row:
                mask |= 1 << e
            assert mask == EDGE_TABLE[code]

    def test_crossed_edges_have_mixed_corners(self):
        for code in range(256):
            for e, (a, b) in enumerate(EDGE_CORNERS):
                crossed = bool(EDGE_TABLE[code] & (1 << e))
                assert crossed == (bool(code & (1 << a)) != bool(code & (1 << b)))

    def test_trivial_configurations(self):
        assert EDGE_TABLE[0] == 0
        assert EDGE_TABLE[255] == 0
        assert np.all(TRI_TABLE[0] == -1)
        assert np.all(TRI_TABLE[255] == -1)


class TestConfigurations:
    def test_isolated_voxel(self):
        inside = np.zeros((3, 3, 3), dtype=bool)
        inside[1, 1, 1] = True
        cfg = cube_configurations(inside)
        assert cfg.shape == (2, 2, 2)
        # The inside point is a different corner of each of the 8 cubes
        assert sorted(int(c) for c in cfg.ravel()) == sorted(255 & ~(1 << c) for c in range(8))

    def test_uniform_grids(self):
        assert np.all(cube_configurations(np.ones((2, 2, 2), dtype=bool)) == 0)
        assert np.all(cube_configurations(np.zeros((2, 2, 2), dtype=bool)) == 255)


class TestIsolatedVoxel:
    @pytest.fixture
    def mesh(self):
        return marching_cubes(isolated_voxel_volume())

    def test_octahedron(self, mesh):
        assert mesh.num_verts == 6
        assert mesh.num_faces == 8

    def test_valid(self, mesh):
        assert _all_valid(mesh)

    def test_vertices_at_half_cell(self, mesh):
        np.testing.assert_allclose(np.linalg.norm(mesh.verts, axis=1), 0.5)

    def test_normals_outward(self, mesh):
        assert _outward_fraction(mesh, (0.0, 0.0, 0.0)) == 1.0
        centroids = mesh.verts[mesh.tris].mean(axis=1)
        assert np.all(np.einsum("ij,ij->i", mesh.face_norms, centroids) > 0.0)

    def test_centre_contained(self, mesh):
        from tessmesh.geometry import Point

        assert mesh.point_containment(Point(0.01, 0.02, 0.03))
        assert not mesh.point_containment(Point(0.6, 0.6, 0.6))


class TestBinaryVolumes:
    @pytest.mark.parametrize("n", [1, 2, 3, 5])
    def test_block_is_closed_sphere_topology(self, n):
        m = marching_cubes(block_volume(n))
        assert _all_valid(m)
        assert m.num_verts == 6 * n * n
        # Euler characteristic 2 for a closed surface of genus 0
        assert m.num_faces == 2 * (m.num_verts - 2)

    def test_block_outward(self):
        m = marching_cubes(block_volume(4))
        assert _outward_fraction(m, (1.5, 1.5, 1.5)) == 1.0

    def test_two_voxels_disconnected(self):
        data = np.array([True, False, True]).reshape(3, 1, 1)
        m = marching_cubes(VoxelVolume(data))
        assert m.num_verts == 12
        assert m.basic_validity()
        assert m.manifold_validity()
        assert not m.connection_validity()

    def test_cell_size_and_origin(self):
        vox = VoxelVolume(np.ones((1, 1, 1), dtype=bool), cell_size=2.0, origin=(10.0, 0.0, 0.0))
        m = marching_cubes(vox)
        bb = m.bounds()
        assert bb.center().x == pytest.approx(10.0)
        assert bb.longest_side() == pytest.approx(2.0)

    def test_full_grid_without_padding_is_empty(self):
        m = marching_cubes(block_volume(3), pad=False)
        assert m.empty()

    def test_empty_volume(self):
        m = marching_cubes(VoxelVolume(np.zeros((4, 4, 4), dtype=bool)))
        assert m.empty()
        assert m.num_faces == 0


class TestScalarVolumes:
    def test_sphere(self):
        radius = 5.3
        m = marching_cubes(sphere_volume(radius=radius))
        assert _all_valid(m)
        assert _outward_fraction(m, (0.0, 0.0, 0.0)) == 1.0
        r = np.linalg.norm(m.verts, axis=1)
        assert np.all(np.abs(r - radius) < 0.25)

    def test_finer_grid_gives_more_triangles(self):
        coarse = marching_cubes(sphere_volume(radius=3.2, cell_size=1.0))
        fine = marching_cubes(sphere_volume(radius=3.2, cell_size=0.5))
        assert fine.num_faces > coarse.num_faces

    def test_torus_is_closed(self):
        m = marching_cubes(torus_volume())
        assert m.basic_validity()
        assert m.manifold_validity()
        assert m.connection_validity()
        # Genus 1: V - E + F = 0
        assert m.num_faces == 2 * m.num_verts

    def test_crossings_are_interpolated(self):
        data = np.ones((1, 1, 1), dtype=float)
        m = marching_cubes(VoxelVolume(data, iso=0.5))
        # Padding samples sit at -0.5, so the crossing is a third of a cell out
        assert m.num_verts == 6
        np.testing.assert_allclose(np.linalg.norm(m.verts, axis=1), 1.0 / 3.0)


class TestMeshEntryPoint:
    def test_replaces_existing_content(self):
        m = Mesh()
        m.valid_tet_test()
        m.marching_cubes(block_volume(2))
        assert m.num_verts == 24
        assert _all_valid(m)

    def test_normals_available(self):
        m = Mesh()
        m.marching_cubes(isolated_voxel_volume())
        np.testing.assert_allclose(np.linalg.norm(m.norms, axis=1), 1.0)
