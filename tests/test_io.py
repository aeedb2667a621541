"""
Tests for STL exchange and voxel grid persistence.
"""

import sys
import os

# Add the parent directory to path for importing tessmesh
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np
import pytest
import trimesh

from tessmesh.demo import cube_mesh, save_demo_meshes, sphere_volume, touch_tets_test
from tessmesh.marching import marching_cubes
from tessmesh.mesh import Mesh
from tessmesh.voxels import VoxelVolume


class TestSTL:
    def test_cube_round_trip(self, tmp_path):
        path = str(tmp_path / "cube.stl")
        cube = cube_mesh()
        assert cube.write_stl(path)
        back = Mesh()
        assert back.read_stl(path)
        assert back.num_verts == 8
        assert back.num_faces == 12
        assert back.manifold_validity()
        np.testing.assert_allclose(back.verts[back.tris], cube.verts[cube.tris])

    def test_sphere_round_trip(self, tmp_path):
        path = str(tmp_path / "sphere.stl")
        m = marching_cubes(sphere_volume(radius=3.6))
        assert m.write_stl(path)
        back = Mesh()
        assert back.read_stl(path)
        assert back.num_faces == m.num_faces
        assert back.num_verts == m.num_verts
        assert back.basic_validity()
        assert back.manifold_validity()
        assert back.connection_validity()

    def test_file_is_binary_stl(self, tmp_path):
        path = tmp_path / "cube.stl"
        cube_mesh().write_stl(str(path))
        data = path.read_bytes()
        # 80-byte header, uint32 count, 50 bytes per triangle
        assert len(data) == 84 + 50 * 12
        assert int.from_bytes(data[80:84], "little") == 12

    def test_readable_by_trimesh(self, tmp_path):
        path = str(tmp_path / "cube.stl")
        cube_mesh().write_stl(path)
        tm = trimesh.load(path)
        assert tm.is_watertight
        assert tm.volume == pytest.approx(1.0)

    def test_missing_file_leaves_mesh_unchanged(self, tmp_path):
        m = touch_tets_test()
        verts = m.verts.copy()
        tris = m.tris.copy()
        assert not m.read_stl(str(tmp_path / "missing.stl"))
        np.testing.assert_array_equal(m.verts, verts)
        np.testing.assert_array_equal(m.tris, tris)

    def test_write_to_missing_directory(self, tmp_path):
        assert not cube_mesh().write_stl(str(tmp_path / "nope" / "cube.stl"))

    def test_save_demo_meshes(self, tmp_path):
        paths = save_demo_meshes(str(tmp_path / "demo"))
        assert set(paths) == {"voxel", "block", "sphere", "torus"}
        for p in paths.values():
            assert os.path.getsize(p) > 84


class TestVoxelText:
    def test_binary_round_trip(self, tmp_path):
        data = np.zeros((3, 4, 2), dtype=bool)
        data[1, 2, 1] = True
        data[0, 0, 0] = True
        vox = VoxelVolume(data, cell_size=0.5, origin=(1.0, -2.0, 3.0))
        path = str(tmp_path / "grid.txt")
        assert vox.to_txt(path)
        back = VoxelVolume.from_txt(path)
        assert back.binary
        assert back.dims == (3, 4, 2)
        np.testing.assert_array_equal(back.data, data)
        assert back.cell_size == 0.5
        np.testing.assert_allclose(back.origin, [1.0, -2.0, 3.0])

    def test_scalar_round_trip(self, tmp_path):
        vox = sphere_volume(radius=2.5)
        path = str(tmp_path / "density.txt")
        assert vox.to_txt(path)
        back = VoxelVolume.from_txt(path)
        assert not back.binary
        np.testing.assert_array_equal(back.data, vox.data)
        assert back.iso == vox.iso

    def test_malformed_rows(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("2 2 2 binary\n1 0 0 0 0.5\n0 1\n1 0\n0 0\n")
        with pytest.raises(ValueError):
            VoxelVolume.from_txt(str(path))

    def test_bad_header(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("2 2 binary\n")
        with pytest.raises(ValueError):
            VoxelVolume.from_txt(str(path))

    def test_unwritable(self, tmp_path):
        vox = VoxelVolume(np.ones((1, 1, 1), dtype=bool))
        assert not vox.to_txt(str(tmp_path / "nope" / "grid.txt"))


class TestVoxelNpz:
    def test_round_trip(self, tmp_path):
        vox = sphere_volume(radius=2.5)
        path = str(tmp_path / "density.npz")
        vox.save(path)
        back = VoxelVolume.load(path)
        np.testing.assert_array_equal(back.data, vox.data)
        np.testing.assert_allclose(back.origin, vox.origin)
        assert back.cell_size == vox.cell_size
        assert back.iso == vox.iso


class TestVoxelVolume:
    def test_rejects_bad_input(self):
        with pytest.raises(ValueError):
            VoxelVolume(np.ones((2, 2)))
        with pytest.raises(ValueError):
            VoxelVolume(np.ones((2, 2, 2)), cell_size=0.0)
        with pytest.raises(TypeError):
            VoxelVolume(np.full((1, 1, 1), "a"))

    def test_inside_is_inclusive(self):
        vox = VoxelVolume(np.full((1, 1, 1), 0.5), iso=0.5)
        assert vox.is_inside(0, 0, 0)
        assert vox.count_inside() == 1

    def test_off_grid_is_outside(self):
        vox = VoxelVolume(np.ones((2, 2, 2), dtype=bool))
        assert vox.is_inside(1, 1, 1)
        assert not vox.is_inside(2, 0, 0)
        assert not vox.is_inside(-1, 0, 0)

    def test_padding(self):
        vox = VoxelVolume(np.ones((2, 2, 2), dtype=bool), cell_size=2.0)
        p = vox.padded()
        assert p.dims == (4, 4, 4)
        np.testing.assert_allclose(p.origin, [-2.0, -2.0, -2.0])
        assert p.count_inside() == 8

    def test_scalar_padding_is_outside(self):
        vox = VoxelVolume(np.full((2, 2, 2), 3.0), iso=1.0)
        p = vox.padded()
        assert p.count_inside() == 8
        assert p.value(0, 0, 0) < 1.0

    def test_point_at_and_bounds(self):
        vox = VoxelVolume(np.zeros((3, 3, 3), dtype=bool), cell_size=0.5, origin=(1.0, 1.0, 1.0))
        assert vox.point_at(2, 0, 1).as_tuple() == (2.0, 1.0, 1.5)
        bb = vox.bounds()
        assert bb.max.as_tuple() == (2.0, 2.0, 2.0)
        assert vox.empty()
