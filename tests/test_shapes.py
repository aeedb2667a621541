"""
Tests for the simple shapes and the shared object transform.
"""

import sys
import os

# Add the parent directory to path for importing tessmesh
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np
import pytest

from tessmesh.demo import cube_mesh
from tessmesh.geometry import Point, Vector
from tessmesh.object3d import Object3D, transform_normals, transform_points
from tessmesh.shapes import Cylinder, Shape, ShapeGeometry, Sphere, Square


class TestSphere:
    def test_containment(self):
        s = Sphere(Point(1.0, 0.0, 0.0), 2.0)
        assert s.point_containment(Point(2.5, 0.0, 0.0))
        assert s.point_containment(Point(3.0, 0.0, 0.0))
        assert not s.point_containment(Point(3.1, 0.0, 0.0))

    def test_geometry(self):
        geom = Sphere(Point(0.0, 0.0, 5.0), 1.0).gen_geometry()
        assert geom.num_triangles > 0
        assert geom.positions.shape == geom.normals.shape
        r = np.linalg.norm(geom.positions - [0.0, 0.0, 5.0], axis=1)
        np.testing.assert_allclose(r, 1.0, atol=1e-5)

    def test_zero_radius_geometry_is_empty(self):
        assert Sphere().gen_geometry().num_triangles == 0

    def test_ray_hits(self):
        s = Sphere(Point(5.0, 0.0, 0.0), 1.0)
        o = np.zeros(3)
        assert s.ray_hits(o, np.array([1.0, 0.0, 0.0]))
        assert not s.ray_hits(o, np.array([-1.0, 0.0, 0.0]))
        assert not s.ray_hits(o, np.array([0.0, 1.0, 0.0]))
        assert s.ray_hits(np.array([5.0, 0.5, 0.0]), np.array([0.0, -1.0, 0.0]))


class TestCylinder:
    def test_containment(self):
        c = Cylinder(Point(0.0, 0.0, 0.0), Point(0.0, 0.0, 4.0), 1.0)
        assert c.point_containment(Point(0.5, 0.0, 2.0))
        assert not c.point_containment(Point(1.5, 0.0, 2.0))
        assert not c.point_containment(Point(0.0, 0.0, 4.5))
        assert not c.point_containment(Point(0.0, 0.0, -0.1))

    def test_oblique_axis(self):
        c = Cylinder(Point(0.0, 0.0, 0.0), Point(2.0, 2.0, 0.0), 0.5)
        assert c.point_containment(Point(1.0, 1.0, 0.2))
        assert not c.point_containment(Point(1.0, 0.0, 0.0))

    def test_geometry_spans_axis(self):
        geom = Cylinder(Point(0.0, 0.0, 1.0), Point(0.0, 0.0, 3.0), 0.5).gen_geometry()
        assert geom.num_triangles > 0
        assert geom.positions[:, 2].min() == pytest.approx(1.0, abs=1e-5)
        assert geom.positions[:, 2].max() == pytest.approx(3.0, abs=1e-5)

    def test_degenerate_axis(self):
        c = Cylinder(Point(1.0, 1.0, 1.0), Point(1.0, 1.0, 1.0), 1.0)
        assert not c.point_containment(Point(1.0, 1.0, 1.0))
        assert c.gen_geometry().num_triangles == 0


class TestSquare:
    def test_containment(self):
        sq = Square(Point(0.0, 0.0, 0.0), 2.0)
        assert sq.point_containment(Point(0.9, -0.9, 1.0))
        assert not sq.point_containment(Point(1.1, 0.0, 0.0))

    def test_geometry(self):
        geom = Square(Point(1.0, 1.0, 1.0), 2.0).gen_geometry()
        assert geom.num_triangles == 12
        np.testing.assert_allclose(geom.positions.min(axis=0), [0.0, 0.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(geom.positions.max(axis=0), [2.0, 2.0, 2.0], atol=1e-6)


class TestShapeProtocol:
    def test_all_variants_are_shapes(self):
        for s in (Sphere(), Cylinder(), Square(), cube_mesh()):
            assert isinstance(s, Shape)

    def test_view_matrix(self):
        view = np.eye(4)
        view[:3, 3] = [0.0, 0.0, -10.0]
        geom = Square(Point(0.0, 0.0, 0.0), 1.0).gen_geometry(view)
        assert geom.positions[:, 2].max() == pytest.approx(-9.5)

    def test_bad_view_matrix(self):
        with pytest.raises(ValueError):
            Square().gen_geometry(np.eye(3))

    def test_empty_geometry(self):
        g = ShapeGeometry.empty()
        assert g.num_triangles == 0
        assert g.interleaved().shape == (0, 6)


class TestObject3D:
    def test_defaults(self):
        o = Object3D()
        np.testing.assert_allclose(o.build_transform(), np.eye(4))
        assert o.get_scale() == 1.0
        assert o.get_rotations() == (0.0, 0.0, 0.0)

    def test_rotation_about_z(self):
        o = Object3D()
        o.set_rotations(0.0, 0.0, 90.0)
        p = transform_points(np.array([[1.0, 0.0, 0.0]]), o.build_transform())
        np.testing.assert_allclose(p, [[0.0, 1.0, 0.0]], atol=1e-12)

    def test_scale_before_translation(self):
        o = Object3D()
        o.set_scale(3.0)
        o.set_translation(Vector(0.0, 1.0, 0.0))
        p = transform_points(np.array([[1.0, 1.0, 1.0]]), o.build_transform())
        np.testing.assert_allclose(p, [[3.0, 4.0, 3.0]])

    def test_translation_accepts_sequence(self):
        o = Object3D()
        o.set_translation((1.0, 2.0, 3.0))
        assert o.get_translation() == Vector(1.0, 2.0, 3.0)

    def test_normals_stay_unit_under_scale(self):
        o = Object3D()
        o.set_scale(5.0)
        n = transform_normals(np.array([[0.0, 0.0, 1.0]]), o.build_transform())
        np.testing.assert_allclose(n, [[0.0, 0.0, 1.0]])

    def test_colour(self):
        o = Object3D()
        o.set_colour((1.0, 0.0, 0.0))
        assert o.get_colour() == (1.0, 0.0, 0.0, 1.0)
        with pytest.raises(ValueError):
            o.set_colour((1.0, 0.0))
