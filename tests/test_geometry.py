"""
Tests for points, vectors and bounding boxes.
"""

import sys
import os

# Add the parent directory to path for importing tessmesh
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import math

import numpy as np
import pytest

from tessmesh.geometry import BoundBox, Point, Vector


class TestPoint:
    def test_equality_uses_tolerance(self):
        assert Point(1.0, 2.0, 3.0) == Point(1.0 + 1e-8, 2.0, 3.0 - 1e-8)
        assert Point(1.0, 2.0, 3.0) != Point(1.0 + 1e-3, 2.0, 3.0)

    def test_close_to_explicit_tolerance(self):
        p = Point(0.0, 0.0, 0.0)
        q = Point(0.05, 0.0, 0.0)
        assert not p.close_to(q)
        assert p.close_to(q, tol=0.1)

    def test_distance(self):
        p = Point(0.0, 0.0, 0.0)
        q = Point(3.0, 4.0, 0.0)
        assert p.dist(q) == pytest.approx(5.0)
        assert p.dist2(q) == pytest.approx(25.0)

    def test_translate_and_array(self):
        p = Point(1.0, 1.0, 1.0).translate(Vector(1.0, -2.0, 0.5))
        np.testing.assert_allclose(p.as_array(), [2.0, -1.0, 1.5])
        assert Point.from_array([2.0, -1.0, 1.5]) == p

    def test_points_are_not_hashable(self):
        with pytest.raises(TypeError):
            hash(Point())


class TestVector:
    def test_diff_points_from_start_to_end(self):
        v = Vector.diff(Point(3.0, 2.0, 1.0), Point(1.0, 1.0, 1.0))
        assert v == Vector(2.0, 1.0, 0.0)

    def test_cross_is_right_handed(self):
        x = Vector(1.0, 0.0, 0.0)
        y = Vector(0.0, 1.0, 0.0)
        assert x.cross(y) == Vector(0.0, 0.0, 1.0)
        assert y.cross(x) == Vector(0.0, 0.0, -1.0)

    def test_normalize(self):
        v = Vector(3.0, 0.0, 4.0).normalize()
        assert v.length() == pytest.approx(1.0)
        assert v == Vector(0.6, 0.0, 0.8)

    def test_normalize_zero_stays_zero(self):
        assert Vector().normalize() == Vector(0.0, 0.0, 0.0)

    def test_arithmetic(self):
        a = Vector(1.0, 2.0, 3.0)
        b = Vector(0.5, 0.5, 0.5)
        assert a + b == Vector(1.5, 2.5, 3.5)
        assert a - b == Vector(0.5, 1.5, 2.5)
        assert a.mult(2.0) == Vector(2.0, 4.0, 6.0)
        assert a.dot(b) == pytest.approx(3.0)


class TestBoundBox:
    def test_from_points_empty_is_none(self):
        assert BoundBox.from_points([]) is None
        assert BoundBox.from_points(np.zeros((0, 3))) is None

    def test_from_points(self):
        bb = BoundBox.from_points([(0.0, 1.0, -1.0), (2.0, -1.0, 3.0), (1.0, 0.0, 0.0)])
        assert bb.min == Point(0.0, -1.0, -1.0)
        assert bb.max == Point(2.0, 1.0, 3.0)
        assert bb.center() == Point(1.0, 0.0, 1.0)
        assert bb.longest_axis() == 2
        assert bb.longest_side() == pytest.approx(4.0)
        assert bb.diagonal().length() == pytest.approx(math.sqrt(4 + 4 + 16))

    def test_contains_and_include(self):
        bb = BoundBox(Point(0.0, 0.0, 0.0), Point(1.0, 1.0, 1.0))
        assert bb.contains(Point(0.5, 0.5, 0.5))
        assert not bb.contains(Point(1.5, 0.5, 0.5))
        grown = bb.include(Point(1.5, -1.0, 0.5))
        assert grown.contains(Point(1.5, 0.5, 0.5))
        assert grown.min == Point(0.0, -1.0, 0.0)
