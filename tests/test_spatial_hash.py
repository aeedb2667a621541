"""
Tests for spatial and edge hashing.
"""

import sys
import os

# Add the parent directory to path for importing tessmesh
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from tessmesh.config import MeshOptions
from tessmesh.geometry import BoundBox, Point
from tessmesh.spatial_hash import EdgeHash, SpatialHash


@pytest.fixture
def unit_box():
    return BoundBox(Point(0.0, 0.0, 0.0), Point(1.0, 1.0, 1.0))


class TestSpatialHash:
    def test_find_within_tolerance(self, unit_box):
        h = SpatialHash(unit_box, MeshOptions(tolerance=1e-4))
        h.insert(Point(0.25, 0.5, 0.75), 0)
        assert h.find(Point(0.25 + 5e-5, 0.5, 0.75)) == 0
        assert h.find(Point(0.25 + 5e-3, 0.5, 0.75)) is None

    def test_match_across_bin_boundary(self, unit_box):
        opts = MeshOptions(tolerance=1e-3, hash_bins=10)
        h = SpatialHash(unit_box, opts)
        h.insert((0.2 - 1e-4, 0.5, 0.5), 3)
        # Lies in the neighbouring bin but within tolerance
        assert h.find((0.2 + 1e-4, 0.5, 0.5)) == 3

    def test_lowest_index_wins(self, unit_box):
        h = SpatialHash(unit_box, MeshOptions(tolerance=1e-2))
        h.insert((0.5, 0.5, 0.5), 7)
        h.insert((0.501, 0.5, 0.5), 2)
        assert h.find((0.5005, 0.5, 0.5)) == 2

    def test_find_or_insert(self, unit_box):
        h = SpatialHash(unit_box)
        assert h.find_or_insert((0.1, 0.2, 0.3), 0) == (0, True)
        assert h.find_or_insert((0.1, 0.2, 0.3), 1) == (0, False)
        assert h.find_or_insert((0.3, 0.2, 0.1), 1) == (1, True)
        assert len(h) == 2

    def test_key_in_table_range(self, unit_box):
        opts = MeshOptions(hash_table_size=101)
        h = SpatialHash(unit_box, opts)
        for p in [(0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (-3.0, 7.0, 2.0)]:
            assert 0 <= h.hash_key(p) < 101

    def test_points_outside_box(self, unit_box):
        h = SpatialHash(unit_box)
        h.insert((5.0, -2.0, 9.0), 4)
        assert h.find((5.0, -2.0, 9.0)) == 4

    def test_no_bbox(self):
        h = SpatialHash(None)
        h.insert((1.0, 2.0, 3.0), 0)
        assert h.find((1.0, 2.0, 3.0)) == 0
        assert h.bucket_stats()["points"] == 1


class TestEdgeHash:
    def test_directed_counts(self):
        eh = EdgeHash()
        eh.add(0, 1, 0)
        eh.add(1, 0, 1)
        eh.add(0, 1, 2)
        assert eh.count(0, 1) == 2
        assert eh.count(1, 0) == 1
        assert eh.triangles_with(1, 0) == [1]
        assert eh.count(2, 3) == 0

    def test_edge_key_is_directional(self):
        eh = EdgeHash(table_size=1_000_003)
        assert eh.hash_edge(3, 8) != eh.hash_edge(8, 3)
