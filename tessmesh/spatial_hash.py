"""
Spatial hashing for near-duplicate vertex lookup and edge bookkeeping.

`SpatialHash` quantizes coordinates into bins scaled to a bounding box and
mixes the three bin indices into one integer key. Bins are never narrower than
the merge tolerance, so two points within tolerance always fall into the same
or an adjacent bin; a lookup therefore scans the 27 neighbouring bins and
compares real coordinates before accepting a match.

`EdgeHash` keys directed edges by their vertex indices only (no geometry) and
is used by the manifold check to count an edge and its reverse.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .config import DEFAULT_OPTIONS, MeshOptions
from .geometry import BoundBox, Point

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Large odd multipliers for key mixing
_PX = 73856093
_PY = 19349663
_PZ = 83492791


class SpatialHash:
    """
    Hash table of 3D points keyed by quantized bounding-box coordinates.

    Args:
        bbox: Box enclosing the points to be inserted. Points outside it are
            still handled correctly, only with coarser spreading.
        options: Tolerance and bin/table sizing.
    """

    def __init__(self, bbox: Optional[BoundBox], options: Optional[MeshOptions] = None):
        opts = options if options is not None else DEFAULT_OPTIONS
        self.tol = float(opts.tolerance)
        self.table_size = int(opts.hash_table_size)

        if bbox is None:
            self._origin = np.zeros(3, dtype=float)
            extent = np.zeros(3, dtype=float)
        else:
            self._origin = bbox.min.as_array()
            extent = bbox.extent()

        floor_width = self.tol if self.tol > 0.0 else 1.0
        width = extent / float(opts.hash_bins)
        self._width = np.where(width >= floor_width, width, floor_width)

        self._buckets: Dict[int, List[int]] = {}
        self._coords: Dict[int, Tuple[float, float, float]] = {}

    def __len__(self) -> int:
        return len(self._coords)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------
    def _cell(self, p: Sequence[float]) -> Tuple[int, int, int]:
        return (
            int(math.floor((p[0] - self._origin[0]) / self._width[0])),
            int(math.floor((p[1] - self._origin[1]) / self._width[1])),
            int(math.floor((p[2] - self._origin[2]) / self._width[2])),
        )

    def _mix(self, ix: int, iy: int, iz: int) -> int:
        return ((ix * _PX) ^ (iy * _PY) ^ (iz * _PZ)) % self.table_size

    def hash_key(self, p) -> int:
        """Integer key of the bin holding point `p`."""
        return self._mix(*self._cell(_coords_of(p)))

    def _neighbour_keys(self, cell: Tuple[int, int, int]) -> Iterator[int]:
        seen = set()
        ix, iy, iz = cell
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for dz in (-1, 0, 1):
                    key = self._mix(ix + dx, iy + dy, iz + dz)
                    if key not in seen:
                        seen.add(key)
                        yield key

    # ------------------------------------------------------------------
    # Insert / lookup
    # ------------------------------------------------------------------
    def insert(self, p, idx: int) -> None:
        c = _coords_of(p)
        self._coords[int(idx)] = c
        self._buckets.setdefault(self._mix(*self._cell(c)), []).append(int(idx))

    def find(self, p) -> Optional[int]:
        """
        Index of a previously inserted point within tolerance of `p`, or None.

        When several stored points qualify, the lowest index wins so that the
        first-seen vertex is canonical.
        """
        c = _coords_of(p)
        tol2 = self.tol * self.tol
        best: Optional[int] = None
        for key in self._neighbour_keys(self._cell(c)):
            for idx in self._buckets.get(key, ()):
                q = self._coords[idx]
                dx = c[0] - q[0]
                dy = c[1] - q[1]
                dz = c[2] - q[2]
                if dx * dx + dy * dy + dz * dz <= tol2 and (best is None or idx < best):
                    best = idx
        return best

    def find_or_insert(self, p, idx: int) -> Tuple[int, bool]:
        """
        Return (index, inserted). If a stored point matches `p` its index is
        returned; otherwise `p` is stored under `idx`.
        """
        found = self.find(p)
        if found is not None:
            return found, False
        self.insert(p, idx)
        return int(idx), True

    def bucket_stats(self) -> Dict[str, float]:
        sizes = [len(b) for b in self._buckets.values()]
        if not sizes:
            return {"buckets": 0, "points": 0, "max_bucket": 0, "mean_bucket": 0.0}
        return {
            "buckets": len(sizes),
            "points": len(self._coords),
            "max_bucket": max(sizes),
            "mean_bucket": float(sum(sizes)) / len(sizes),
        }


class EdgeHash:
    """Directed edges keyed by their endpoint indices, with owning triangles."""

    def __init__(self, table_size: int = DEFAULT_OPTIONS.hash_table_size):
        self.table_size = int(table_size)
        self._buckets: Dict[int, List[Tuple[int, int, int]]] = {}

    def hash_edge(self, v0: int, v1: int) -> int:
        return ((int(v0) * _PX) ^ (int(v1) * _PY)) % self.table_size

    def add(self, v0: int, v1: int, tri: int) -> None:
        self._buckets.setdefault(self.hash_edge(v0, v1), []).append((int(v0), int(v1), int(tri)))

    def triangles_with(self, v0: int, v1: int) -> List[int]:
        """Triangles containing the directed edge v0 -> v1."""
        v0 = int(v0)
        v1 = int(v1)
        return [t for a, b, t in self._buckets.get(self.hash_edge(v0, v1), ()) if a == v0 and b == v1]

    def count(self, v0: int, v1: int) -> int:
        return len(self.triangles_with(v0, v1))


def _coords_of(p) -> Tuple[float, float, float]:
    if isinstance(p, Point):
        return (p.x, p.y, p.z)
    return (float(p[0]), float(p[1]), float(p[2]))
