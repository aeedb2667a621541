"""
Simple bounding and test shapes sharing the shape capability used by `Mesh`.

Every shape provides:
- `gen_geometry(view)`: triangle-list geometry (positions + normals) packed
  for a renderer.
- `point_containment(pnt)`: whether a point lies inside the solid.

The variant set is closed: `Sphere`, `Cylinder`, `Square` here and
`tessmesh.mesh.Mesh`. Spheres double as cells of the bounding-sphere
accelerator and then carry the triangle indices they cover in `ind`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, runtime_checkable

import numpy as np
import trimesh

from .geometry import Point, Vector
from .object3d import DEFAULT_COLOUR, Colour, combined_matrix, transform_normals, transform_points

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass
class ShapeGeometry:
    """
    Flat triangle list ready for upload: three consecutive rows of
    `positions` (and matching `normals`) form one triangle.
    """

    positions: np.ndarray
    normals: np.ndarray
    colour: Colour = DEFAULT_COLOUR

    @property
    def num_triangles(self) -> int:
        return int(self.positions.shape[0] // 3)

    def interleaved(self) -> np.ndarray:
        """(K, 6) float32 array of position and normal per emitted vertex."""
        return np.hstack([self.positions, self.normals]).astype(np.float32)

    @staticmethod
    def empty(colour: Colour = DEFAULT_COLOUR) -> "ShapeGeometry":
        z = np.zeros((0, 3), dtype=np.float32)
        return ShapeGeometry(z, z.copy(), colour)


@runtime_checkable
class Shape(Protocol):
    def gen_geometry(self, view: Optional[np.ndarray] = None) -> ShapeGeometry:
        ...

    def point_containment(self, pnt: Point) -> bool:
        ...


def pack_geometry(
    vertices: np.ndarray,
    faces: np.ndarray,
    vertex_normals: np.ndarray,
    matrix: Optional[np.ndarray] = None,
    colour: Colour = DEFAULT_COLOUR,
) -> ShapeGeometry:
    """Expand indexed geometry into a transformed triangle list."""
    V = np.asarray(vertices, dtype=float).reshape(-1, 3)
    F = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    N = np.asarray(vertex_normals, dtype=float).reshape(-1, 3)
    if F.shape[0] == 0:
        return ShapeGeometry.empty(colour)
    flat = F.reshape(-1)
    P = V[flat]
    Nf = N[flat]
    if matrix is not None:
        P = transform_points(P, matrix)
        Nf = transform_normals(Nf, matrix)
    return ShapeGeometry(P.astype(np.float32), Nf.astype(np.float32), colour)


def _pack_trimesh(tm: trimesh.Trimesh, view: Optional[np.ndarray]) -> ShapeGeometry:
    M = combined_matrix(np.eye(4), view)
    return pack_geometry(tm.vertices, tm.faces, tm.vertex_normals, M)


@dataclass
class Sphere:
    c: Point = field(default_factory=Point)
    r: float = 0.0
    ind: List[int] = field(default_factory=list)

    def gen_geometry(self, view: Optional[np.ndarray] = None) -> ShapeGeometry:
        if self.r <= 0.0:
            return ShapeGeometry.empty()
        tm = trimesh.creation.icosphere(subdivisions=2, radius=float(self.r))
        tm.apply_translation(self.c.as_array())
        return _pack_trimesh(tm, view)

    def point_containment(self, pnt: Point) -> bool:
        return self.c.dist2(pnt) <= self.r * self.r

    def ray_hits(self, origin: np.ndarray, direction: np.ndarray) -> bool:
        """Whether the half-line origin + t*direction (t >= 0) meets the sphere."""
        oc = np.asarray(origin, dtype=float) - self.c.as_array()
        d = np.asarray(direction, dtype=float)
        a = float(d @ d)
        b = float(oc @ d)
        c = float(oc @ oc) - self.r * self.r
        if c <= 0.0:
            return True
        if b > 0.0:
            return False
        return b * b - a * c >= 0.0


@dataclass
class Cylinder:
    s: Point = field(default_factory=Point)
    e: Point = field(default_factory=Point)
    r: float = 0.0

    def gen_geometry(self, view: Optional[np.ndarray] = None) -> ShapeGeometry:
        if self.r <= 0.0 or self.s.close_to(self.e):
            return ShapeGeometry.empty()
        tm = trimesh.creation.cylinder(
            radius=float(self.r), segment=[self.s.as_array(), self.e.as_array()], sections=24
        )
        return _pack_trimesh(tm, view)

    def point_containment(self, pnt: Point) -> bool:
        axis = Vector.diff(self.e, self.s)
        L2 = axis.dot(axis)
        if L2 == 0.0:
            return False
        rel = Vector.diff(pnt, self.s)
        t = rel.dot(axis) / L2
        if t < 0.0 or t > 1.0:
            return False
        radial = rel - axis.mult(t)
        return radial.dot(radial) <= self.r * self.r


@dataclass
class Square:
    """Axis-aligned cube given by its centre and side length."""

    c: Point = field(default_factory=Point)
    l: float = 1.0  # noqa: E741

    def gen_geometry(self, view: Optional[np.ndarray] = None) -> ShapeGeometry:
        if self.l <= 0.0:
            return ShapeGeometry.empty()
        tm = trimesh.creation.box(extents=[self.l, self.l, self.l])
        tm.apply_translation(self.c.as_array())
        return _pack_trimesh(tm, view)

    def point_containment(self, pnt: Point) -> bool:
        h = 0.5 * self.l
        return (
            abs(pnt.x - self.c.x) <= h
            and abs(pnt.y - self.c.y) <= h
            and abs(pnt.z - self.c.z) <= h
        )
