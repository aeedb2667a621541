"""
Geometric primitives shared by the mesh core.

`Point` and `Vector` are immutable (x, y, z) value types. Equality between
them is tolerance based; the tolerance is passed explicitly where it matters
(`Point.close_to`, `Vector.close_to`) and defaults to `DEFAULT_TOLERANCE` for
the `==` operator. `BoundBox` is an axis-aligned box derived from a point set.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

DEFAULT_TOLERANCE = 1e-6


@dataclass(frozen=True, eq=False)
class Point:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @staticmethod
    def from_array(a: Sequence[float]) -> "Point":
        return Point(float(a[0]), float(a[1]), float(a[2]))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def translate(self, v: "Vector") -> "Point":
        return Point(self.x + v.i, self.y + v.j, self.z + v.k)

    def dist(self, other: "Point") -> float:
        return math.sqrt(self.dist2(other))

    def dist2(self, other: "Point") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def close_to(self, other: "Point", tol: float = DEFAULT_TOLERANCE) -> bool:
        return self.dist2(other) <= tol * tol

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return self.close_to(other)

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True, eq=False)
class Vector:
    i: float = 0.0
    j: float = 0.0
    k: float = 0.0

    @staticmethod
    def from_array(a: Sequence[float]) -> "Vector":
        return Vector(float(a[0]), float(a[1]), float(a[2]))

    @staticmethod
    def diff(end: Point, start: Point) -> "Vector":
        """Vector from `start` to `end`."""
        return Vector(end.x - start.x, end.y - start.y, end.z - start.z)

    def as_array(self) -> np.ndarray:
        return np.array([self.i, self.j, self.k], dtype=float)

    def __add__(self, other: "Vector") -> "Vector":
        return Vector(self.i + other.i, self.j + other.j, self.k + other.k)

    def __sub__(self, other: "Vector") -> "Vector":
        return Vector(self.i - other.i, self.j - other.j, self.k - other.k)

    def mult(self, s: float) -> "Vector":
        return Vector(self.i * s, self.j * s, self.k * s)

    def dot(self, other: "Vector") -> float:
        return self.i * other.i + self.j * other.j + self.k * other.k

    def cross(self, other: "Vector") -> "Vector":
        return Vector(
            self.j * other.k - self.k * other.j,
            self.k * other.i - self.i * other.k,
            self.i * other.j - self.j * other.i,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self) -> "Vector":
        """Unit vector in the same direction; the zero vector stays zero."""
        n = self.length()
        if n == 0.0:
            return Vector(0.0, 0.0, 0.0)
        return self.mult(1.0 / n)

    def close_to(self, other: "Vector", tol: float = DEFAULT_TOLERANCE) -> bool:
        d = self - other
        return d.dot(d) <= tol * tol

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self.close_to(other)

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True)
class BoundBox:
    """Axis-aligned bounding box given by its minimum and maximum corners."""

    min: Point
    max: Point

    @staticmethod
    def from_points(points: Iterable[Sequence[float]]) -> Optional["BoundBox"]:
        """Bounding box of an (N, 3) array or iterable of points; None if empty."""
        if not isinstance(points, np.ndarray):
            points = list(points)
        P = np.asarray(points, dtype=float)
        if P.size == 0:
            return None
        P = P.reshape(-1, 3)
        lo = P.min(axis=0)
        hi = P.max(axis=0)
        return BoundBox(Point.from_array(lo), Point.from_array(hi))

    def extent(self) -> np.ndarray:
        return self.max.as_array() - self.min.as_array()

    def diagonal(self) -> Vector:
        return Vector.diff(self.max, self.min)

    def center(self) -> Point:
        return Point.from_array(0.5 * (self.min.as_array() + self.max.as_array()))

    def longest_axis(self) -> int:
        return int(np.argmax(self.extent()))

    def longest_side(self) -> float:
        return float(np.max(self.extent()))

    def contains(self, p: Point, tol: float = 0.0) -> bool:
        return (
            self.min.x - tol <= p.x <= self.max.x + tol
            and self.min.y - tol <= p.y <= self.max.y + tol
            and self.min.z - tol <= p.z <= self.max.z + tol
        )

    def include(self, p: Point) -> "BoundBox":
        """Return a box grown to contain `p`."""
        lo = np.minimum(self.min.as_array(), p.as_array())
        hi = np.maximum(self.max.as_array(), p.as_array())
        return BoundBox(Point.from_array(lo), Point.from_array(hi))
