"""
Geometry processing on an existing mesh: Laplacian smoothing and free-form
deformation. Both keep the triangle list intact and re-derive normals.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

import numpy as np

from .geometry import Point
from .validity import indices_in_range, vertex_adjacency_graph

if TYPE_CHECKING:
    from .mesh import Mesh

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def laplacian_smooth(mesh: "Mesh", iterations: int, rate: float) -> None:
    """
    Move each vertex toward the centroid of its edge neighbours.

    Every iteration updates all vertices simultaneously from the previous
    positions: ``p' = p + rate * (mean(neighbours) - p)``. Vertices without
    neighbours stay put. The same displacement is applied to the rest state
    (`base`), so a later FFD deforms the smoothed shape without re-applying
    an earlier deformation.

    Args:
        mesh: Mesh to smooth in place.
        iterations: Number of passes (>= 0; 0 leaves the mesh unchanged).
        rate: Step fraction in [0, 1].

    Raises:
        ValueError: on a negative iteration count, a rate outside [0, 1], or
            triangles indexing missing vertices.
    """
    iterations = int(iterations)
    rate = float(rate)
    if iterations < 0:
        raise ValueError("iterations must be >= 0")
    if not 0.0 <= rate <= 1.0:
        raise ValueError("rate must be in [0, 1]")
    if iterations == 0 or mesh.empty():
        return
    if not indices_in_range(mesh):
        raise ValueError("Cannot smooth a mesh whose triangles index missing vertices")

    G = vertex_adjacency_graph(mesh)
    E = np.array(list(G.edges()), dtype=np.int64).reshape(-1, 2)
    deg = np.zeros(mesh.num_verts, dtype=float)
    np.add.at(deg, E[:, 0], 1.0)
    np.add.at(deg, E[:, 1], 1.0)
    has_nbrs = deg > 0

    V = mesh.verts.astype(float, copy=True)
    for _ in range(iterations):
        acc = np.zeros_like(V)
        np.add.at(acc, E[:, 0], V[E[:, 1]])
        np.add.at(acc, E[:, 1], V[E[:, 0]])
        centroid = V.copy()
        centroid[has_nbrs] = acc[has_nbrs] / deg[has_nbrs, None]
        V = V + rate * (centroid - V)

    mesh.base = mesh.base + (V - mesh.verts)
    mesh.verts = V
    mesh.derive_normals()
    mesh.invalidate_accel()
    mesh._log("laplacian_smooth: %d iterations at rate %.3f over %d vertices", iterations, rate, mesh.num_verts)


def _deformer(lat: Any) -> Callable[[Point], Any]:
    fn = getattr(lat, "deform", None)
    if callable(fn):
        return fn
    if callable(lat):
        return lat
    raise TypeError("FFD lattice must provide deform(point) or be callable")


def apply_ffd(mesh: "Mesh", lat: Any) -> None:
    """
    Recompute every vertex position as the lattice image of its rest position.

    Positions are always derived from `base`, so applying the same lattice
    twice gives the same result. `lat` is an object with ``deform(Point)``
    or a plain callable; either may return a `Point` or an (x, y, z) sequence.
    """
    deform = _deformer(lat)
    if mesh.empty():
        return
    out = np.empty_like(mesh.base, dtype=float)
    for i, row in enumerate(mesh.base):
        q = deform(Point.from_array(row))
        out[i] = q.as_array() if isinstance(q, Point) else np.asarray(q, dtype=float).reshape(3)
    mesh.verts = out
    mesh.derive_normals()
    mesh.invalidate_accel()
    mesh._log("apply_ffd: deformed %d vertices", mesh.num_verts)
