"""
Bounding-sphere acceleration for point containment.

The mesh bounding box is cut into cubic cells, `maxspheres` of them along the
longest axis. Each cell is enclosed by its circumscribed sphere, and every
triangle is registered with the cells its own bounding box overlaps. A ray
can then only cross triangles registered with spheres the ray passes through.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

import numpy as np

from .geometry import Point
from .shapes import Sphere

if TYPE_CHECKING:
    from .mesh import Mesh

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def build_sphere_accel(mesh: "Mesh", maxspheres: int) -> List[Sphere]:
    """
    Build the sphere list for `mesh`; empty spheres are omitted.

    Args:
        mesh: Source mesh (not modified).
        maxspheres: Cells along the longest bounding-box axis (>= 1).
    """
    maxspheres = int(maxspheres)
    if maxspheres < 1:
        raise ValueError("maxspheres must be >= 1")
    bb = mesh.bounds()
    if bb is None or mesh.num_faces == 0:
        return []

    lo = bb.min.as_array()
    ext = bb.extent()
    longest = float(ext.max())
    cell = longest / maxspheres if longest > 0.0 else 1.0
    # Pad slightly so vertices on the max face still land inside a cell.
    cell *= 1.0 + 1e-9
    counts = np.maximum(1, np.ceil(ext / cell).astype(np.int64))
    radius = 0.5 * math.sqrt(3.0) * cell + mesh.options.tolerance

    ok = np.all((mesh.tris >= 0) & (mesh.tris < mesh.num_verts), axis=1)
    cells: Dict[Tuple[int, int, int], List[int]] = {}
    for t in np.nonzero(ok)[0]:
        P = mesh.verts[mesh.tris[t]]
        i0 = np.clip(np.floor((P.min(axis=0) - lo) / cell).astype(np.int64), 0, counts - 1)
        i1 = np.clip(np.floor((P.max(axis=0) - lo) / cell).astype(np.int64), 0, counts - 1)
        for ix in range(i0[0], i1[0] + 1):
            for iy in range(i0[1], i1[1] + 1):
                for iz in range(i0[2], i1[2] + 1):
                    cells.setdefault((ix, iy, iz), []).append(int(t))

    spheres: List[Sphere] = []
    for (ix, iy, iz), ind in sorted(cells.items()):
        c = lo + cell * (np.array([ix, iy, iz], dtype=float) + 0.5)
        spheres.append(Sphere(Point.from_array(c), radius, ind))

    mesh._log(
        "build_sphere_accel: %d spheres (grid %s, radius %.4g) for %d triangles",
        len(spheres),
        tuple(int(c) for c in counts),
        radius,
        mesh.num_faces,
    )
    return spheres


def candidate_triangles(spheres: Sequence[Sphere], origin: np.ndarray, direction: np.ndarray) -> np.ndarray:
    """Sorted unique triangle indices registered with spheres hit by the ray."""
    hit: List[int] = []
    for s in spheres:
        if s.ray_hits(origin, direction):
            hit.extend(s.ind)
    return np.unique(np.asarray(hit, dtype=np.int64))
