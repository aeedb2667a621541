"""
Marching-cubes surface extraction from a `VoxelVolume`.

Each cube of eight neighbouring grid points gets an 8-bit configuration with
bit c set when corner c is outside. The configuration selects the crossed
edges (`EDGE_TABLE`) and the triangles over them (`TRI_TABLE`); triangles
come out counter-clockwise about the outward normal.

Surface points are edge midpoints for binary volumes and linearly
interpolated iso-crossings for scalar volumes. Points on a cube edge shared
by neighbouring cubes are reused through a spatial hash, so the result is an
indexed mesh; a final `merge_verts` folds any remaining coincident points and
drops triangles that collapsed.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from .config import MeshOptions
from .mc_tables import CORNER_OFFSETS, EDGE_CORNER_ARRAY, EDGE_TABLE, TRI_TABLE
from .mesh import Mesh
from .spatial_hash import SpatialHash
from .voxels import VoxelVolume

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def cube_configurations(inside: np.ndarray) -> np.ndarray:
    """
    Configuration index of every cube in a grid of inside flags.

    Args:
        inside: (nx, ny, nz) bool array, True where the grid point is inside.

    Returns:
        (nx-1, ny-1, nz-1) int array of values in [0, 255].
    """
    nx, ny, nz = inside.shape
    cfg = np.zeros((max(nx - 1, 0), max(ny - 1, 0), max(nz - 1, 0)), dtype=np.int64)
    if cfg.size == 0:
        return cfg
    outside = ~inside.astype(bool)
    for c, (dx, dy, dz) in enumerate(CORNER_OFFSETS):
        corner = outside[dx : nx - 1 + dx, dy : ny - 1 + dy, dz : nz - 1 + dz]
        cfg |= corner.astype(np.int64) << c
    return cfg


def _edge_point(vol: VoxelVolume, cube: np.ndarray, edge: int) -> np.ndarray:
    a, b = EDGE_CORNER_ARRAY[edge]
    ga = cube + CORNER_OFFSETS[a]
    gb = cube + CORNER_OFFSETS[b]
    pa = vol.origin + vol.cell_size * ga
    pb = vol.origin + vol.cell_size * gb
    if vol.binary:
        return 0.5 * (pa + pb)
    va = float(vol.data[ga[0], ga[1], ga[2]])
    vb = float(vol.data[gb[0], gb[1], gb[2]])
    if vb == va:
        return 0.5 * (pa + pb)
    t = min(1.0, max(0.0, (vol.iso - va) / (vb - va)))
    return pa + t * (pb - pa)


def extract_into(mesh: Mesh, vox: VoxelVolume, pad: bool = True) -> None:
    """
    Replace the contents of `mesh` with the iso-surface of `vox`.

    Args:
        mesh: Destination; cleared first.
        vox: Source volume.
        pad: Surround the volume with one outside layer so surfaces touching
            the grid boundary are closed.
    """
    mesh.clear()
    if vox.empty():
        mesh._log("marching_cubes: empty volume, no surface")
        return

    vol = vox.padded(1) if pad else vox
    cfg = cube_configurations(vol.inside_mask())
    active = np.argwhere((cfg != 0) & (cfg != 255))

    shash = SpatialHash(vol.bounds(), mesh.options)
    verts: List[np.ndarray] = []
    tris: List[List[int]] = []

    for cube in active:
        code = int(cfg[cube[0], cube[1], cube[2]])
        if EDGE_TABLE[code] == 0:
            continue
        row = TRI_TABLE[code]
        local = {}
        for s in range(0, 15, 3):
            if row[s] < 0:
                break
            tri = []
            for e in row[s : s + 3]:
                e = int(e)
                if e not in local:
                    p = _edge_point(vol, cube, e)
                    vid, inserted = shash.find_or_insert(p, len(verts))
                    if inserted:
                        verts.append(p)
                    local[e] = vid
                tri.append(local[e])
            if tri[0] != tri[1] and tri[1] != tri[2] and tri[2] != tri[0]:
                tris.append(tri)

    mesh.set_geometry(np.asarray(verts, dtype=float).reshape(-1, 3), np.asarray(tris, dtype=np.int64).reshape(-1, 3))
    mesh.merge_verts()
    mesh.derive_normals()
    mesh._log(
        "marching_cubes: %d active cubes -> %d vertices, %d triangles",
        active.shape[0],
        mesh.num_verts,
        mesh.num_faces,
    )


def marching_cubes(
    vox: VoxelVolume, options: Optional[MeshOptions] = None, pad: bool = True, verbose: bool = False
) -> Mesh:
    """Build a new mesh from `vox`."""
    mesh = Mesh(options, verbose=verbose)
    extract_into(mesh, vox, pad=pad)
    return mesh
