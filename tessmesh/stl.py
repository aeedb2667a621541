"""
Binary STL exchange for `Mesh`.

STL stores an unindexed triangle soup: a face normal and three vertex
positions per triangle. Reading rebuilds shared vertices with `merge_verts`;
writing expands shared vertices back into per-triangle copies. The byte
layout is handled by trimesh.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import trimesh

if TYPE_CHECKING:
    from .mesh import Mesh

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def read_stl(mesh: "Mesh", filename: str) -> bool:
    """
    Replace `mesh` with the contents of an STL file.

    Returns:
        True on success. On failure the mesh is left unchanged.
    """
    try:
        with open(filename, "rb") as f:
            tm = trimesh.load_mesh(f, file_type="stl", process=False)
    except Exception as e:
        logger.warning("Failed reading STL %s: %s", filename, e)
        return False
    if not isinstance(tm, trimesh.Trimesh):
        logger.warning("STL %s did not load as a single triangle mesh", filename)
        return False

    tri = np.asarray(tm.triangles, dtype=float).reshape(-1, 3, 3)
    normals = np.asarray(tm.face_normals, dtype=float).reshape(-1, 3)
    records = [(normals[t], tri[t, 0], tri[t, 1], tri[t, 2]) for t in range(tri.shape[0])]

    # Build into a scratch mesh so a failure cannot leave `mesh` half populated.
    scratch = mesh.copy()
    scratch.from_records(records)
    mesh.verts, mesh.base, mesh.norms = scratch.verts, scratch.base, scratch.norms
    mesh.tris, mesh.face_norms = scratch.tris, scratch.face_norms
    mesh.invalidate_accel()
    mesh._log("read_stl: %s -> %d vertices, %d triangles", filename, mesh.num_verts, mesh.num_faces)
    return True


def write_stl(mesh: "Mesh", filename: str) -> bool:
    """Write `mesh` as binary STL; returns False if the file cannot be written."""
    try:
        tm = mesh.to_trimesh()
        tm.export(file_obj=filename, file_type="stl")
    except Exception as e:
        logger.warning("Failed writing STL %s: %s", filename, e)
        return False
    mesh._log("write_stl: %s <- %d triangles", filename, mesh.num_faces)
    return True
