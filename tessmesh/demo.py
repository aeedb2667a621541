"""
Demo and test geometry for tessmesh.

Provides small hand-built meshes that exercise the validity checks (a valid
tetrahedron and four deliberately broken variants), a unit cube, and voxel
volumes for marching cubes (a single voxel, a solid block, sampled sphere
and torus densities).
"""

import logging
import os
from typing import Dict, Optional, Tuple

import numpy as np

from .mesh import Mesh
from .voxels import VoxelVolume

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Unit right tetrahedron, faces wound counter-clockwise seen from outside
_TET_VERTS = np.array(
    [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]],
    dtype=float,
)
_TET_TRIS = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]], dtype=np.int64)


def _target(mesh: Optional[Mesh]) -> Mesh:
    return mesh if mesh is not None else Mesh()


def _finish(mesh: Mesh, verts: np.ndarray, tris: np.ndarray) -> Mesh:
    mesh.set_geometry(verts, tris)
    mesh.derive_normals()
    return mesh


# ============================================================================
# Validity fixtures
# ============================================================================


def valid_tet_test(mesh: Optional[Mesh] = None) -> Mesh:
    """Closed, connected, consistently wound tetrahedron; passes every check."""
    return _finish(_target(mesh), _TET_VERTS, _TET_TRIS)


def basic_break_test(mesh: Optional[Mesh] = None) -> Mesh:
    """
    Tetrahedron with one of each basic fault: a duplicate of vertex 1
    (index 4), an unreferenced vertex (index 5) and a triangle referring to
    vertex 7, which does not exist.
    """
    verts = np.vstack([_TET_VERTS, _TET_VERTS[1], [5.0, 5.0, 5.0]])
    tris = np.vstack([_TET_TRIS, [[1, 4, 7]]])
    return _finish(_target(mesh), verts, tris)


def touch_tets_test(mesh: Optional[Mesh] = None) -> Mesh:
    """
    Two tetrahedra meeting only at the origin. The second one stores its own
    copy of the origin (index 4), so the pieces are disconnected until
    `merge_verts` folds the copies together.
    """
    mirrored = -_TET_VERTS
    # Point reflection flips orientation; reverse the windings to stay outward.
    mirrored_tris = _TET_TRIS[:, ::-1] + 4
    verts = np.vstack([_TET_VERTS, mirrored])
    tris = np.vstack([_TET_TRIS, mirrored_tris])
    return _finish(_target(mesh), verts, tris)


def open_tet_test(mesh: Optional[Mesh] = None) -> Mesh:
    """Tetrahedron with its slanted face removed: connected but not closed."""
    return _finish(_target(mesh), _TET_VERTS, _TET_TRIS[:3])


def overlap_tet_test(mesh: Optional[Mesh] = None) -> Mesh:
    """Tetrahedron whose four faces are all listed twice over the same vertices."""
    return _finish(_target(mesh), _TET_VERTS, np.vstack([_TET_TRIS, _TET_TRIS]))


def cube_mesh(side: float = 1.0, mesh: Optional[Mesh] = None) -> Mesh:
    """Axis-aligned cube with one corner at the origin (8 vertices, 12 triangles)."""
    m = _target(mesh)
    corners = np.array(
        [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0], [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1]],
        dtype=float,
    )
    m.set_geometry(corners * float(side), np.zeros((0, 3), dtype=np.int64))
    m.set_cube_triangles()
    m.derive_normals()
    return m


# ============================================================================
# Voxel volumes
# ============================================================================


def isolated_voxel_volume() -> VoxelVolume:
    """A single inside grid point."""
    return VoxelVolume(np.ones((1, 1, 1), dtype=bool))


def block_volume(n: int = 3, cell_size: float = 1.0) -> VoxelVolume:
    """Solid n x n x n block of inside grid points."""
    if n < 1:
        raise ValueError("n must be >= 1")
    return VoxelVolume(np.ones((n, n, n), dtype=bool), cell_size=cell_size)


def sphere_volume(
    radius: float = 4.5,
    cell_size: float = 1.0,
    center: Tuple[float, float, float] = (0.0, 0.0, 0.0),
    margin: int = 2,
) -> VoxelVolume:
    """
    Scalar density ``radius - distance_to_center`` sampled on a grid around
    the sphere; the surface is the zero iso-level.
    """
    if radius <= 0.0:
        raise ValueError("radius must be > 0")
    half = int(np.ceil(radius / cell_size)) + int(margin)
    ticks = np.arange(-half, half + 1, dtype=float) * cell_size
    X, Y, Z = np.meshgrid(ticks, ticks, ticks, indexing="ij")
    dist = np.sqrt(X**2 + Y**2 + Z**2)
    origin = np.asarray(center, dtype=float) + ticks[0]
    return VoxelVolume(radius - dist, cell_size=cell_size, origin=origin, iso=0.0)


def torus_volume(
    major_radius: float = 6.0,
    minor_radius: float = 2.1,
    cell_size: float = 0.5,
) -> VoxelVolume:
    """Scalar density of a torus around the z axis; surface at iso 0."""
    if minor_radius <= 0.0 or major_radius <= minor_radius:
        raise ValueError("Need 0 < minor_radius < major_radius")
    reach = major_radius + minor_radius + 2 * cell_size
    n = int(np.ceil(reach / cell_size))
    ticks = np.arange(-n, n + 1, dtype=float) * cell_size
    X, Y, Z = np.meshgrid(ticks, ticks, ticks, indexing="ij")
    ring = np.sqrt(X**2 + Y**2) - major_radius
    dens = minor_radius - np.sqrt(ring**2 + Z**2)
    return VoxelVolume(dens, cell_size=cell_size, origin=(ticks[0], ticks[0], ticks[0]), iso=0.0)


def save_demo_meshes(output_dir: str = "data/mesh") -> Dict[str, str]:
    """
    Extract demo surfaces and write them as STL files.

    Returns:
        Mapping of demo name to written file path.
    """
    from .marching import marching_cubes

    os.makedirs(output_dir, exist_ok=True)
    demos = {
        "voxel": marching_cubes(isolated_voxel_volume()),
        "block": marching_cubes(block_volume(4)),
        "sphere": marching_cubes(sphere_volume(6.5)),
        "torus": marching_cubes(torus_volume()),
    }
    paths: Dict[str, str] = {}
    for name, mesh in demos.items():
        path = os.path.join(output_dir, f"{name}.stl")
        if mesh.write_stl(path):
            paths[name] = path
            logger.info("Saved %s: %d vertices, %d faces", path, mesh.num_verts, mesh.num_faces)
    return paths
