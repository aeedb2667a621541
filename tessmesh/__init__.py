"""
tessmesh: triangle meshes from voxel volumes

A Python package for building, checking and processing closed triangle
meshes. Provides marching-cubes extraction from binary or scalar voxel grids,
tolerance-based vertex merging, structural validity checks, Laplacian
smoothing, free-form deformation, point containment and STL exchange.
"""

__version__ = "0.1.0"

# Configuration and primitives
from .config import DEFAULT_OPTIONS, MeshOptions

# Demo geometry and validity fixtures
from .demo import (
    basic_break_test,
    block_volume,
    cube_mesh,
    isolated_voxel_volume,
    open_tet_test,
    overlap_tet_test,
    save_demo_meshes,
    sphere_volume,
    torus_volume,
    touch_tets_test,
    valid_tet_test,
)
from .geometry import BoundBox, Point, Vector

# Surface extraction
from .marching import marching_cubes

# Mesh store (primary representation)
from .mesh import Edge, Mesh, Triangle, same_edge, same_triangle
from .object3d import Object3D
from .shapes import Cylinder, Shape, ShapeGeometry, Sphere, Square
from .spatial_hash import EdgeHash, SpatialHash
from .voxels import VoxelVolume

__all__ = [
    # Mesh (primary representation)
    "Mesh",
    "Triangle",
    "Edge",
    "same_triangle",
    "same_edge",
    "MeshOptions",
    "DEFAULT_OPTIONS",
    # Primitives
    "Point",
    "Vector",
    "BoundBox",
    "Object3D",
    # Shapes
    "Shape",
    "ShapeGeometry",
    "Sphere",
    "Cylinder",
    "Square",
    # Hashing
    "SpatialHash",
    "EdgeHash",
    # Voxels and extraction
    "VoxelVolume",
    "marching_cubes",
    # Demo geometry
    "valid_tet_test",
    "basic_break_test",
    "touch_tets_test",
    "open_tet_test",
    "overlap_tet_test",
    "cube_mesh",
    "isolated_voxel_volume",
    "block_volume",
    "sphere_volume",
    "torus_volume",
    "save_demo_meshes",
]
