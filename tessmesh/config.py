"""
Configuration for mesh construction, vertex merging and acceleration.
"""

from __future__ import annotations

from dataclasses import dataclass

from .geometry import DEFAULT_TOLERANCE


@dataclass
class MeshOptions:
    # Points closer than this (mesh units) are the same vertex
    tolerance: float = DEFAULT_TOLERANCE
    # Spatial hash: bins per axis over the bounding box extent
    hash_bins: int = 1024
    # Spatial hash: prime modulus applied to the mixed key
    hash_table_size: int = 1_000_003
    # Bounding-sphere acceleration for point containment
    sphere_accel: bool = False
    spheres_per_dim: int = 5
    accel_min_triangles: int = 100

    def __post_init__(self) -> None:
        if self.tolerance < 0.0:
            raise ValueError("tolerance must be >= 0")
        if int(self.hash_bins) < 1:
            raise ValueError("hash_bins must be >= 1")
        if int(self.hash_table_size) < 1:
            raise ValueError("hash_table_size must be >= 1")
        if int(self.spheres_per_dim) < 1:
            raise ValueError("spheres_per_dim must be >= 1")
        self.hash_bins = int(self.hash_bins)
        self.hash_table_size = int(self.hash_table_size)
        self.spheres_per_dim = int(self.spheres_per_dim)
        self.accel_min_triangles = int(self.accel_min_triangles)


DEFAULT_OPTIONS = MeshOptions()
