"""
Voxel volumes consumed by the marching-cubes extractor.

A `VoxelVolume` wraps a 3D numpy array sampled at grid points
``origin + (i, j, k) * cell_size``. Boolean arrays are binary occupancy
(inside = True); numeric arrays are scalar densities where a grid point is
inside when its value is at or above `iso`.

Persistence:
- text (`to_txt` / `from_txt`): a header line ``nx ny nz kind``, a line
  ``cell_size ox oy oz iso``, then one line of ``nz`` values per (i, j).
- compressed numpy (`save` / `load`): ``.npz`` with the array and metadata.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from .geometry import BoundBox, Point

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class VoxelVolume:
    """
    Regular 3D grid of occupancy or density samples.

    Args:
        data: (nx, ny, nz) array; bool for binary occupancy, numeric for density.
        cell_size: Distance between adjacent grid points.
        origin: Position of grid point (0, 0, 0).
        iso: Density threshold (ignored for binary volumes).
    """

    def __init__(
        self,
        data: np.ndarray,
        cell_size: float = 1.0,
        origin: Sequence[float] = (0.0, 0.0, 0.0),
        iso: float = 0.5,
    ):
        arr = np.asarray(data)
        if arr.ndim != 3:
            raise ValueError(f"Voxel data must be 3D, got shape {arr.shape}")
        if float(cell_size) <= 0.0:
            raise ValueError("cell_size must be > 0")
        if arr.dtype != bool and not np.issubdtype(arr.dtype, np.number):
            raise TypeError(f"Unsupported voxel dtype: {arr.dtype}")
        self.data = arr
        self.cell_size = float(cell_size)
        self.origin = np.asarray(origin, dtype=float).reshape(3)
        self.iso = float(iso)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def binary(self) -> bool:
        return self.data.dtype == bool

    @property
    def dims(self) -> Tuple[int, int, int]:
        nx, ny, nz = self.data.shape
        return int(nx), int(ny), int(nz)

    def inside_mask(self) -> np.ndarray:
        if self.binary:
            return self.data
        return self.data >= self.iso

    def is_inside(self, i: int, j: int, k: int) -> bool:
        """Occupancy of grid point (i, j, k); points off the grid are outside."""
        nx, ny, nz = self.dims
        if not (0 <= i < nx and 0 <= j < ny and 0 <= k < nz):
            return False
        if self.binary:
            return bool(self.data[i, j, k])
        return bool(self.data[i, j, k] >= self.iso)

    def value(self, i: int, j: int, k: int) -> float:
        return float(self.data[i, j, k])

    def set(self, i: int, j: int, k: int, val) -> None:
        self.data[i, j, k] = val

    def point_at(self, i: float, j: float, k: float) -> Point:
        return Point.from_array(self.origin + self.cell_size * np.array([i, j, k], dtype=float))

    def bounds(self) -> Optional[BoundBox]:
        if self.data.size == 0:
            return None
        hi = self.origin + self.cell_size * (np.array(self.dims, dtype=float) - 1.0)
        return BoundBox(Point.from_array(self.origin), Point.from_array(hi))

    def empty(self) -> bool:
        """True when the volume has no cells or no inside grid points."""
        if self.data.size == 0 or min(self.dims) < 1:
            return True
        return not bool(np.any(self.inside_mask()))

    def count_inside(self) -> int:
        return int(np.count_nonzero(self.inside_mask()))

    # ------------------------------------------------------------------
    # Derived volumes
    # ------------------------------------------------------------------
    def padded(self, width: int = 1) -> "VoxelVolume":
        """Copy surrounded by `width` layers of outside samples."""
        w = int(width)
        if w <= 0:
            return VoxelVolume(self.data.copy(), self.cell_size, self.origin, self.iso)
        if self.binary:
            fill = False
        else:
            lowest = float(self.data.min()) if self.data.size else self.iso
            fill = min(lowest, self.iso) - 1.0
        arr = np.pad(self.data, w, mode="constant", constant_values=fill)
        origin = self.origin - w * self.cell_size
        return VoxelVolume(arr, self.cell_size, origin, self.iso)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_txt(self, path: str) -> bool:
        """Write the grid as text; returns False if the file cannot be written."""
        nx, ny, nz = self.dims
        kind = "binary" if self.binary else "scalar"
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(f"{nx} {ny} {nz} {kind}\n")
                ox, oy, oz = (float(v) for v in self.origin)
                f.write(f"{self.cell_size:.17g} {ox:.17g} {oy:.17g} {oz:.17g} {self.iso:.17g}\n")
                for i in range(nx):
                    for j in range(ny):
                        row = self.data[i, j, :]
                        if self.binary:
                            f.write(" ".join("1" if v else "0" for v in row))
                        else:
                            f.write(" ".join(f"{float(v):.17g}" for v in row))
                        f.write("\n")
        except OSError as e:
            logger.warning("Failed writing voxel grid %s: %s", path, e)
            return False
        return True

    @staticmethod
    def from_txt(path: str) -> "VoxelVolume":
        """
        Read a grid written by `to_txt`.

        Raises:
            ValueError: if the header or row counts are malformed.
        """
        with open(path, "r", encoding="utf-8") as f:
            lines = [ln.strip() for ln in f if ln.strip()]
        if len(lines) < 2:
            raise ValueError("Voxel grid file is missing its header")
        head = lines[0].split()
        if len(head) != 4:
            raise ValueError(f"Invalid voxel grid header: {lines[0]!r}")
        try:
            nx, ny, nz = int(head[0]), int(head[1]), int(head[2])
            cell, ox, oy, oz, iso = (float(v) for v in lines[1].split())
        except ValueError as e:
            raise ValueError("Invalid voxel grid header values") from e
        kind = head[3]
        if kind not in ("binary", "scalar"):
            raise ValueError(f"Unknown voxel grid kind: {kind}")
        rows = lines[2:]
        if len(rows) != nx * ny:
            raise ValueError(f"Expected {nx * ny} grid rows, got {len(rows)}")
        dtype = bool if kind == "binary" else float
        data = np.zeros((nx, ny, nz), dtype=dtype)
        for r, line in enumerate(rows):
            vals = line.split()
            if len(vals) != nz:
                raise ValueError(f"Row {r}: expected {nz} values, got {len(vals)}")
            i, j = divmod(r, ny)
            if kind == "binary":
                data[i, j, :] = [v != "0" for v in vals]
            else:
                data[i, j, :] = [float(v) for v in vals]
        return VoxelVolume(data, cell, (ox, oy, oz), iso)

    def save(self, path: str) -> None:
        np.savez_compressed(
            path,
            data=self.data,
            cell_size=self.cell_size,
            origin=self.origin,
            iso=self.iso,
        )

    @staticmethod
    def load(path: str) -> "VoxelVolume":
        with np.load(path) as npz:
            return VoxelVolume(
                npz["data"],
                float(npz["cell_size"]),
                npz["origin"],
                float(npz["iso"]),
            )
