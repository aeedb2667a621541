"""
Shared 3D object transform state.

Provides a lightweight base class `Object3D` holding the placement of a shape
in the scene (uniform scale, translation, rotation angles about x, y and z)
together with its render colour, and composing them into a single 4x4
homogeneous matrix. Geometry is never modified by these setters; the matrix is
applied when geometry is packed for rendering.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import trimesh

from .geometry import Vector

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Colour = Tuple[float, float, float, float]

DEFAULT_COLOUR: Colour = (0.7, 0.7, 0.75, 1.0)


class Object3D:
    """
    Base class for renderable objects carrying scale, translation, rotation
    angles (degrees) and an RGBA colour.
    """

    def __init__(self) -> None:
        self.scale: float = 1.0
        self.trx: Vector = Vector(0.0, 0.0, 0.0)
        self.xrot: float = 0.0
        self.yrot: float = 0.0
        self.zrot: float = 0.0
        self.col: Colour = DEFAULT_COLOUR

    # ---- setters / getters ---------------------------------------------
    def set_scale(self, scf: float) -> None:
        self.scale = float(scf)

    def get_scale(self) -> float:
        return self.scale

    def set_translation(self, tvec: Vector) -> None:
        if not isinstance(tvec, Vector):
            tvec = Vector.from_array(tvec)
        self.trx = tvec

    def get_translation(self) -> Vector:
        return self.trx

    def set_rotations(self, ax: float, ay: float, az: float) -> None:
        self.xrot = float(ax)
        self.yrot = float(ay)
        self.zrot = float(az)

    def get_rotations(self) -> Tuple[float, float, float]:
        return self.xrot, self.yrot, self.zrot

    def set_colour(self, col: Sequence[float]) -> None:
        vals = [float(c) for c in col]
        if len(vals) == 3:
            vals.append(1.0)
        if len(vals) != 4:
            raise ValueError("Colour must have 3 or 4 components")
        self.col = (vals[0], vals[1], vals[2], vals[3])

    def get_colour(self) -> Colour:
        return self.col

    # ---- composite matrix ----------------------------------------------
    def build_transform(self) -> np.ndarray:
        """Composite translation * Rx * Ry * Rz * scale as a 4x4 matrix."""
        T = trimesh.transformations.translation_matrix(self.trx.as_array())
        Rx = trimesh.transformations.rotation_matrix(np.radians(self.xrot), [1, 0, 0])
        Ry = trimesh.transformations.rotation_matrix(np.radians(self.yrot), [0, 1, 0])
        Rz = trimesh.transformations.rotation_matrix(np.radians(self.zrot), [0, 0, 1])
        S = np.eye(4, dtype=float)
        S[0, 0] = S[1, 1] = S[2, 2] = self.scale
        return T @ Rx @ Ry @ Rz @ S


def transform_points(P: np.ndarray, M: np.ndarray) -> np.ndarray:
    """Apply a 4x4 homogeneous matrix to an (N, 3) point array."""
    P = np.asarray(P, dtype=float).reshape(-1, 3)
    if P.size == 0:
        return P.copy()
    ones = np.ones((P.shape[0], 1), dtype=float)
    ph = np.hstack([P, ones])
    out = (np.asarray(M, dtype=float) @ ph.T).T
    w = out[:, 3:4]
    w = np.where(np.abs(w) > 0.0, w, 1.0)
    return out[:, :3] / w


def transform_normals(N: np.ndarray, M: np.ndarray) -> np.ndarray:
    """Transform (N, 3) normals by the inverse-transpose of M's 3x3 block."""
    N = np.asarray(N, dtype=float).reshape(-1, 3)
    if N.size == 0:
        return N.copy()
    A = np.asarray(M, dtype=float)[:3, :3]
    try:
        Ait = np.linalg.inv(A).T
    except np.linalg.LinAlgError:
        logger.debug("Singular transform; normals left untransformed")
        Ait = np.eye(3, dtype=float)
    out = N @ Ait.T
    lens = np.linalg.norm(out, axis=1, keepdims=True)
    return np.divide(out, lens, out=np.zeros_like(out), where=lens > 0.0)


def combined_matrix(model: np.ndarray, view: Optional[np.ndarray]) -> np.ndarray:
    if view is None:
        return np.asarray(model, dtype=float)
    V = np.asarray(view, dtype=float)
    if V.shape != (4, 4):
        raise ValueError("View matrix must be 4x4")
    return V @ np.asarray(model, dtype=float)
