"""
Indexed triangle mesh and its geometric operations.

`Mesh` owns an ordered vertex array (`verts`), the undeformed rest positions
(`base`), per-vertex normals (`norms`), indexed triangles (`tris`) and their
face normals (`face_norms`). The three per-vertex arrays always have the same
length. Triangles wind counter-clockwise about their outward normal.

Populating a mesh:
- procedurally (`add_vertex` / `add_triangle`, `set_geometry`, or the
  fixtures in `tessmesh.demo`),
- from a voxel volume (`marching_cubes`),
- by appending another mesh (`merge_mesh`),
- from disk (`read_stl`) or from triangle records / trimesh objects.

Validity checks, smoothing, deformation and the bounding-sphere accelerator
live in their own modules; the methods here are thin entry points to them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import trimesh

from . import accel, processing, validity
from .config import MeshOptions
from .geometry import BoundBox, Point, Vector
from .object3d import Object3D, combined_matrix
from .shapes import ShapeGeometry, Sphere, pack_geometry
from .spatial_hash import EdgeHash, SpatialHash

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Generic direction for containment rays; avoids grazing axis-aligned edges.
_RAY_DIR = np.array([0.5773502691896258, 0.6123724356957945, 0.5400617248673217])

Record = Tuple[Tuple[float, float, float], Tuple[float, float, float], Tuple[float, float, float], Tuple[float, float, float]]


# ============================================================================
# Topology value types
# ============================================================================


@dataclass
class Triangle:
    """Three vertex indices, counter-clockwise about the outward normal `n`."""

    v: Tuple[int, int, int]
    n: Vector = field(default_factory=Vector)

    def vertex_found(self, vertex: int) -> bool:
        return vertex in self.v

    def derive_normal(self, verts: np.ndarray) -> Vector:
        p0, p1, p2 = (Point.from_array(verts[i]) for i in self.v)
        a = Vector.diff(p1, p0)
        b = Vector.diff(p2, p0)
        self.n = a.cross(b).normalize()
        return self.n

    def edges(self) -> List["Edge"]:
        a, b, c = self.v
        return [Edge((a, b)), Edge((b, c)), Edge((c, a))]


@dataclass
class Edge:
    """Two vertex indices; direction matters for winding checks."""

    v: Tuple[int, int]


def same_triangle(t1: Triangle, t2: Triangle) -> bool:
    """True if both triangles index the same three vertices (any order)."""
    return sorted(t1.v) == sorted(t2.v)


def same_edge(e1: Edge, e2: Edge) -> Tuple[bool, bool]:
    """
    Compare two edges.

    Returns:
        (same, opposite): `same` if they join the same two vertices, and
        `opposite` if in addition they are traversed in reverse directions.
    """
    if e1.v == e2.v:
        return True, False
    if e1.v == (e2.v[1], e2.v[0]):
        return True, True
    return False, False


# ============================================================================
# Mesh
# ============================================================================


class Mesh(Object3D):
    """
    A triangle mesh in 3D space. Ideally a closed 2-manifold; the validity
    checks report whether it is.

    Args:
        options: Tolerance, hashing and acceleration settings.
        verbose: Log per-operation summaries at INFO instead of DEBUG.
    """

    def __init__(self, options: Optional[MeshOptions] = None, verbose: bool = False):
        super().__init__()
        self.options: MeshOptions = options if options is not None else MeshOptions()
        self.verbose = bool(verbose)
        self.geometry: ShapeGeometry = ShapeGeometry.empty()
        self.boundspheres: List[Sphere] = []
        self.clear()

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    def clear(self) -> None:
        """Remove all vertices and triangles."""
        self.verts = np.zeros((0, 3), dtype=float)
        self.base = np.zeros((0, 3), dtype=float)
        self.norms = np.zeros((0, 3), dtype=float)
        self.tris = np.zeros((0, 3), dtype=np.int64)
        self.face_norms = np.zeros((0, 3), dtype=float)
        self.invalidate_accel()

    def empty(self) -> bool:
        return self.verts.shape[0] == 0

    @property
    def num_verts(self) -> int:
        return int(self.verts.shape[0])

    @property
    def num_faces(self) -> int:
        return int(self.tris.shape[0])

    def get_verts(self) -> np.ndarray:
        return self.verts

    def get_base(self) -> np.ndarray:
        return self.base

    def get_norms(self) -> np.ndarray:
        return self.norms

    def get_tris(self) -> np.ndarray:
        return self.tris

    def triangle(self, t: int) -> Triangle:
        a, b, c = (int(x) for x in self.tris[t])
        n = Vector.from_array(self.face_norms[t]) if t < self.face_norms.shape[0] else Vector()
        return Triangle((a, b, c), n)

    def add_vertex(self, p) -> int:
        """Append a vertex (rest state equal to its position); returns its index."""
        row = Point.from_array(p).as_array() if not isinstance(p, Point) else p.as_array()
        self.verts = np.vstack([self.verts, row])
        self.base = np.vstack([self.base, row])
        self.norms = np.vstack([self.norms, np.zeros(3)])
        self.invalidate_accel()
        return self.num_verts - 1

    def add_triangle(self, v0: int, v1: int, v2: int) -> int:
        """Append a triangle without checking its indices; returns its index."""
        self.tris = np.vstack([self.tris, np.array([[v0, v1, v2]], dtype=np.int64)])
        self.face_norms = np.vstack([self.face_norms, np.zeros(3)])
        self.invalidate_accel()
        return self.num_faces - 1

    def set_geometry(self, verts, tris) -> None:
        """Replace all geometry; `base` is reset to `verts`, normals to zero."""
        V = np.asarray(verts, dtype=float).reshape(-1, 3)
        T = np.asarray(tris, dtype=np.int64).reshape(-1, 3)
        self.verts = V.copy()
        self.base = V.copy()
        self.norms = np.zeros_like(V)
        self.tris = T.copy()
        self.face_norms = np.zeros((T.shape[0], 3), dtype=float)
        self.invalidate_accel()

    def set_cube_triangles(self) -> None:
        """
        Triangulate the 8 corners of a box stored in the order
        (0,0,0) (1,0,0) (1,1,0) (0,1,0) (0,0,1) (1,0,1) (1,1,1) (0,1,1).
        """
        self.tris = np.array(
            [
                [0, 3, 2], [0, 2, 1],  # bottom
                [4, 5, 6], [4, 6, 7],  # top
                [0, 1, 5], [0, 5, 4],  # front
                [3, 7, 6], [3, 6, 2],  # back
                [0, 4, 7], [0, 7, 3],  # left
                [1, 2, 6], [1, 6, 5],  # right
            ],
            dtype=np.int64,
        )
        self.face_norms = np.zeros((12, 3), dtype=float)
        self.invalidate_accel()

    def copy(self) -> "Mesh":
        m = Mesh(replace(self.options), self.verbose)
        m.verts = self.verts.copy()
        m.base = self.base.copy()
        m.norms = self.norms.copy()
        m.tris = self.tris.copy()
        m.face_norms = self.face_norms.copy()
        m.scale, m.trx = self.scale, self.trx
        m.xrot, m.yrot, m.zrot = self.xrot, self.yrot, self.zrot
        m.col = self.col
        return m

    def bounds(self) -> Optional[BoundBox]:
        return BoundBox.from_points(self.verts)

    def invalidate_accel(self) -> None:
        """Drop the bounding-sphere structure after geometry changes."""
        self.boundspheres = []

    def _log(self, msg: str, *args: Any) -> None:
        if self.verbose:
            logger.info(msg, *args)
        else:
            logger.debug(msg, *args)

    # ------------------------------------------------------------------
    # Hashing
    # ------------------------------------------------------------------
    def hash_vert(self, pnt, bbox: Optional[BoundBox]) -> int:
        return SpatialHash(bbox, self.options).hash_key(pnt)

    def hash_edge(self, v0: int, v1: int) -> int:
        return EdgeHash(self.options.hash_table_size).hash_edge(v0, v1)

    def find_vert(self, pnt) -> Optional[int]:
        """Index of a vertex within tolerance of `pnt`, or None (linear scan)."""
        if self.empty():
            return None
        p = pnt.as_array() if isinstance(pnt, Point) else np.asarray(pnt, dtype=float)
        d2 = np.sum((self.verts - p[None, :]) ** 2, axis=1)
        i = int(np.argmin(d2))
        tol = self.options.tolerance
        return i if d2[i] <= tol * tol else None

    # ------------------------------------------------------------------
    # Merging and normals
    # ------------------------------------------------------------------
    def merge_verts(self) -> int:
        """
        Merge vertices that coincide within tolerance.

        Triangles are rewired to the first-seen vertex of each group, merged
        duplicates are dropped from `verts`/`base`/`norms`, and triangles that
        collapse to fewer than three distinct vertices are removed. Winding of
        the surviving triangles is unchanged.

        Returns:
            Number of vertices removed.
        """
        n = self.num_verts
        if n == 0:
            return 0

        shash = SpatialHash(self.bounds(), self.options)
        remap = np.empty(n, dtype=np.int64)
        keep: List[int] = []
        for i in range(n):
            p = self.verts[i]
            found = shash.find(p)
            if found is None:
                remap[i] = len(keep)
                shash.insert(p, len(keep))
                keep.append(i)
            else:
                remap[i] = found

        removed = n - len(keep)
        if removed:
            idx = np.asarray(keep, dtype=np.int64)
            self.verts = self.verts[idx]
            self.base = self.base[idx]
            self.norms = self.norms[idx]

        dropped = 0
        if self.num_faces:
            T = self.tris.copy()
            in_range = (T >= 0) & (T < n)
            T[in_range] = remap[T[in_range]]
            collapsed = (T[:, 0] == T[:, 1]) | (T[:, 1] == T[:, 2]) | (T[:, 2] == T[:, 0])
            dropped = int(np.count_nonzero(collapsed))
            self.tris = T[~collapsed]
            self.face_norms = self.face_norms[~collapsed]

        self.invalidate_accel()
        self._log(
            "merge_verts: %d -> %d vertices (%d merged), %d collapsed triangles dropped",
            n,
            self.num_verts,
            removed,
            dropped,
        )
        return removed

    def _valid_tri_mask(self) -> np.ndarray:
        T = self.tris
        if T.shape[0] == 0:
            return np.zeros(0, dtype=bool)
        return np.all((T >= 0) & (T < self.num_verts), axis=1)

    def derive_face_norms(self) -> None:
        """Unit normal of each triangle from its winding; degenerate ones are zero."""
        FN = np.zeros((self.num_faces, 3), dtype=float)
        ok = self._valid_tri_mask()
        if np.any(ok):
            T = self.tris[ok]
            V0 = self.verts[T[:, 0]]
            V1 = self.verts[T[:, 1]]
            V2 = self.verts[T[:, 2]]
            N = np.cross(V1 - V0, V2 - V0)
            lens = np.linalg.norm(N, axis=1, keepdims=True)
            FN[ok] = np.divide(N, lens, out=np.zeros_like(N), where=lens > 0.0)
        self.face_norms = FN

    def derive_vert_norms(self) -> None:
        """Per-vertex normals as the normalized sum of incident face normals."""
        if self.face_norms.shape[0] != self.num_faces:
            self.derive_face_norms()
        acc = np.zeros((self.num_verts, 3), dtype=float)
        ok = self._valid_tri_mask()
        if np.any(ok):
            T = self.tris[ok]
            FN = self.face_norms[ok]
            for k in range(3):
                np.add.at(acc, T[:, k], FN)
        lens = np.linalg.norm(acc, axis=1, keepdims=True)
        self.norms = np.divide(acc, lens, out=np.zeros_like(acc), where=lens > 0.0)

    def derive_normals(self) -> None:
        self.derive_face_norms()
        self.derive_vert_norms()

    def merge_mesh(self, other: "Mesh", last_call: bool = False) -> None:
        """
        Append a copy of `other`'s vertices and triangles.

        Args:
            other: Mesh to copy from; it is not modified or aliased.
            last_call: Merge coincident vertices and re-derive normals once
                all planned merges are done.
        """
        offset = self.num_verts
        self.verts = np.vstack([self.verts, other.verts])
        self.base = np.vstack([self.base, other.base])
        self.norms = np.vstack([self.norms, other.norms])
        self.tris = np.vstack([self.tris, other.tris.astype(np.int64) + offset])
        self.face_norms = np.vstack([self.face_norms, other.face_norms])
        self.invalidate_accel()
        self._log("merge_mesh: appended %d vertices, %d triangles", other.num_verts, other.num_faces)
        if last_call:
            self.merge_verts()
            self.derive_normals()

    # ------------------------------------------------------------------
    # Placement and rendering
    # ------------------------------------------------------------------
    def box_fit(self, sidelen: float) -> None:
        """Centre the bounding box on the origin and scale its longest side to `sidelen`."""
        bb = self.bounds()
        if bb is None:
            return
        c = bb.center().as_array()
        longest = bb.longest_side()
        s = float(sidelen) / longest if longest > 0.0 else 1.0
        self.verts = (self.verts - c) * s
        self.base = (self.base - c) * s
        self.invalidate_accel()

    def gen_geometry(self, view: Optional[np.ndarray] = None) -> ShapeGeometry:
        """
        Pack the mesh as a triangle list of positions and vertex normals with
        this mesh's transform (and an optional 4x4 view matrix) applied.
        """
        ok = self._valid_tri_mask()
        norms = self.norms
        if norms.shape[0] != self.num_verts or not np.any(norms):
            tmp = self.copy()
            tmp.derive_normals()
            norms = tmp.norms
        M = combined_matrix(self.build_transform(), view)
        self.geometry = pack_geometry(self.verts, self.tris[ok], norms, M, self.col)
        return self.geometry

    # ------------------------------------------------------------------
    # Containment
    # ------------------------------------------------------------------
    def build_sphere_accel(self, maxspheres: Optional[int] = None) -> List[Sphere]:
        n = self.options.spheres_per_dim if maxspheres is None else int(maxspheres)
        self.boundspheres = accel.build_sphere_accel(self, n)
        return self.boundspheres

    def _use_accel(self) -> bool:
        return bool(self.options.sphere_accel) and self.num_faces >= self.options.accel_min_triangles

    def point_containment(self, pnt: Point) -> bool:
        """
        Whether `pnt` lies inside the closed mesh, by the parity of ray
        crossings along a fixed generic direction.
        """
        if self.empty() or self.num_faces == 0:
            return False
        ok = np.nonzero(self._valid_tri_mask())[0]
        origin = pnt.as_array() if isinstance(pnt, Point) else np.asarray(pnt, dtype=float)
        if self._use_accel():
            if not self.boundspheres:
                self.build_sphere_accel()
            cand = accel.candidate_triangles(self.boundspheres, origin, _RAY_DIR)
            ok = np.intersect1d(ok, cand)
        if ok.size == 0:
            return False
        hits = _ray_triangle_hits(origin, _RAY_DIR, self.verts, self.tris[ok])
        return bool(hits % 2 == 1)

    # ------------------------------------------------------------------
    # Delegating entry points
    # ------------------------------------------------------------------
    def marching_cubes(self, vox, pad: bool = True) -> None:
        """Replace this mesh with the iso-surface of voxel volume `vox`."""
        from .marching import extract_into

        extract_into(self, vox, pad=pad)

    def laplacian_smooth(self, iterations: int, rate: float) -> None:
        processing.laplacian_smooth(self, iterations, rate)

    def apply_ffd(self, lat) -> None:
        processing.apply_ffd(self, lat)

    def basic_validity(self) -> bool:
        return validity.basic_validity(self)

    def manifold_validity(self) -> bool:
        return validity.manifold_validity(self)

    def connection_validity(self) -> bool:
        return validity.connection_validity(self)

    def read_stl(self, filename: str) -> bool:
        from .stl import read_stl

        return read_stl(self, filename)

    def write_stl(self, filename: str) -> bool:
        from .stl import write_stl

        return write_stl(self, filename)

    def valid_tet_test(self) -> None:
        from .demo import valid_tet_test

        valid_tet_test(self)

    def basic_break_test(self) -> None:
        from .demo import basic_break_test

        basic_break_test(self)

    def touch_tets_test(self) -> None:
        from .demo import touch_tets_test

        touch_tets_test(self)

    def open_tet_test(self) -> None:
        from .demo import open_tet_test

        open_tet_test(self)

    def overlap_tet_test(self) -> None:
        from .demo import overlap_tet_test

        overlap_tet_test(self)

    # ------------------------------------------------------------------
    # Records and interop
    # ------------------------------------------------------------------
    def to_records(self) -> List[Record]:
        """Triangle soup as (normal, v0, v1, v2) tuples; shared vertices are expanded."""
        if self.face_norms.shape[0] != self.num_faces or (self.num_faces and not np.any(self.face_norms)):
            self.derive_face_norms()
        out: List[Record] = []
        for t in np.nonzero(self._valid_tri_mask())[0]:
            a, b, c = self.tris[t]
            out.append(
                (
                    tuple(float(x) for x in self.face_norms[t]),
                    tuple(float(x) for x in self.verts[a]),
                    tuple(float(x) for x in self.verts[b]),
                    tuple(float(x) for x in self.verts[c]),
                )
            )
        return out

    def from_records(self, records: Iterable[Sequence[Sequence[float]]]) -> None:
        """Rebuild from (normal, v0, v1, v2) records, re-deriving shared vertices."""
        soup: List[Sequence[float]] = []
        for rec in records:
            if len(rec) != 4:
                raise ValueError("Each record must be (normal, v0, v1, v2)")
            soup.extend(rec[1:])
        V = np.asarray(soup, dtype=float).reshape(-1, 3)
        T = np.arange(V.shape[0], dtype=np.int64).reshape(-1, 3)
        self.set_geometry(V, T)
        self.merge_verts()
        self.derive_normals()

    def to_trimesh(self) -> trimesh.Trimesh:
        return trimesh.Trimesh(
            vertices=self.verts.copy(), faces=self.tris[self._valid_tri_mask()].copy(), process=False
        )

    @staticmethod
    def from_trimesh(tm: trimesh.Trimesh, options: Optional[MeshOptions] = None) -> "Mesh":
        m = Mesh(options)
        m.set_geometry(np.asarray(tm.vertices, dtype=float), np.asarray(tm.faces, dtype=np.int64))
        m.derive_normals()
        return m

    def analyze(self) -> Dict[str, Any]:
        """Diagnostic summary: counts, bounds, validity flags and trimesh measures."""
        bb = self.bounds()
        props: Dict[str, Any] = {
            "vertex_count": self.num_verts,
            "face_count": self.num_faces,
            "bounds": None if bb is None else [list(bb.min.as_tuple()), list(bb.max.as_tuple())],
            "basic_valid": validity.basic_validity(self),
            "manifold": validity.manifold_validity(self),
            "connected": validity.connection_validity(self),
            "has_normals": bool(self.norms.shape[0] == self.num_verts and np.any(self.norms)),
            "surface_area": 0.0,
            "volume": None,
            "is_watertight": False,
        }
        if self.num_faces:
            tm = self.to_trimesh()
            props["surface_area"] = float(tm.area)
            props["is_watertight"] = bool(tm.is_watertight)
            props["volume"] = float(tm.volume) if tm.is_volume else None
        return props

    # ------------------------------------------------------------------
    # Visualization
    # ------------------------------------------------------------------
    def visualize_3d(
        self,
        title: str = "Mesh",
        color: str = "lightsteelblue",
        *,
        backend: str = "auto",
        show_axes: bool = True,
        opacity: float = 0.9,
    ) -> Optional[object]:
        """Figure of the mesh with plotly or matplotlib; None if unavailable."""
        if backend == "auto":
            try:
                import plotly.graph_objects as go  # noqa: F401

                backend = "plotly"
            except ImportError:
                backend = "matplotlib"

        V = self.verts
        F = self.tris[self._valid_tri_mask()]

        if backend == "plotly":
            try:
                import plotly.graph_objects as go
            except ImportError as e:
                logger.warning("Plotly visualization failed: %s", e)
                return None
            fig = go.Figure(
                data=[
                    go.Mesh3d(
                        x=V[:, 0],
                        y=V[:, 1],
                        z=V[:, 2],
                        i=F[:, 0],
                        j=F[:, 1],
                        k=F[:, 2],
                        color=color,
                        opacity=float(opacity),
                        name="Mesh",
                    )
                ]
            )
            fig.update_layout(
                title=title,
                scene=dict(
                    aspectmode="data",
                    xaxis=dict(visible=show_axes),
                    yaxis=dict(visible=show_axes),
                    zaxis=dict(visible=show_axes),
                ),
            )
            return fig

        if backend == "matplotlib":
            try:
                import matplotlib.pyplot as plt
                from mpl_toolkits.mplot3d.art3d import Poly3DCollection
            except ImportError as e:
                logger.warning("Matplotlib visualization failed: %s", e)
                return None
            fig = plt.figure()
            ax = fig.add_subplot(111, projection="3d")
            if F.shape[0]:
                ax.add_collection3d(Poly3DCollection(V[F], facecolor=color, edgecolor="k", alpha=float(opacity)))
                ax.set_xlim(V[:, 0].min(), V[:, 0].max())
                ax.set_ylim(V[:, 1].min(), V[:, 1].max())
                ax.set_zlim(V[:, 2].min(), V[:, 2].max())
            ax.set_title(title)
            if not show_axes:
                ax.set_axis_off()
            return fig

        raise ValueError(f"Unknown backend: {backend}")


def _ray_triangle_hits(origin: np.ndarray, direction: np.ndarray, V: np.ndarray, T: np.ndarray) -> int:
    """Count triangles crossed by the half-line origin + t*direction, t > 0."""
    eps = 1e-12
    V0 = V[T[:, 0]]
    e1 = V[T[:, 1]] - V0
    e2 = V[T[:, 2]] - V0
    h = np.cross(direction[None, :], e2)
    a = np.einsum("ij,ij->i", e1, h)
    nz = np.abs(a) > eps
    with np.errstate(divide="ignore", invalid="ignore"):
        f = np.where(nz, 1.0 / np.where(nz, a, 1.0), 0.0)
        s = origin[None, :] - V0
        u = f * np.einsum("ij,ij->i", s, h)
        q = np.cross(s, e1)
        v = f * (q @ direction)
        t = f * np.einsum("ij,ij->i", e2, q)
    hit = nz & (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0) & (t > eps)
    return int(np.count_nonzero(hit))
