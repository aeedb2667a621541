"""
Structural checks on an indexed triangle mesh.

- `basic_validity`: every vertex is used, no two vertices coincide within
  tolerance, and every triangle index is in range.
- `manifold_validity`: every directed edge occurs exactly once and its reverse
  exactly once, in another triangle (closed, consistently wound surface).
- `connection_validity`: the vertex/edge graph is a single component.

All checks report with a boolean and never modify the mesh. The connectivity
graph is built with networkx, the same graph that drives Laplacian smoothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import networkx as nx
import numpy as np

from .spatial_hash import EdgeHash, SpatialHash

if TYPE_CHECKING:
    from .mesh import Mesh

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def indices_in_range(mesh: "Mesh") -> bool:
    T = mesh.tris
    if T.shape[0] == 0:
        return True
    return bool(np.all((T >= 0) & (T < mesh.num_verts)))


def vertex_adjacency_graph(mesh: "Mesh") -> nx.Graph:
    """
    Undirected graph over all vertex indices with an edge for each triangle
    side. Isolated vertices are present as nodes without edges.
    """
    G = nx.Graph()
    G.add_nodes_from(range(mesh.num_verts))
    for a, b, c in mesh.tris:
        a, b, c = int(a), int(b), int(c)
        G.add_edge(a, b)
        G.add_edge(b, c)
        G.add_edge(c, a)
    return G


def basic_validity(mesh: "Mesh") -> bool:
    """
    True iff no vertex is unreferenced, no two vertices coincide and no
    triangle refers to a missing vertex. Every violation found is logged.
    """
    ok = True
    n = mesh.num_verts

    if not indices_in_range(mesh):
        bad = np.nonzero(np.any((mesh.tris < 0) | (mesh.tris >= n), axis=1))[0]
        logger.debug("basic validity: %d triangles index missing vertices (first %d)", bad.size, int(bad[0]))
        ok = False

    used = np.zeros(n, dtype=bool)
    T = mesh.tris
    if T.shape[0]:
        flat = T.reshape(-1)
        flat = flat[(flat >= 0) & (flat < n)]
        used[flat] = True
    unused = np.nonzero(~used)[0]
    if unused.size:
        logger.debug("basic validity: %d unreferenced vertices (first %d)", unused.size, int(unused[0]))
        ok = False

    if n:
        shash = SpatialHash(mesh.bounds(), mesh.options)
        dups = 0
        for i in range(n):
            if shash.find(mesh.verts[i]) is not None:
                dups += 1
            else:
                shash.insert(mesh.verts[i], i)
        if dups:
            logger.debug("basic validity: %d duplicate vertices", dups)
            ok = False

    return ok


def manifold_validity(mesh: "Mesh") -> bool:
    """
    True iff each directed edge appears once and its reverse appears once in
    a different triangle. Degenerate triangles and bad indices fail the check.
    """
    if not indices_in_range(mesh):
        logger.debug("manifold validity: triangle indices out of range")
        return False

    ehash = EdgeHash(mesh.options.hash_table_size)
    directed = []
    for t, (a, b, c) in enumerate(mesh.tris):
        a, b, c = int(a), int(b), int(c)
        if a == b or b == c or c == a:
            logger.debug("manifold validity: triangle %d repeats a vertex", t)
            return False
        for v0, v1 in ((a, b), (b, c), (c, a)):
            ehash.add(v0, v1, t)
            directed.append((v0, v1, t))

    for v0, v1, t in directed:
        if ehash.count(v0, v1) != 1:
            logger.debug("manifold validity: edge (%d, %d) used %d times", v0, v1, ehash.count(v0, v1))
            return False
        rev = ehash.triangles_with(v1, v0)
        if len(rev) != 1 or rev[0] == t:
            logger.debug("manifold validity: edge (%d, %d) lacks a single opposite edge", v0, v1)
            return False
    return True


def connection_validity(mesh: "Mesh") -> bool:
    """True iff every vertex is reachable from every other along triangle edges."""
    if mesh.num_verts == 0:
        return True
    if not indices_in_range(mesh):
        logger.debug("connection validity: triangle indices out of range")
        return False
    G = vertex_adjacency_graph(mesh)
    ncomp = nx.number_connected_components(G)
    if ncomp != 1:
        logger.debug("connection validity: %d components", ncomp)
        return False
    return True
