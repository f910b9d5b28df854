"""Edge topology of a finished mesh: directed edges, outline, containment.

Every element contributes its edges in winding order. An edge used by exactly
one element lies on the mesh outline; chaining those edges gives one closed
ring for the outer boundary plus one per island.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

if TYPE_CHECKING:
    from .mesh_obj import Mesh

__all__ = ["BoundaryPolygon", "boundary_polygon", "directed_edges", "outline_edges"]

logger = logging.getLogger(__name__)

# points tested per block in contains_points (memory ~ block x edges)
_POINT_BLOCK = 4096


def directed_edges(mesh: "Mesh") -> tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.intp]]:
    """Return ``(start, end, owner)``: node rows of each edge and its element row.

    Edges come in element order, then in winding order within an element.
    """
    rows = mesh.element_rows()
    nxt = np.roll(rows, -1, axis=1)
    tri = mesh.elements.sizes == 3
    nxt[tri, 2] = rows[tri, 0]
    owner = np.repeat(np.arange(len(rows), dtype=np.intp), 4)
    start = rows.ravel()
    end = nxt.ravel()
    used = start >= 0
    return start[used], end[used], owner[used]


def outline_edges(mesh: "Mesh") -> NDArray[np.intp]:
    """Directed edges (node rows, shape ``(m, 2)``) used by a single element."""
    start, end, _ = directed_edges(mesh)
    if start.size == 0:
        return np.zeros((0, 2), dtype=np.intp)
    key = np.stack([np.minimum(start, end), np.maximum(start, end)], axis=1)
    _, inverse, counts = np.unique(key, axis=0, return_inverse=True, return_counts=True)
    once = counts[inverse.ravel()] == 1
    return np.stack([start[once], end[once]], axis=1)


def _chain_rings(edges: NDArray[np.intp]) -> list[list[int]]:
    """Join edges end to end into rings of node rows (first == last when closed)."""
    touching: dict[int, list[int]] = defaultdict(list)
    pairs = edges.tolist()
    for i, (a, b) in enumerate(pairs):
        touching[a].append(i)
        touching[b].append(i)

    used = [False] * len(pairs)
    rings: list[list[int]] = []
    for first in range(len(pairs)):
        if used[first]:
            continue
        used[first] = True
        ring = list(pairs[first])
        while ring[-1] != ring[0]:
            tail = ring[-1]
            nxt = next((i for i in touching[tail] if not used[i]), None)
            if nxt is None:
                logger.warning(f"Mesh outline is not closed at node row {tail}")
                break
            used[nxt] = True
            a, b = pairs[nxt]
            ring.append(b if a == tail else a)
        rings.append(ring)
    return rings


@dataclass(frozen=True, slots=True, eq=False)
class BoundaryPolygon:
    """Mesh outline: node-id rings and the coordinates of their edges."""

    rings: tuple[tuple[int, ...], ...]
    segments: NDArray[np.float64]  # (n_edges, 2, 2) start/end xy

    def __len__(self) -> int:
        return len(self.rings)

    def contains_points(self, points: ArrayLike) -> NDArray[np.bool_]:
        """Even-odd test of ``(n, 2)`` points against every outline edge.

        Island rings count as holes. Points lying exactly on the outline may
        fall either way.
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        inside = np.zeros(len(pts), dtype=bool)
        if len(self.segments) == 0:
            return inside

        x1, y1 = self.segments[:, 0, 0], self.segments[:, 0, 1]
        x2, y2 = self.segments[:, 1, 0], self.segments[:, 1, 1]
        for lo in range(0, len(pts), _POINT_BLOCK):
            block = pts[lo : lo + _POINT_BLOCK]
            px = block[:, 0:1]
            py = block[:, 1:2]
            straddle = (y1 > py) != (y2 > py)
            with np.errstate(divide="ignore", invalid="ignore"):
                x_cross = x1 + (py - y1) * (x2 - x1) / (y2 - y1)
            hits = np.count_nonzero(straddle & (px < x_cross), axis=1)
            inside[lo : lo + len(block)] = hits % 2 == 1
        return inside


def boundary_polygon(mesh: "Mesh") -> BoundaryPolygon:
    edges = outline_edges(mesh)
    ids = mesh.nodes.ids
    rings = tuple(tuple(int(ids[r]) for r in ring) for ring in _chain_rings(edges))
    segments = mesh.nodes.xy[edges] if len(edges) else np.zeros((0, 2, 2))
    segments.setflags(write=False)
    logger.debug(f"Mesh outline has {len(rings)} rings and {len(edges)} edges")
    return BoundaryPolygon(rings=rings, segments=segments)
