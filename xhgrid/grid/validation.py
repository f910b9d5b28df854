"""Geometric quality report for a finished mesh.

Referential integrity is already guaranteed by the reader; this module looks
at the *shape* of the elements: winding, degenerate cells, concave quads and
neighbours whose shared edge runs the same way in both. Nothing is repaired.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .config import HgridConfig
from .topology import directed_edges

if TYPE_CHECKING:
    from .mesh_obj import Mesh

__all__ = ["MeshValidation", "check_geometry", "signed_areas"]

logger = logging.getLogger(__name__)


@dataclass
class MeshValidation:
    """Element ids (or id pairs) flagged by :func:`check_geometry`."""

    negative_area_elements: list[int] = field(default_factory=list)
    zero_area_elements: list[int] = field(default_factory=list)
    concave_quads: list[int] = field(default_factory=list)
    orientation_conflicts: list[tuple[int, int]] = field(default_factory=list)

    def is_ok(self) -> bool:
        return self.issue_count() == 0

    def issue_count(self) -> int:
        return (
            len(self.negative_area_elements)
            + len(self.zero_area_elements)
            + len(self.concave_quads)
            + len(self.orientation_conflicts)
        )

    def __str__(self) -> str:
        if self.is_ok():
            return "Mesh geometry: OK"
        lines = [f"Mesh geometry: {self.issue_count()} issues found"]
        if self.negative_area_elements:
            lines.append(
                f"  - {len(self.negative_area_elements)} elements with negative area"
            )
        if self.zero_area_elements:
            lines.append(
                f"  - {len(self.zero_area_elements)} degenerate (zero-area) elements"
            )
        if self.concave_quads:
            lines.append(f"  - {len(self.concave_quads)} concave quad elements")
        if self.orientation_conflicts:
            lines.append(f"  - {len(self.orientation_conflicts)} orientation conflicts")
        return "\n".join(lines)


def _tri_area(p: NDArray[np.float64], a: int, b: int, c: int) -> NDArray[np.float64]:
    """Signed area of triangles (a, b, c) picked from p[:, 4, 2]; CCW > 0."""
    ax, ay = p[:, a, 0], p[:, a, 1]
    bx, by = p[:, b, 0], p[:, b, 1]
    cx, cy = p[:, c, 0], p[:, c, 1]
    return 0.5 * ((bx - ax) * (cy - ay) - (cx - ax) * (by - ay))


def _corner_coords(mesh: "Mesh") -> NDArray[np.float64]:
    """Corner coordinates, shape (nele, 4, 2); triangles repeat corner 3."""
    rows = mesh.element_rows()
    tri = mesh.elements.sizes == 3
    rows[tri, 3] = rows[tri, 2]
    return mesh.nodes.xy[rows]


def signed_areas(mesh: "Mesh") -> NDArray[np.float64]:
    """Signed area per element (quads as two triangles sharing 0-2)."""
    if mesh.element_count() == 0:
        return np.zeros(0, dtype=np.float64)
    p = _corner_coords(mesh)
    return _tri_area(p, 0, 1, 2) + _tri_area(p, 0, 2, 3)


def check_geometry(mesh: "Mesh", *, area_tol: float | None = None) -> MeshValidation:
    """Inspect element winding, degeneracy, quad convexity and orientation."""
    tol = HgridConfig.DEFAULT_AREA_TOL if area_tol is None else area_tol
    result = MeshValidation()
    if mesh.element_count() == 0:
        return result

    ids = mesh.elements.ids
    area = signed_areas(mesh)
    result.negative_area_elements = ids[area < -tol].tolist()
    result.zero_area_elements = ids[np.abs(area) <= tol].tolist()

    quad = mesh.elements.sizes == 4
    if quad.any():
        p = _corner_coords(mesh)[quad]
        sub = np.stack(
            [
                _tri_area(p, 0, 1, 2),
                _tri_area(p, 0, 2, 3),
                _tri_area(p, 0, 1, 3),
                _tri_area(p, 1, 2, 3),
            ]
        )
        # convex quads have all four sub-triangles on the same side
        mixed = (sub.min(axis=0) < -tol) & (sub.max(axis=0) > tol)
        result.concave_quads = ids[quad][mixed].tolist()

    result.orientation_conflicts = _orientation_conflicts(mesh)

    logger.debug(f"Geometry check finished with {result.issue_count()} issues")
    return result


def _orientation_conflicts(mesh: "Mesh") -> list[tuple[int, int]]:
    start, end, owner = directed_edges(mesh)
    if start.size == 0:
        return []
    lo = np.minimum(start, end)
    hi = np.maximum(start, end)
    forward = start < end

    # group equal undirected edges; lexsort is stable so file order survives
    order = np.lexsort((hi, lo))
    lo_s, hi_s = lo[order], hi[order]
    opens = np.ones(order.size, dtype=bool)
    opens[1:] = (lo_s[1:] != lo_s[:-1]) | (hi_s[1:] != hi_s[:-1])
    first = np.maximum.accumulate(np.where(opens, np.arange(order.size), 0))

    fwd_s = forward[order]
    clash = np.flatnonzero(~opens & (fwd_s == fwd_s[first]))
    clash = clash[np.argsort(order[clash], kind="stable")]

    ids = mesh.elements.ids
    own_s = owner[order]
    return [(int(ids[own_s[first[i]]]), int(ids[own_s[i]])) for i in clash]
