from __future__ import annotations

"""Core mesh object used throughout xhgrid.

This module defines :class:`Mesh`, the immutable result of reading a SCHISM
``hgrid.gr3`` / ``hgrid.ll`` file.

Key features
------------
* **Constructors**
  * ``from_file`` – parse a path or an open stream.
  * ``from_string`` – parse hgrid text already held in memory.
* **Id-keyed tables** (:class:`~xhgrid.grid.tables.NodeTable`,
  :class:`~xhgrid.grid.tables.ElementTable`) backed by read-only NumPy arrays.
* **Read-only query surface** – counts, depths, extent, element expansion,
  restartable boundary iteration.
* :py:meth:`to_xarray` / :py:meth:`to_dataframe` for analysis and plotting
  code downstream.

A ``Mesh`` is never mutated after the reader builds it, so it can be shared
between threads without locking.
"""

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Iterator, NamedTuple, Union

import numpy as np
import pandas as pd
import xarray as xr
from numpy.typing import ArrayLike, NDArray

from ..errors import EmptyMesh, UnknownElementId, UnknownNodeId
from .boundaries import LandBoundary, OpenBoundary
from .tables import ElementTable, Node, NodeTable

if TYPE_CHECKING:
    from pyproj import CRS

    from .config import HgridConfig
    from .topology import BoundaryPolygon
    from .validation import MeshValidation

__all__ = ["Mesh", "BoundingExtent", "get_mesh"]


class BoundingExtent(NamedTuple):
    """Axis-aligned extent of the node coordinates."""

    lower_left: tuple[float, float]
    upper_right: tuple[float, float]

    @property
    def xmin(self) -> float:
        return self.lower_left[0]

    @property
    def ymin(self) -> float:
        return self.lower_left[1]

    @property
    def xmax(self) -> float:
        return self.upper_right[0]

    @property
    def ymax(self) -> float:
        return self.upper_right[1]


# -----------------------------------------------------------------------------
# Main dataclass
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class Mesh:
    """SCHISM horizontal grid (triangles and quadrilaterals)."""

    description: str
    nodes: NodeTable
    elements: ElementTable
    open_boundaries: tuple[OpenBoundary, ...] = ()
    land_boundaries: tuple[LandBoundary, ...] = ()

    # CRS recognised in the description line (metadata only) ---------------
    crs: "CRS | None" = field(default=None, repr=False)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_file(
        cls,
        source: Union[str, Path, IO[str], IO[bytes]],
        *,
        config: "HgridConfig | None" = None,
    ) -> "Mesh":
        """Parse an hgrid file (path or open stream)."""
        from .reader import read_hgrid

        return read_hgrid(source, config=config)

    @classmethod
    def from_string(cls, text: str, *, config: "HgridConfig | None" = None) -> "Mesh":
        from .reader import read_hgrid_text

        return read_hgrid_text(text, config=config)

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------
    def node_count(self) -> int:
        return len(self.nodes)

    def element_count(self) -> int:
        return len(self.elements)

    def open_boundary_count(self) -> int:
        return len(self.open_boundaries)

    def land_boundary_count(self) -> int:
        return len(self.land_boundaries)

    @property
    def declared_counts(self) -> tuple[int, int]:
        """``(NE, NP)`` as they appear in the header."""
        return self.element_count(), self.node_count()

    # ------------------------------------------------------------------
    # Node queries
    # ------------------------------------------------------------------
    def depths(self) -> NDArray[np.float64]:
        """Depth per node in file order (read-only view)."""
        return self.nodes.depth

    def x(self) -> NDArray[np.float64]:
        return self.nodes.xy[:, 0]

    def y(self) -> NDArray[np.float64]:
        return self.nodes.xy[:, 1]

    def xy(self) -> NDArray[np.float64]:
        return self.nodes.xy

    def node(self, node_id: int) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise UnknownNodeId(f"Unknown node id: {node_id}") from None

    def bounding_extent(self) -> BoundingExtent:
        """Min/max coordinate pair over all nodes."""
        if len(self.nodes) == 0:
            raise EmptyMesh("bounding_extent() of a mesh without nodes")
        xy = self.nodes.xy
        lo = xy.min(axis=0)
        hi = xy.max(axis=0)
        return BoundingExtent((float(lo[0]), float(lo[1])), (float(hi[0]), float(hi[1])))

    # ------------------------------------------------------------------
    # Element queries
    # ------------------------------------------------------------------
    def element_nodes(self, element_id: int) -> tuple[int, ...]:
        """Ordered node ids of *element_id* (winding as written)."""
        try:
            return self.elements[element_id]
        except KeyError:
            raise UnknownElementId(f"Unknown element id: {element_id}") from None

    def element_rows(self) -> NDArray[np.intp]:
        """Connectivity as node *rows*, shape ``(nele, 4)``, ``-1`` padded."""
        nv = self.elements.nv
        rows = np.full(nv.shape, -1, dtype=np.intp)
        used = nv >= 0
        if used.any():
            rows[used] = self.nodes.rows(nv[used])
        return rows

    def element_areas(self) -> NDArray[np.float64]:
        """Unsigned area per element, element order."""
        from .validation import signed_areas

        return np.abs(signed_areas(self))

    def elements_per_node(self) -> NDArray[np.int_]:
        """Number of elements touching each node, node order."""
        rows = self.element_rows()
        return np.bincount(rows[rows >= 0], minlength=self.node_count())

    # ------------------------------------------------------------------
    # Boundaries
    # ------------------------------------------------------------------
    def iter_open_boundaries(self) -> Iterator[OpenBoundary]:
        yield from self.open_boundaries

    def iter_land_boundaries(self) -> Iterator[LandBoundary]:
        yield from self.land_boundaries

    def iter_boundaries(self) -> Iterator[OpenBoundary | LandBoundary]:
        """All segments, open ones first, each call starts afresh."""
        yield from self.open_boundaries
        yield from self.land_boundaries

    # ------------------------------------------------------------------
    # Outline / containment
    # ------------------------------------------------------------------
    def boundary_polygon(self) -> "BoundaryPolygon":
        """Outline rings (outer boundary and islands) built from element edges."""
        from .topology import boundary_polygon

        return boundary_polygon(self)

    def contains_points(self, points: ArrayLike) -> NDArray[np.bool_]:
        """Boolean mask of the ``(n, 2)`` *points* that fall inside the mesh."""
        return self.boundary_polygon().contains_points(points)

    def contains_point(self, x: float, y: float) -> bool:
        return bool(self.contains_points([(x, y)])[0])

    # ------------------------------------------------------------------
    # CRS metadata
    # ------------------------------------------------------------------
    @property
    def is_geographic(self) -> bool:
        return bool(self.crs is not None and self.crs.is_geographic)

    @property
    def crs_definition(self) -> str | None:
        """CRS as a ``pyproj`` user-input string (``"EPSG:4326"``), or None."""
        return self.crs.to_string() if self.crs is not None else None

    # ------------------------------------------------------------------
    # Validation / identity
    # ------------------------------------------------------------------
    def check_geometry(self, *, area_tol: float | None = None) -> "MeshValidation":
        from .validation import check_geometry

        return check_geometry(self, area_tol=area_tol)

    def fingerprint(self) -> str:
        """Deterministic SHA-256 hex digest of the mesh content."""
        h = hashlib.sha256()
        h.update(self.description.encode("utf-8"))
        h.update(self.nodes.ids.tobytes())
        h.update(self.nodes.xy.tobytes())
        h.update(self.nodes.depth.tobytes())
        h.update(self.elements.ids.tobytes())
        h.update(self.elements.sizes.tobytes())
        h.update(self.elements.nv.tobytes())
        for tag, segments in (("open", self.open_boundaries), ("land", self.land_boundaries)):
            h.update(tag.encode())
            h.update(np.int64(len(segments)).tobytes())
            for seg in segments:
                code = getattr(seg, "type_code", -1)
                h.update(np.asarray([code, len(seg)], dtype=np.int64).tobytes())
                h.update(np.asarray(seg.node_ids, dtype=np.int64).tobytes())
        return h.hexdigest()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mesh):
            return NotImplemented
        return (
            self.description == other.description
            and self.nodes == other.nodes
            and self.elements == other.elements
            and self.open_boundaries == other.open_boundaries
            and self.land_boundaries == other.land_boundaries
        )

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Conversion helpers
    # ------------------------------------------------------------------
    def to_xarray(self) -> xr.Dataset:
        """Return a minimal Dataset containing the grid variables."""
        ds = xr.Dataset(
            {
                "x": ("node", np.array(self.x())),
                "y": ("node", np.array(self.y())),
                "depth": ("node", np.array(self.depths())),
                "nv": (("nele", "four"), np.array(self.elements.nv)),
                "element_size": ("nele", np.array(self.elements.sizes)),
            },
            coords={
                "node": ("node", np.array(self.nodes.ids)),
                "nele": ("nele", np.array(self.elements.ids)),
                "four": ("four", np.arange(4)),
            },
            attrs={
                "cf_role": "mesh_topology",
                "description": self.description,
                "nv_fill_value": -1,
            },
        )
        if self.crs is not None:
            ds.attrs["crs"] = self.crs_definition
        return ds

    def to_dataframe(self) -> pd.DataFrame:
        """Node table as a DataFrame indexed by node id."""
        return pd.DataFrame(
            {"x": self.x(), "y": self.y(), "depth": self.depths()},
            index=pd.Index(np.array(self.nodes.ids), name="node_id"),
        )

    def to_string(self, *, comments: bool = True) -> str:
        from .writer import format_hgrid

        return format_hgrid(self, comments=comments)

    def write(self, path: str | Path, *, config: "HgridConfig | None" = None) -> Path:
        from .writer import write_hgrid

        return write_hgrid(self, path, config=config)

    def to_2dm(self) -> str:
        """SMS ``.2dm`` text of this mesh (see :func:`~xhgrid.grid.writer.format_2dm`)."""
        from .writer import format_2dm

        return format_2dm(self)

    def write_2dm(self, path: str | Path, *, config: "HgridConfig | None" = None) -> Path:
        from .writer import write_2dm

        return write_2dm(self, path, config=config)

    def summary(self) -> dict:
        """Headline numbers as a JSON-friendly dict."""
        depths = self.depths()
        return {
            "description": self.description,
            "nodes": self.node_count(),
            "elements": self.element_count(),
            "open_boundaries": self.open_boundary_count(),
            "land_boundaries": self.land_boundary_count(),
            "extent": tuple(self.bounding_extent()) if self.node_count() else None,
            "depth_min": float(depths.min()) if depths.size else None,
            "depth_max": float(depths.max()) if depths.size else None,
            "crs": self.crs_definition,
        }

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        return (
            f"Mesh(nodes={self.node_count()}, elements={self.element_count()}, "
            f"open={self.open_boundary_count()}, land={self.land_boundary_count()}, "
            f"crs={'yes' if self.crs is not None else 'no'})"
        )


# -----------------------------------------------------------------------------
# Convenience wrapper – accept various inputs and always return Mesh
# -----------------------------------------------------------------------------


def get_mesh(obj: "Mesh | str | Path | IO[str] | IO[bytes]") -> Mesh:
    if isinstance(obj, Mesh):
        return obj
    if isinstance(obj, (str, Path)) or hasattr(obj, "read"):
        return Mesh.from_file(obj)
    raise TypeError(f"Unsupported object type for mesh extraction: {type(obj).__name__}")
