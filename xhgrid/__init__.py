# ------------------------------------------------------------------
# 0) lightweight first: errors and configuration (no heavy imports)
# ------------------------------------------------------------------
from .errors import (
    BoundaryNodeCountMismatch,
    DanglingNodeReference,
    DuplicateElementId,
    DuplicateNodeId,
    ElementCountMismatch,
    EmptyMesh,
    HgridError,
    HgridParseError,
    HgridQueryError,
    InvalidElementArity,
    LandBoundaryNodeCountMismatch,
    MalformedLine,
    NodeCountMismatch,
    UnknownElementId,
    UnknownNodeId,
)
from .grid.config import HgridConfig

# ------------------------------------------------------------------
# 1) core mesh model / I/O
# ------------------------------------------------------------------
from .grid import Mesh, get_mesh, mesh_summary, read_hgrid
from .grid.boundaries import LandBoundary, LandBoundaryType, OpenBoundary
from .grid.reader import read_hgrid_text
from .grid.tables import Node
from .grid.topology import BoundaryPolygon
from .grid.validation import MeshValidation, check_geometry
from .grid.writer import format_2dm, format_hgrid, write_2dm, write_hgrid

# ------------------------------------------------------------------
# 2) public symbol table
# ------------------------------------------------------------------
__all__: list[str] = [
    # mesh
    "Mesh",
    "Node",
    "OpenBoundary",
    "LandBoundary",
    "LandBoundaryType",
    "MeshValidation",
    "BoundaryPolygon",
    "HgridConfig",
    # I/O
    "read_hgrid",
    "read_hgrid_text",
    "get_mesh",
    "mesh_summary",
    "format_hgrid",
    "write_hgrid",
    "format_2dm",
    "write_2dm",
    "check_geometry",
    # errors
    "HgridError",
    "HgridParseError",
    "MalformedLine",
    "DuplicateNodeId",
    "DuplicateElementId",
    "NodeCountMismatch",
    "ElementCountMismatch",
    "InvalidElementArity",
    "DanglingNodeReference",
    "BoundaryNodeCountMismatch",
    "LandBoundaryNodeCountMismatch",
    "HgridQueryError",
    "UnknownElementId",
    "UnknownNodeId",
    "EmptyMesh",
]

__version__ = "0.1.0"
