"""Exception hierarchy for xhgrid.

Parse-time failures derive from :class:`HgridParseError` and abort the whole
read; no partial mesh is ever returned. Query-time failures derive from
:class:`HgridQueryError` and are ordinary, recoverable exceptions raised by a
finished :class:`~xhgrid.grid.Mesh`.

I/O problems (missing file, unreadable stream, bad encoding) are *not*
wrapped: the underlying ``OSError`` / ``UnicodeDecodeError`` reaches the
caller unchanged.
"""

from __future__ import annotations

__all__ = [
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


class HgridError(Exception):
    """Base class of every error raised by xhgrid."""


# -----------------------------------------------------------------------------
# Parse-time errors
# -----------------------------------------------------------------------------


class HgridParseError(HgridError, ValueError):
    """A hgrid file could not be turned into a valid mesh.

    Parameters
    ----------
    message : str
        Human-readable description of the condition.
    line : int | None
        1-based physical line number, ``None`` when the input ended.
    section : str | None
        Grammar section being read (``"nodes"``, ``"elements"`` ...).
    source : str | None
        File path or ``"<stream>"``.
    """

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        section: str | None = None,
        source: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.section = section
        self.source = source

    def __str__(self) -> str:
        where = self.source or "<stream>"
        where += f":{self.line}" if self.line is not None else ":EOF"
        if self.section:
            where += f" [{self.section}]"
        return f"{where} {self.message}"


class MalformedLine(HgridParseError):
    """A line lacks the numeric fields its section requires."""


class DuplicateNodeId(HgridParseError):
    pass


class DuplicateElementId(HgridParseError):
    pass


class NodeCountMismatch(HgridParseError):
    """Fewer node records than the header's ``NP``."""


class ElementCountMismatch(HgridParseError):
    """Fewer element records than the header's ``NE``."""


class InvalidElementArity(HgridParseError):
    """An element declares a node count other than 3 or 4."""


class DanglingNodeReference(HgridParseError):
    """An element or boundary names a node id absent from the node table."""


class BoundaryNodeCountMismatch(HgridParseError):
    """Open-boundary node counts disagree with ``NETA``."""


class LandBoundaryNodeCountMismatch(HgridParseError):
    """Land/island-boundary node counts disagree with ``NVEL``."""


# -----------------------------------------------------------------------------
# Query-time errors
# -----------------------------------------------------------------------------


class HgridQueryError(HgridError):
    """A valid mesh was queried incorrectly."""


class UnknownElementId(HgridQueryError, KeyError):
    def __str__(self) -> str:  # KeyError quotes its argument otherwise
        return str(self.args[0]) if self.args else ""


class UnknownNodeId(HgridQueryError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class EmptyMesh(HgridQueryError, ValueError):
    """The mesh has no nodes, so the query has no meaningful answer."""
