# -*- coding: utf-8 -*-
"""Parse SCHISM ``hgrid.gr3`` / ``hgrid.ll`` text into a validated :class:`Mesh`.

Sections are consumed in their fixed on-disk order::

    description -> header -> nodes -> elements
        [-> open boundaries [-> land/island boundaries]]

The two boundary sections are optional: input that ends right before one
of them is a complete mesh. Input that ends *inside* a section, or a section
that is present but garbled, fails the whole read.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import IO, Any, Union

from ..errors import (
    BoundaryNodeCountMismatch,
    DanglingNodeReference,
    ElementCountMismatch,
    HgridParseError,
    InvalidElementArity,
    LandBoundaryNodeCountMismatch,
    NodeCountMismatch,
)
from .boundaries import LandBoundary, OpenBoundary
from .config import HgridConfig
from .crs_utils import crs_from_description
from .mesh_obj import Mesh
from .tables import (
    VALID_ARITIES,
    ElementTable,
    ElementTableBuilder,
    NodeTable,
    NodeTableBuilder,
)
from .tokenizer import LineReader, Record, is_int_token, is_number_token

__all__ = ["read_hgrid", "read_hgrid_text"]

logger = logging.getLogger(__name__)

Source = Union[str, Path, IO[str], IO[bytes]]


def _element_shaped(rec: Record) -> bool:
    """True for ``id k n1 .. nk`` with k in (3, 4), optionally followed by text.

    A numeric field right after the node ids disqualifies the record, so
    that ``id x y depth`` lines with extra numeric columns stay nodes.
    """
    f = rec.fields
    if len(f) < 5 or not (is_int_token(f[0]) and is_int_token(f[1])):
        return False
    k = int(f[1])
    if k not in VALID_ARITIES or len(f) < 2 + k:
        return False
    if not all(is_int_token(t) for t in f[2 : 2 + k]):
        return False
    return len(f) == 2 + k or not is_number_token(f[2 + k])


class _HgridAssembler:
    """Sequential state machine turning a record stream into a Mesh."""

    def __init__(self, stream: IO[str], *, source: str, config: HgridConfig) -> None:
        self.reader = LineReader(stream, source=source)
        self.config = config

    def _ctx(self, lineno: int | None) -> dict[str, Any]:
        return {
            "line": lineno,
            "section": self.reader.section,
            "source": self.reader.source,
        }

    # ------------------------------------------------------------------
    def run(self) -> Mesh:
        description = self._read_description()
        ne, np_ = self._read_header()
        nodes = self._read_nodes(np_)
        elements = self._read_elements(ne, nodes)

        open_bnds: tuple[OpenBoundary, ...] = ()
        land_bnds: tuple[LandBoundary, ...] = ()
        if self.reader.at_end():
            logger.debug("No boundary sections present")
        else:
            open_bnds = self._read_open_boundaries(nodes)
            if self.reader.at_end():
                logger.debug("No land boundary section present")
            else:
                land_bnds = self._read_land_boundaries(nodes)

        trailing = self.reader.peek()
        if trailing is not None:
            logger.warning(
                f"{self.reader.source}: ignoring trailing content from line "
                f"{trailing.lineno}"
            )

        crs = crs_from_description(description) if self.config.detect_crs else None
        mesh = Mesh(
            description=description,
            nodes=nodes,
            elements=elements,
            open_boundaries=open_bnds,
            land_boundaries=land_bnds,
            crs=crs,
        )
        logger.info(f"Finished reading {mesh!r}")
        return mesh

    # ------------------------------------------------------------------
    # description / header
    # ------------------------------------------------------------------
    def _read_description(self) -> str:
        self.reader.enter("description")
        text = self.reader.read_text_line()
        if text is None:
            raise self.reader.malformed("file is empty", None)
        return text

    def _read_header(self) -> tuple[int, int]:
        r = self.reader
        r.enter("header")
        rec = r.require(r.next_record(), 2, "NE NP")
        ne = r.count_field(rec, 0, "element count NE")
        np_ = r.count_field(rec, 1, "node count NP")
        logger.debug(f"Header declares NE={ne} NP={np_}")
        return ne, np_

    # ------------------------------------------------------------------
    # nodes / elements
    # ------------------------------------------------------------------
    def _read_nodes(self, np_: int) -> NodeTable:
        r = self.reader
        r.enter("nodes")
        logger.info("Start reading nodes...")
        builder = NodeTableBuilder(np_)
        while len(builder) < np_:
            rec = r.peek()
            # an element-shaped line whose id repeats a node id opens the element section
            if rec is None or (_element_shaped(rec) and int(rec.fields[0]) in builder):
                where = "end of input" if rec is None else "the element section"
                raise NodeCountMismatch(
                    f"header declares NP={np_} but only {len(builder)} node "
                    f"records precede {where}",
                    **self._ctx(rec.lineno if rec else None),
                )
            r.next_record()
            r.require(rec, 4, "node_id x y depth")
            builder.add(
                r.id_field(rec, 0, "node id"),
                r.float_field(rec, 1, "x coordinate"),
                r.float_field(rec, 2, "y coordinate"),
                r.float_field(rec, 3, "depth"),
                **self._ctx(rec.lineno),
            )
        nodes = builder.freeze()
        logger.debug(f"Done reading {len(nodes)} nodes")
        return nodes

    def _read_elements(self, ne: int, nodes: NodeTable) -> ElementTable:
        r = self.reader
        r.enter("elements")
        logger.info("Start reading elements...")
        builder = ElementTableBuilder(ne, nodes)
        while len(builder) < ne:
            rec = r.next_record()
            if rec is None:
                raise ElementCountMismatch(
                    f"header declares NE={ne} but input ended after "
                    f"{len(builder)} element records",
                    **self._ctx(None),
                )
            r.require(rec, 2, "element_id nnodes")
            eid = r.id_field(rec, 0, "element id")
            k = r.int_field(rec, 1, "element node count")
            if k not in VALID_ARITIES:
                raise InvalidElementArity(
                    f"element {eid} declares {k} nodes; expected 3 or 4",
                    **self._ctx(rec.lineno),
                )
            r.require(rec, 2 + k, f"element_id nnodes and {k} node ids")
            node_ids = [r.int_field(rec, 2 + i, "element node id") for i in range(k)]
            builder.add(eid, node_ids, **self._ctx(rec.lineno))
        elements = builder.freeze()
        logger.debug(f"Done reading {len(elements)} elements")
        return elements

    # ------------------------------------------------------------------
    # boundaries
    # ------------------------------------------------------------------
    def _read_count_pair(self, what_a: str, what_b: str) -> tuple[int, int, int]:
        """Read ``A B`` from one line, or from two consecutive lines."""
        r = self.reader
        rec = r.require(r.next_record(), 1, what_a)
        a = r.count_field(rec, 0, what_a)
        if len(rec) >= 2 and is_int_token(rec.fields[1]):
            return a, r.count_field(rec, 1, what_b), rec.lineno
        rec_b = r.require(r.next_record(), 1, what_b)
        return a, r.count_field(rec_b, 0, what_b), rec_b.lineno

    def _read_segment_nodes(
        self,
        count: int,
        nodes: NodeTable,
        label: str,
        mismatch: type[HgridParseError],
        header_line: int,
    ) -> tuple[int, ...]:
        r = self.reader
        if count == 0:
            raise r.malformed(f"{label} declares zero nodes", header_line)
        if count == 1:
            logger.warning(f"{r.source}:{header_line}: {label} has a single node")
        ids: list[int] = []
        for _ in range(count):
            rec = r.next_record()
            if rec is None:
                raise mismatch(
                    f"{label} declares {count} nodes but input ended after {len(ids)}",
                    **self._ctx(None),
                )
            nid = r.int_field(rec, 0, f"{label} node id")
            if nid not in nodes:
                raise DanglingNodeReference(
                    f"{label} references unknown node id {nid}",
                    **self._ctx(rec.lineno),
                )
            ids.append(nid)
        return tuple(ids)

    def _read_open_boundaries(self, nodes: NodeTable) -> tuple[OpenBoundary, ...]:
        r = self.reader
        r.enter("open_boundaries")
        logger.info("Start reading open boundaries...")
        nope, neta, neta_line = self._read_count_pair(
            "number of open boundaries NOPE", "number of open boundary nodes NETA"
        )
        segments: list[OpenBoundary] = []
        for seg_no in range(1, nope + 1):
            label = f"open boundary {seg_no}"
            rec = r.require(r.next_record(), 1, f"node count of {label}")
            count = r.count_field(rec, 0, f"node count of {label}")
            ids = self._read_segment_nodes(
                count, nodes, label, BoundaryNodeCountMismatch, rec.lineno
            )
            segments.append(OpenBoundary(ids))

        total = sum(len(s) for s in segments)
        if total != neta:
            raise BoundaryNodeCountMismatch(
                f"NETA={neta} but the {nope} open boundaries hold {total} nodes",
                **self._ctx(neta_line),
            )
        logger.debug(f"Done reading {nope} open boundaries ({total} nodes)")
        return tuple(segments)

    def _read_land_boundaries(self, nodes: NodeTable) -> tuple[LandBoundary, ...]:
        r = self.reader
        r.enter("land_boundaries")
        logger.info("Start reading land boundaries...")
        nbou, nvel, nvel_line = self._read_count_pair(
            "number of land boundaries NBOU", "number of land boundary nodes NVEL"
        )
        segments: list[LandBoundary] = []
        for seg_no in range(1, nbou + 1):
            label = f"land boundary {seg_no}"
            rec = r.require(r.next_record(), 2, f"node count and type of {label}")
            count = r.count_field(rec, 0, f"node count of {label}")
            type_code = r.int_field(rec, 1, f"type code of {label}")
            ids = self._read_segment_nodes(
                count, nodes, label, LandBoundaryNodeCountMismatch, rec.lineno
            )
            segments.append(LandBoundary(ids, type_code))

        total = sum(len(s) for s in segments)
        if total != nvel:
            raise LandBoundaryNodeCountMismatch(
                f"NVEL={nvel} but the {nbou} land boundaries hold {total} nodes",
                **self._ctx(nvel_line),
            )
        logger.debug(f"Done reading {nbou} land boundaries ({total} nodes)")
        return tuple(segments)


# -----------------------------------------------------------------------------
# Public entry points
# -----------------------------------------------------------------------------


def _is_binary(stream: Any) -> bool:
    if isinstance(stream, io.TextIOBase):
        return False
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return True
    return "b" in str(getattr(stream, "mode", ""))


def read_hgrid(source: Source, *, config: HgridConfig | None = None) -> Mesh:
    """Read an hgrid file and return the validated :class:`Mesh`.

    Parameters
    ----------
    source : str | Path | text or binary stream
        Path to the file, or an open stream positioned at the description
        line. Binary streams are decoded with ``config.encoding``.
    config : HgridConfig, optional
        Reader settings; defaults to ``HgridConfig()``.

    Raises
    ------
    FileNotFoundError
        *source* is a path that does not exist.
    HgridParseError
        Any subclass, carrying the line number and section of the failure.
    """
    cfg = config or HgridConfig()

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise FileNotFoundError(f"Grid file not found: {path}")
        logger.info(f"Reading hgrid {path}")
        with path.open(encoding=cfg.encoding) as fp:
            return _HgridAssembler(fp, source=str(path), config=cfg).run()

    name = str(getattr(source, "name", "<stream>"))
    if not _is_binary(source):
        return _HgridAssembler(source, source=name, config=cfg).run()  # type: ignore[arg-type]

    text = io.TextIOWrapper(source, encoding=cfg.encoding)  # type: ignore[arg-type]
    try:
        return _HgridAssembler(text, source=name, config=cfg).run()
    finally:
        text.detach()  # leave the caller's stream open


def read_hgrid_text(text: str, *, config: HgridConfig | None = None) -> Mesh:
    """Parse hgrid content held in a string."""
    return read_hgrid(io.StringIO(text), config=config)
