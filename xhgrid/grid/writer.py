"""Serialize a :class:`Mesh` back to hgrid text, or export it as SMS 2dm.

Ids are written as stored and floats through ``repr`` so that reading the
output again yields an equal mesh.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator

from .config import HgridConfig

if TYPE_CHECKING:
    from .mesh_obj import Mesh

__all__ = ["format_2dm", "format_hgrid", "write_2dm", "write_hgrid"]

logger = logging.getLogger(__name__)


def _num(value: float) -> str:
    return repr(float(value))


def _count_line(value: int, note: str, comments: bool) -> str:
    return f"{value} ! {note}" if comments else str(value)


def _iter_lines(mesh: "Mesh", comments: bool) -> Iterator[str]:
    yield mesh.description
    yield f"{mesh.element_count()} {mesh.node_count()}"

    nodes = mesh.nodes
    for nid, (x, y), depth in zip(
        nodes.ids.tolist(), nodes.xy.tolist(), nodes.depth.tolist()
    ):
        yield f"{nid} {_num(x)} {_num(y)} {_num(depth)}"

    elements = mesh.elements
    for eid, k, row in zip(
        elements.ids.tolist(), elements.sizes.tolist(), elements.nv.tolist()
    ):
        yield f"{eid} {k} " + " ".join(str(n) for n in row[:k])

    if not mesh.open_boundaries and not mesh.land_boundaries:
        return

    opens = mesh.open_boundaries
    yield _count_line(len(opens), "total number of open boundaries", comments)
    yield _count_line(
        sum(len(s) for s in opens), "total number of open boundary nodes", comments
    )
    for i, seg in enumerate(opens, start=1):
        yield _count_line(len(seg), f"number of nodes for open boundary {i}", comments)
        yield from (str(n) for n in seg.node_ids)

    if not mesh.land_boundaries:
        return

    lands = mesh.land_boundaries
    yield _count_line(len(lands), "total number of land boundaries", comments)
    yield _count_line(
        sum(len(s) for s in lands), "total number of land boundary nodes", comments
    )
    for i, seg in enumerate(lands, start=1):
        head = f"{len(seg)} {seg.type_code}"
        yield f"{head} ! number of nodes for land boundary {i}" if comments else head
        yield from (str(n) for n in seg.node_ids)


def format_hgrid(mesh: "Mesh", *, comments: bool = True) -> str:
    """Return *mesh* as hgrid text (trailing newline included)."""
    return "\n".join(_iter_lines(mesh, comments)) + "\n"


# -----------------------------------------------------------------------------
# SMS 2dm
# -----------------------------------------------------------------------------


def _nodestring(node_ids: tuple[int, ...]) -> str:
    # the last id is negated to terminate the string
    *head, last = node_ids
    return "NS " + " ".join([*(str(n) for n in head), f"-{last}"])


def _iter_2dm_lines(mesh: "Mesh") -> Iterator[str]:
    yield "MESH2D"
    elements = mesh.elements
    rows = list(zip(elements.ids.tolist(), elements.sizes.tolist(), elements.nv.tolist()))
    for eid, k, row in rows:
        if k == 3:
            yield f"E3T {eid} {row[0]} {row[1]} {row[2]}"
    for eid, k, row in rows:
        if k == 4:
            yield f"E4Q {eid} {row[0]} {row[1]} {row[2]} {row[3]}"

    nodes = mesh.nodes
    for nid, (x, y), depth in zip(
        nodes.ids.tolist(), nodes.xy.tolist(), nodes.depth.tolist()
    ):
        yield f"ND {nid} {x:.16E} {y:.16E} {depth:.16E}"

    for seg in mesh.iter_boundaries():
        yield _nodestring(seg.node_ids)


def format_2dm(mesh: "Mesh") -> str:
    """Return *mesh* as SMS ``.2dm`` text.

    Triangles (``E3T``) are listed before quads (``E4Q``), then the nodes
    (``ND``, depth as the nodal value), then one nodestring (``NS``) per open
    and land boundary segment.
    """
    return "\n".join(_iter_2dm_lines(mesh)) + "\n"


# -----------------------------------------------------------------------------
# Files
# -----------------------------------------------------------------------------


def _write_atomic(lines: Iterable[str], dest: Path, encoding: str, kind: str) -> Path:
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent
    )
    logger.debug(f"Will write {kind} to tmpfile: {tmp_name}")
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="\n") as fp:
            for line in lines:
                fp.write(line)
                fp.write("\n")
        os.replace(tmp_name, dest)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return dest


def write_hgrid(
    mesh: "Mesh", path: str | Path, *, config: HgridConfig | None = None
) -> Path:
    """Write *mesh* to *path* atomically and return the path."""
    cfg = config or HgridConfig()
    dest = Path(path).expanduser()
    _write_atomic(_iter_lines(mesh, cfg.comments), dest, cfg.encoding, "hgrid")
    logger.info(f"Wrote {mesh!r} to {dest}")
    return dest


def write_2dm(mesh: "Mesh", path: str | Path, *, config: HgridConfig | None = None) -> Path:
    """Write *mesh* as SMS ``.2dm`` to *path* atomically and return the path."""
    cfg = config or HgridConfig()
    dest = Path(path).expanduser()
    _write_atomic(_iter_2dm_lines(mesh), dest, cfg.encoding, "2dm")
    logger.info(f"Wrote {mesh!r} as 2dm to {dest}")
    return dest
