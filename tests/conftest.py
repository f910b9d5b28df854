"""
Global pytest fixtures for xhgrid unit tests.
Provide a small hgrid text with both boundary sections, the same text on
disk, the parsed Mesh, and a builder for ad-hoc grids.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import pytest

from xhgrid import Mesh, read_hgrid_text

# 2 x 1 rectangle: two triangles on the left, one quad on the right.
#
#   4 ---- 5 ---- 6
#   | \  2 |      |
#   |  \   |  3   |
#   | 1  \ |      |
#   1 ---- 2 ---- 3
SAMPLE_HGRID = """\
test mesh
3 6
1 0.0 0.0 5.0
2 1.0 0.0 6.0
3 2.0 0.0 7.0
4 0.0 1.0 4.0
5 1.0 1.0 3.5
6 2.0 1.0 -1.25
1 3 1 2 5
2 3 1 5 4
3 4 2 3 6 5
1 = Number of open boundaries
2 = Total number of open boundary nodes
2 = Number of nodes for open boundary 1
3
6
2 = number of land boundaries
7 = Total number of land boundary nodes
3 0 = Number of nodes for land boundary 1
6
5
4
4 1 = Number of nodes for island boundary 1
4
1
2
3
"""


@pytest.fixture
def hgrid_text() -> str:
    return SAMPLE_HGRID


@pytest.fixture
def hgrid_file(tmp_path: Path) -> Path:
    path = tmp_path / "hgrid.gr3"
    path.write_text(SAMPLE_HGRID, encoding="utf-8")
    return path


@pytest.fixture
def mesh() -> Mesh:
    return read_hgrid_text(SAMPLE_HGRID)


def _build_hgrid(
    nodes: Sequence[tuple[int, float, float, float]],
    elements: Sequence[tuple[int, Sequence[int]]] = (),
    open_boundaries: Sequence[Sequence[int]] | None = None,
    land_boundaries: Sequence[tuple[Sequence[int], int]] | None = None,
    *,
    description: str = "built mesh",
    ne: int | None = None,
    np_: int | None = None,
) -> str:
    lines = [description]
    lines.append(f"{len(elements) if ne is None else ne} {len(nodes) if np_ is None else np_}")
    lines += [f"{nid} {x} {y} {d}" for nid, x, y, d in nodes]
    lines += [f"{eid} {len(ids)} " + " ".join(map(str, ids)) for eid, ids in elements]
    if open_boundaries is not None:
        lines.append(f"{len(open_boundaries)} {sum(len(s) for s in open_boundaries)}")
        for seg in open_boundaries:
            lines.append(str(len(seg)))
            lines += [str(n) for n in seg]
    if land_boundaries is not None:
        lines.append(f"{len(land_boundaries)} {sum(len(s) for s, _ in land_boundaries)}")
        for seg, code in land_boundaries:
            lines.append(f"{len(seg)} {code}")
            lines += [str(n) for n in seg]
    return "\n".join(lines) + "\n"


@pytest.fixture
def build_hgrid() -> Callable[..., str]:
    """Return a function that renders hgrid text from plain Python lists."""
    return _build_hgrid
