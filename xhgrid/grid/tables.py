"""Id-keyed node and element tables.

Both tables store their payload in NumPy arrays sized once from the declared
header counts, plus a ``dict`` from file id to row. Elements and boundaries
refer to nodes by id only; ids are resolved through :class:`NodeTable`.

Tables are filled through a builder during the single parse pass and then
frozen. A frozen table exposes read-only arrays and the ``Mapping`` protocol,
nothing that can change it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterator, NamedTuple, Sequence

import numpy as np
from numpy.typing import NDArray

from ..errors import (
    DanglingNodeReference,
    DuplicateElementId,
    DuplicateNodeId,
    InvalidElementArity,
)

__all__ = [
    "Node",
    "NodeTable",
    "NodeTableBuilder",
    "ElementTable",
    "ElementTableBuilder",
    "VALID_ARITIES",
]

VALID_ARITIES = (3, 4)
_PAD = -1  # fill value for the 4th slot of triangles


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


class Node(NamedTuple):
    id: int
    x: float
    y: float
    depth: float


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------


class NodeTable(Mapping[int, Node]):
    """Frozen ``node id -> Node`` map in file order."""

    __slots__ = ("_ids", "_xy", "_depth", "_index")

    def __init__(
        self,
        ids: NDArray[np.int64],
        xy: NDArray[np.float64],
        depth: NDArray[np.float64],
        index: dict[int, int] | None = None,
    ) -> None:
        self._ids = _readonly(np.asarray(ids, dtype=np.int64))
        self._xy = _readonly(np.asarray(xy, dtype=np.float64).reshape(-1, 2))
        self._depth = _readonly(np.asarray(depth, dtype=np.float64))
        if index is None:
            index = {int(nid): row for row, nid in enumerate(self._ids)}
        self._index = index

    # Mapping protocol ---------------------------------------------------
    def __getitem__(self, node_id: int) -> Node:
        row = self._index[node_id]
        return Node(
            int(self._ids[row]),
            float(self._xy[row, 0]),
            float(self._xy[row, 1]),
            float(self._depth[row]),
        )

    def __iter__(self) -> Iterator[int]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeTable):
            return NotImplemented
        return (
            np.array_equal(self._ids, other._ids)
            and np.array_equal(self._xy, other._xy)
            and np.array_equal(self._depth, other._depth)
        )

    __hash__ = None  # type: ignore[assignment]

    # array views --------------------------------------------------------
    @property
    def ids(self) -> NDArray[np.int64]:
        return self._ids

    @property
    def xy(self) -> NDArray[np.float64]:
        return self._xy

    @property
    def depth(self) -> NDArray[np.float64]:
        return self._depth

    def row(self, node_id: int) -> int:
        """Storage position of *node_id* (raises ``KeyError``)."""
        return self._index[node_id]

    def rows(self, node_ids: Sequence[int] | NDArray[np.int_]) -> NDArray[np.intp]:
        index = self._index
        return np.fromiter((index[int(n)] for n in node_ids), dtype=np.intp)

    def __repr__(self) -> str:
        return f"NodeTable(n={len(self)})"


class NodeTableBuilder:
    """Mutable node table used while the node section is being read."""

    def __init__(self, capacity: int) -> None:
        self._ids = np.empty(capacity, dtype=np.int64)
        self._xy = np.empty((capacity, 2), dtype=np.float64)
        self._depth = np.empty(capacity, dtype=np.float64)
        self._index: dict[int, int] = {}
        self._capacity = capacity

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def add(self, node_id: int, x: float, y: float, depth: float, **ctx: Any) -> None:
        """Append one node; *ctx* (line/section/source) decorates errors."""
        if node_id in self._index:
            prev = self._index[node_id]
            raise DuplicateNodeId(
                f"node id {node_id} already defined (record {prev + 1})", **ctx
            )
        row = len(self._index)
        if row >= self._capacity:
            raise IndexError(f"node table full ({self._capacity} rows)")
        self._ids[row] = node_id
        self._xy[row, 0] = x
        self._xy[row, 1] = y
        self._depth[row] = depth
        self._index[node_id] = row

    def freeze(self) -> NodeTable:
        n = len(self._index)
        return NodeTable(self._ids[:n], self._xy[:n], self._depth[:n], self._index)


# -----------------------------------------------------------------------------
# Elements
# -----------------------------------------------------------------------------


class ElementTable(Mapping[int, tuple[int, ...]]):
    """Frozen ``element id -> node ids`` map in file order.

    Connectivity is held in a ``(nele, 4)`` array of node *ids* with ``-1``
    in the unused slot of triangles; ``sizes`` tells 3 from 4.
    """

    __slots__ = ("_ids", "_nv", "_sizes", "_index")

    def __init__(
        self,
        ids: NDArray[np.int64],
        nv: NDArray[np.int64],
        sizes: NDArray[np.int8],
        index: dict[int, int] | None = None,
    ) -> None:
        self._ids = _readonly(np.asarray(ids, dtype=np.int64))
        self._nv = _readonly(np.asarray(nv, dtype=np.int64).reshape(-1, 4))
        self._sizes = _readonly(np.asarray(sizes, dtype=np.int8))
        if index is None:
            index = {int(eid): row for row, eid in enumerate(self._ids)}
        self._index = index

    def __getitem__(self, element_id: int) -> tuple[int, ...]:
        row = self._index[element_id]
        k = int(self._sizes[row])
        return tuple(int(n) for n in self._nv[row, :k])

    def __iter__(self) -> Iterator[int]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ElementTable):
            return NotImplemented
        return (
            np.array_equal(self._ids, other._ids)
            and np.array_equal(self._sizes, other._sizes)
            and np.array_equal(self._nv, other._nv)
        )

    __hash__ = None  # type: ignore[assignment]

    @property
    def ids(self) -> NDArray[np.int64]:
        return self._ids

    @property
    def nv(self) -> NDArray[np.int64]:
        """Node-id connectivity, shape ``(nele, 4)``, ``-1`` padded."""
        return self._nv

    @property
    def sizes(self) -> NDArray[np.int8]:
        return self._sizes

    def __repr__(self) -> str:
        ntri = int(np.count_nonzero(self._sizes == 3))
        return f"ElementTable(n={len(self)}, tri={ntri}, quad={len(self) - ntri})"


class ElementTableBuilder:
    """Mutable element table; validates each record against *nodes*."""

    def __init__(self, capacity: int, nodes: NodeTable) -> None:
        self._ids = np.empty(capacity, dtype=np.int64)
        self._nv = np.full((capacity, 4), _PAD, dtype=np.int64)
        self._sizes = np.empty(capacity, dtype=np.int8)
        self._index: dict[int, int] = {}
        self._capacity = capacity
        self._nodes = nodes

    def __len__(self) -> int:
        return len(self._index)

    def add(self, element_id: int, node_ids: Sequence[int], **ctx: Any) -> None:
        k = len(node_ids)
        if k not in VALID_ARITIES:
            raise InvalidElementArity(
                f"element {element_id} has {k} nodes; expected 3 or 4", **ctx
            )
        if element_id in self._index:
            prev = self._index[element_id]
            raise DuplicateElementId(
                f"element id {element_id} already defined (record {prev + 1})",
                **ctx,
            )
        missing = [n for n in node_ids if n not in self._nodes]
        if missing:
            raise DanglingNodeReference(
                f"element {element_id} references unknown node id(s) {missing}",
                **ctx,
            )
        row = len(self._index)
        if row >= self._capacity:
            raise IndexError(f"element table full ({self._capacity} rows)")
        self._ids[row] = element_id
        self._nv[row, :k] = node_ids
        self._sizes[row] = k
        self._index[element_id] = row

    def freeze(self) -> ElementTable:
        n = len(self._index)
        return ElementTable(self._ids[:n], self._nv[:n], self._sizes[:n], self._index)
