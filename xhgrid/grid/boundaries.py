"""Open-ocean and land/island boundary segments."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

__all__ = ["OpenBoundary", "LandBoundary", "LandBoundaryType"]


class LandBoundaryType(IntEnum):
    """SCHISM convention for the land-segment flag (other codes are kept)."""

    LAND = 0
    ISLAND = 1


@dataclass(frozen=True, slots=True)
class OpenBoundary:
    """Ordered node ids along one open-ocean segment (traversal order)."""

    node_ids: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.node_ids)

    def __iter__(self):
        return iter(self.node_ids)


@dataclass(frozen=True, slots=True)
class LandBoundary:
    """Ordered node ids along one land or island segment plus its type code."""

    node_ids: tuple[int, ...]
    type_code: int = LandBoundaryType.LAND

    def __len__(self) -> int:
        return len(self.node_ids)

    def __iter__(self):
        return iter(self.node_ids)

    @property
    def is_island(self) -> bool:
        return self.type_code == LandBoundaryType.ISLAND
