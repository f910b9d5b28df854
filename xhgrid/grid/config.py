from __future__ import annotations

from dataclasses import dataclass


@dataclass
class HgridConfig:
    """
    Stores reader / writer settings.
    """

    # ----------------------------------------------------------------
    # Class-level defaults
    # ----------------------------------------------------------------
    DEFAULT_ENCODING = "utf-8"
    DEFAULT_AREA_TOL = 1e-10  # |signed area| at or below this is degenerate

    encoding: str = DEFAULT_ENCODING
    detect_crs: bool = True  # look for a CRS string in the description line
    area_tol: float = DEFAULT_AREA_TOL
    comments: bool = True  # writer appends "! ..." after count lines

    def __post_init__(self) -> None:
        if self.area_tol < 0:
            raise ValueError(f"area_tol must be >= 0, got {self.area_tol}")
