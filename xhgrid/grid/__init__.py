"""
xhgrid.grid – SCHISM horizontal-grid reader and mesh model
----------------------------------------------------------
Public:
    * Mesh
    * HgridConfig
    * get_mesh
    * read_hgrid
"""

import importlib
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING

from .config import HgridConfig


# ---------------------------------------------------------------
# Lazy loader: the first attribute access triggers real import
# ---------------------------------------------------------------
def _load() -> ModuleType:
    """Import xhgrid.grid.mesh_obj exactly once and cache it."""
    mod = importlib.import_module(".mesh_obj", __name__)
    sys.modules[f"{__name__}.mesh_obj"] = mod
    return mod


if TYPE_CHECKING:  # <-- Mypy / IDE
    from .mesh_obj import BoundingExtent, Mesh, get_mesh  # noqa
else:

    def __getattr__(name: str):
        mod = _load()
        return getattr(mod, name)

    # ---------- public helper (calls into reader lazily) -----------------
    def read_hgrid(source, *, config: HgridConfig | None = None):
        """
        Read an ``hgrid.gr3`` / ``hgrid.ll`` file and return :class:`Mesh`.
        This thin wrapper keeps the lazy-import behaviour intact.
        """
        reader = importlib.import_module(".reader", __name__)
        return reader.read_hgrid(source, config=config)

    def mesh_summary(path: str | Path, *, config: HgridConfig | None = None) -> dict:
        """
        Read a grid file and return its headline numbers as a plain dict.

        Parameters
        ----------
        path : str | Path
            Path to the hgrid file.
        config : HgridConfig, optional
            Reader settings.

        Returns
        -------
        dict
            ``nodes``, ``elements``, ``open_boundaries``, ``land_boundaries``,
            ``extent`` (``None`` for a mesh without nodes), ``depth_min``,
            ``depth_max``, ``crs``.

        Examples
        --------
        >>> from xhgrid.grid import mesh_summary
        >>> info = mesh_summary("hgrid.gr3")
        >>> print(info["nodes"], info["elements"])
        """
        return read_hgrid(path, config=config).summary()

    def __dir__():
        return sorted(
            {"Mesh", "BoundingExtent", "HgridConfig", "get_mesh", "read_hgrid", "mesh_summary"}
        )


__all__ = [
    "Mesh",
    "BoundingExtent",
    "HgridConfig",
    "get_mesh",
    "read_hgrid",
    "mesh_summary",
]
