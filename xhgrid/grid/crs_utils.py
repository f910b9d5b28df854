from __future__ import annotations

"""CRS helpers for *xhgrid.grid*.

Exposes :pyfunc:`crs_from_description`, which recognises a trailing CRS
string (``EPSG:32618``, ``+proj=utm ...``) in an hgrid description line.
"""

import logging
from functools import lru_cache

from pyproj import CRS
from pyproj.exceptions import CRSError

__all__ = ["crs_from_description"]

logger = logging.getLogger(__name__)

_AUTHORITY_PREFIXES = ("epsg:", "esri:", "ignf:", "ogc:", "+proj=")


@lru_cache(maxsize=64)
def _parse_crs(text: str) -> CRS | None:
    try:
        return CRS.from_user_input(text)
    except CRSError as exc:
        logger.warning(f"Ignoring CRS-like text {text!r} in description: {exc}")
        return None


def crs_from_description(description: str) -> CRS | None:
    """Return the CRS found at the end of *description*, or ``None``.

    Candidate suffixes start at a word carrying an authority prefix; the
    longest one pyproj accepts wins.
    """
    words = description.split()
    for i, word in enumerate(words):
        if not word.lower().startswith(_AUTHORITY_PREFIXES):
            continue
        crs = _parse_crs(" ".join(words[i:]))
        if crs is not None:
            logger.debug(f"Detected CRS {crs.to_string()} in description")
            return crs
    return None
