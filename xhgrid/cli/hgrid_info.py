# SPDX-License-Identifier: MIT
"""
CLI: xhgrid-info
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from xhgrid.errors import HgridParseError
from xhgrid.grid import HgridConfig, read_hgrid


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Summarise a SCHISM hgrid file")
    ap.add_argument("path", type=Path, help="hgrid.gr3 / hgrid.ll file")
    ap.add_argument("--json", action="store_true", help="print the summary as JSON")
    ap.add_argument(
        "--check", action="store_true", help="also report element geometry issues"
    )
    ap.add_argument(
        "--no-crs", action="store_true", help="do not look for a CRS in the description"
    )
    ap.add_argument("-v", "--verbose", action="count", default=0)
    ns = ap.parse_args(argv)

    level = logging.WARNING - 10 * min(ns.verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    config = HgridConfig(detect_crs=not ns.no_crs)
    try:
        mesh = read_hgrid(ns.path, config=config)
    except (HgridParseError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    info = mesh.summary()
    report = mesh.check_geometry(area_tol=config.area_tol) if ns.check else None
    if report is not None:
        info["geometry_issues"] = report.issue_count()

    if ns.json:
        print(json.dumps(info, indent=2))
    else:
        for key, value in info.items():
            print(f"{key:>16}: {value}")
        if report is not None:
            print(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
