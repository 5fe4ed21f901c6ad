# -*- coding: utf-8 -*-
"""Boundary check command.

Validates a survey boundary before submission: vertex count, duplicate
vertices, plausibility of the coordinates for the selected reference system
and self-intersection. Also reports the closed, labelled ring and its area.
"""

import argparse
import logging
import math
from pathlib import Path
from typing import Any

import orjson

from fieldmap_lib.constants import CANONICAL_SYSTEM_KEY
from fieldmap_lib.crs.converter import from_canonical
from fieldmap_lib.crs.converter import suggest_utm_key
from fieldmap_lib.crs.definitions import get_reference_system
from fieldmap_lib.crs.ranges import check_ranges
from fieldmap_lib.errors import InsufficientVerticesError
from fieldmap_lib.geometry import close_ring
from fieldmap_lib.geometry import find_duplicate_vertices
from fieldmap_lib.geometry import is_closed
from fieldmap_lib.geometry import is_simple_ring
from fieldmap_lib.geometry import label_points
from fieldmap_lib.geometry import open_ring
from fieldmap_lib.geometry import ring_area
from fieldmap_lib.geometry import station_label
from fieldmap_lib.geometry import valid_points
from fieldmap_lib.geometry import validate_ring
from fieldmap_lib.models import Position

logger = logging.getLogger(__name__)

_XY_KEYS = (("x", "y"), ("lng", "lat"), ("easting", "northing"))


def parse_points(data: Any, system_key: str) -> list[Position]:
    """Parse ``[[x, y], ...]`` or ``[{"x": .., "y": ..}, ...]`` records.

    ``lng``/``lat`` and ``easting``/``northing`` keys are accepted too.

    Raises:
        ValueError: If a record has no recognizable coordinate pair
    """
    if isinstance(data, dict):
        data = data.get("points")
    if not isinstance(data, list):
        raise ValueError("Expected a list of points")

    points: list[Position] = []
    for index, item in enumerate(data):
        if isinstance(item, (list, tuple)) and len(item) >= 2:
            x, y = item[0], item[1]
        elif isinstance(item, dict):
            for x_key, y_key in _XY_KEYS:
                if x_key in item and y_key in item:
                    x, y = item[x_key], item[y_key]
                    break
            else:
                raise ValueError(f"Point {index}: no coordinate pair in {item!r}")
        else:
            raise ValueError(f"Point {index}: unsupported value {item!r}")
        points.append(Position(x=float(x), y=float(y), system=system_key))
    return points


def _planar_area(ring: list[Position], system_key: str) -> float | None:
    """Ring area in square metres, projecting geographic rings to UTM."""
    system = get_reference_system(system_key)
    if system is None:
        return None
    if not system.geographic:
        return ring_area(ring)

    lng = sum(p.x for p in ring) / len(ring)
    lat = sum(p.y for p in ring) / len(ring)
    utm_key = suggest_utm_key(lng, lat)
    if utm_key is None:
        logger.info("No registered UTM system covers (%s, %s), area skipped", lng, lat)
        return None

    projected = []
    for point in ring:
        result = from_canonical(point, utm_key)
        if not result.ok:
            return None
        projected.append(result.position)
    return ring_area(projected)


def check_boundary(points: list[Position], system_key: str) -> dict[str, Any]:
    """Describe a boundary.

    Raises:
        InsufficientVerticesError: If fewer than 3 distinct valid vertices
    """
    valid = valid_points(points)
    ring = validate_ring(valid)
    report = check_ranges(ring, system_key)
    simple = is_simple_ring(ring)
    area = _planar_area(ring, system_key)

    return {
        "system": system_key,
        "input_points": len(points),
        "ignored_points": len(points) - len(valid),
        "closed_input": is_closed(valid),
        "vertices": len(open_ring(valid)),
        "duplicates": [station_label(i) for i in find_duplicate_vertices(ring)],
        "ring": [
            {"station": p.station, "x": p.x, "y": p.y}
            for p in close_ring(label_points(ring))
        ],
        "simple": simple,
        "area_m2": None if area is None or not math.isfinite(area) else round(area, 2),
        "known_system": report.known_system,
        "out_of_range": report.out_of_range_count,
        "requires_confirmation": report.requires_confirmation,
        "warning": report.message() or None,
    }


def check_ring(args: list[str]) -> int:
    """Entry point for the check-ring command."""
    parser = argparse.ArgumentParser(
        prog="fieldmap check-ring",
        description="Validate a survey boundary before submission",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fieldmap check-ring -i plot.json                       # lon/lat points
  fieldmap check-ring -i plot.json --system minna_32     # Minna easting/northing
  fieldmap check-ring -i plot.json --system utm_32n --accept-out-of-range

Exit codes:
  0  boundary is valid
  1  fewer than 3 distinct vertices, or more than half of the points are out
     of range for the system (unless --accept-out-of-range), or bad input
""",
    )

    parser.add_argument(
        "-i",
        "--input-file",
        type=Path,
        required=True,
        help="Points JSON file",
    )
    parser.add_argument(
        "--system",
        default=CANONICAL_SYSTEM_KEY,
        help="Reference system of the points (default: %(default)s)",
    )
    parser.add_argument(
        "--accept-out-of-range",
        action="store_true",
        help="Proceed even if most points are out of range for the system",
    )

    parsed_args = parser.parse_args(args)

    if not parsed_args.input_file.exists():
        logger.error("Error: Input file not found: %s", parsed_args.input_file)
        return 1

    try:
        points = parse_points(
            orjson.loads(parsed_args.input_file.read_bytes()), parsed_args.system
        )
        result = check_boundary(points, parsed_args.system)

    except InsufficientVerticesError as e:
        logger.error("Error: %s", e)  # noqa: TRY400
        return 1

    except Exception:
        logger.exception("Unknown Problem ...")
        return 1

    print(orjson.dumps(result, option=orjson.OPT_INDENT_2).decode())  # noqa: T201

    if result["requires_confirmation"] and not parsed_args.accept_out_of_range:
        logger.error(
            "%s Re-run with --accept-out-of-range to proceed.", result["warning"]
        )
        return 1
    return 0
