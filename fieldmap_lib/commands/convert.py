# -*- coding: utf-8 -*-
"""Coordinate conversion command.

Converts one coordinate pair between two registered reference systems and
prints the result as JSON.
"""

import argparse
import logging

import orjson

from fieldmap_lib.constants import CANONICAL_SYSTEM_KEY
from fieldmap_lib.crs.converter import convert as convert_position
from fieldmap_lib.crs.converter import looks_projected
from fieldmap_lib.crs.definitions import REFERENCE_SYSTEMS
from fieldmap_lib.models import Position

logger = logging.getLogger(__name__)


def _convert(x: float, y: float, source_key: str, target_key: str) -> dict:
    """Convert ``(x, y)`` and describe the outcome.

    Returns:
        Dictionary with the converted coordinates, the target system and the
        warning message (None when the conversion succeeded)
    """
    if source_key == CANONICAL_SYSTEM_KEY and looks_projected(x, y):
        logger.warning(
            "(%s, %s) looks like a projected coordinate, not longitude/latitude",
            x,
            y,
        )

    result = convert_position(Position(x=x, y=y, system=source_key), target_key)
    return {
        "x": result.position.x,
        "y": result.position.y,
        "system": result.position.system,
        "warning": str(result.warning) if result.warning else None,
    }


def convert(args: list[str]) -> int:
    """Entry point for the convert command."""
    parser = argparse.ArgumentParser(
        prog="fieldmap convert",
        description="Convert a coordinate pair between reference systems",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  fieldmap convert --from wgs84 --to utm_32n 7.4951 9.0579
  fieldmap convert --from minna_32 --to wgs84 335000 1001500

Registered systems:
  {", ".join(sorted(REFERENCE_SYSTEMS))}

Notes:
  - Geographic results are rounded to 6 decimals, projected ones to 2
  - Unknown systems or projection failures return the input unchanged
    and exit with code 1
""",
    )

    parser.add_argument(
        "--from",
        dest="source",
        default=CANONICAL_SYSTEM_KEY,
        help="Reference system of the input (default: %(default)s)",
    )
    parser.add_argument(
        "--to",
        dest="target",
        required=True,
        help="Reference system of the output",
    )
    parser.add_argument("x", type=float, help="Longitude or easting")
    parser.add_argument("y", type=float, help="Latitude or northing")

    parsed_args = parser.parse_args(args)

    try:
        result = _convert(
            parsed_args.x, parsed_args.y, parsed_args.source, parsed_args.target
        )
    except Exception:
        logger.exception("Unknown Problem ...")
        return 1

    print(orjson.dumps(result, option=orjson.OPT_INDENT_2).decode())  # noqa: T201

    if result["warning"] is not None:
        logger.error(result["warning"])
        return 1
    return 0
