# -*- coding: utf-8 -*-
"""GeoJSON export command.

Converts entity (and optionally work area) records exported from the
backing store into a GeoJSON FeatureCollection, with the same per-item
isolation as the map: malformed records are skipped, never fatal.
"""

import argparse
import logging
from pathlib import Path
from typing import Any

import orjson
from geojson import FeatureCollection

from fieldmap_lib.constants import JSON_ENCODING
from fieldmap_lib.features import build_area_collection
from fieldmap_lib.features import build_entity_collection
from fieldmap_lib.features import parse_areas
from fieldmap_lib.features import parse_entities

logger = logging.getLogger(__name__)


def load_records(path: Path, key: str) -> list[dict[str, Any]]:
    """Load a JSON list of records, optionally wrapped as ``{key: [...]}``.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file holds no list of records
    """
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    data = orjson.loads(path.read_bytes())
    if isinstance(data, dict):
        data = data.get(key, data.get("items"))
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of {key} in {path}")
    return [row for row in data if isinstance(row, dict)]


def records_to_geojson(
    entity_rows: list[dict[str, Any]],
    area_rows: list[dict[str, Any]] | None = None,
) -> FeatureCollection:
    """Build one FeatureCollection holding entity then area features."""
    entities = build_entity_collection(parse_entities(entity_rows))
    features = list(entities["features"])
    if area_rows:
        areas = build_area_collection(parse_areas(area_rows))
        features.extend(areas["features"])

    logger.info(
        "Exported %d of %d entities, %d of %d areas",
        len(entities["features"]),
        len(entity_rows),
        len(features) - len(entities["features"]),
        len(area_rows or []),
    )
    return FeatureCollection(features)


def geojson(args: list[str]) -> int:
    """Entry point for the geojson command."""
    parser = argparse.ArgumentParser(
        prog="fieldmap geojson",
        description="Export entity and work area records to GeoJSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fieldmap geojson -i trees.json                         # Output to stdout
  fieldmap geojson -i trees.json -o trees.geojson        # Output to file
  fieldmap geojson -i trees.json --areas areas.json      # Include work areas

Input:
  A JSON list of records (or {"entities": [...]}) with at least
  id, lng and lat. Areas are {"id", "name", "geometry"} records with a
  Polygon or MultiPolygon geometry.

Notes:
  - Records with invalid fields or non-finite positions are skipped
  - Areas with malformed geometry are skipped
""",
    )

    parser.add_argument(
        "-i",
        "--input-file",
        type=Path,
        required=True,
        help="Entity records JSON file",
    )
    parser.add_argument(
        "-o",
        "--output-file",
        type=Path,
        default=None,
        help="Output GeoJSON file path (prints to stdout if not specified)",
    )
    parser.add_argument(
        "--areas",
        type=Path,
        default=None,
        help="Work area records JSON file",
    )

    parsed_args = parser.parse_args(args)

    try:
        entity_rows = load_records(parsed_args.input_file, "entities")
        area_rows = (
            load_records(parsed_args.areas, "areas") if parsed_args.areas else None
        )
        result = orjson.dumps(
            records_to_geojson(entity_rows, area_rows), option=orjson.OPT_INDENT_2
        ).decode(JSON_ENCODING)

        if parsed_args.output_file is None:
            print(result)  # noqa: T201

        else:
            parsed_args.output_file.write_text(result, encoding=JSON_ENCODING)
            logger.info(
                "Converted %s -> %s", parsed_args.input_file, parsed_args.output_file
            )

    except FileNotFoundError:
        logger.exception("FileNotFoundError")
        return 1

    except Exception:
        logger.exception("Unknown Problem ...")
        return 1

    return 0
