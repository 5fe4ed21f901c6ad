# -*- coding: utf-8 -*-
"""Constants used throughout the fieldmap_lib library.

This module centralizes all constant values to ensure consistency
and avoid magic numbers/strings scattered across the codebase.
"""

# -----------------------------------------------------------------------------
# Encodings
# -----------------------------------------------------------------------------

#: Encoding used for JSON files
JSON_ENCODING = "utf-8"

# -----------------------------------------------------------------------------
# Reference Systems
# -----------------------------------------------------------------------------

#: Key of the canonical (geographic, lon/lat) reference system
CANONICAL_SYSTEM_KEY = "wgs84"

#: Authority code of the canonical reference system
CANONICAL_AUTHORITY_CODE = "EPSG:4326"

#: Decimal places kept when converting to a projected system (centimetres)
PROJECTED_PRECISION: int = 2

#: Decimal places kept when converting to geographic (~0.11 m at the equator)
GEOGRAPHIC_PRECISION: int = 6

#: Longitude magnitude above which a pair is considered projected
GEOGRAPHIC_MAX_X: float = 180.0

#: Latitude magnitude above which a pair is considered projected
GEOGRAPHIC_MAX_Y: float = 90.0

#: Fraction of out-of-range points above which a bulk upload needs confirmation
OUT_OF_RANGE_CONFIRM_RATIO: float = 0.5

# -----------------------------------------------------------------------------
# Geometry
# -----------------------------------------------------------------------------

#: Minimum number of distinct vertices for a polygon boundary
MIN_RING_VERTICES: int = 3

#: Size of the station label alphabet (A-Z)
STATION_ALPHABET_SIZE: int = 26

# -----------------------------------------------------------------------------
# Viewport
# -----------------------------------------------------------------------------

#: Decimal places for the viewport centre
VIEW_CENTER_PRECISION: int = 6

#: Decimal places for zoom, bearing and pitch
VIEW_ANGLE_PRECISION: int = 2

#: Padding (pixels) used when fitting the view to entities
FIT_PADDING: int = 60

#: Maximum zoom when fitting the view to entities
FIT_MAX_ZOOM: float = 17.0

#: Padding (pixels) used when fitting the view to a survey boundary
BOUNDARY_FIT_PADDING: int = 80

#: Maximum zoom when fitting a complete boundary polygon
BOUNDARY_FIT_MAX_ZOOM: float = 18.0

#: Maximum zoom when fitting an incomplete boundary (fewer than 3 points)
BOUNDARY_PARTIAL_FIT_MAX_ZOOM: float = 16.0

# -----------------------------------------------------------------------------
# Surface Sources & Layers
# -----------------------------------------------------------------------------

ENTITY_SOURCE_ID = "entity-points"
ENTITY_OUTER_LAYER_ID = "entity-points-outer"
ENTITY_CORE_LAYER_ID = "entity-points-core"

AREA_SOURCE_ID = "work-areas"
AREA_FILL_LAYER_ID = "work-areas-fill"
AREA_OUTLINE_LAYER_ID = "work-areas-outline"

BOUNDARY_SOURCE_ID = "plot-polygon"
BOUNDARY_FILL_LAYER_ID = "plot-fill"
BOUNDARY_OUTLINE_LAYER_ID = "plot-outline"

STATION_SOURCE_ID = "plot-stations"
STATION_LAYER_ID = "plot-stations-labels"

# -----------------------------------------------------------------------------
# Marker Palettes
# -----------------------------------------------------------------------------

#: Colours per status category: soft outer circle, core dot and ring stroke
MARKER_PALETTES: dict[str, dict[str, str]] = {
    "healthy": {
        "outer": "rgba(150, 223, 138, 0.78)",
        "core": "#4caf50",
        "ring": "rgba(88, 171, 80, 0.72)",
    },
    "dead": {
        "outer": "rgba(253, 176, 176, 0.74)",
        "core": "#e25353",
        "ring": "rgba(190, 68, 68, 0.68)",
    },
    "attention": {
        "outer": "rgba(252, 218, 150, 0.76)",
        "core": "#de9a1f",
        "ring": "rgba(176, 118, 24, 0.68)",
    },
    "pending": {
        "outer": "rgba(170, 211, 255, 0.78)",
        "core": "#3b82f6",
        "ring": "rgba(41, 104, 215, 0.7)",
    },
}

#: Fill and stroke for work areas and survey boundaries
AREA_FILL_COLOR = "#ef4444"
AREA_STROKE_COLOR = "#dc2626"

# -----------------------------------------------------------------------------
# Backend Endpoints
# -----------------------------------------------------------------------------

#: Path template for the per-entity task list
TASKS_PATH = "/entities/{entity_id}/tasks"

#: Path template for the per-entity visit timeline
TIMELINE_PATH = "/entities/{entity_id}/timeline"
