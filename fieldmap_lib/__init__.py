# -*- coding: utf-8 -*-
"""Field Map Annotation Library.

Coordinate-aware map annotation for field operations: planted-tree markers,
work areas and survey boundaries rendered on an interactive map surface,
with hover/click detail overlays backed by a deduplicating cache.

Usage:
    from fieldmap_lib import FieldMapInterface, HttpDetailSource
    from fieldmap_lib import InMemorySurface, Position, to_canonical

    # Minna / UTM 32N easting-northing -> WGS84 lon/lat
    result = to_canonical(Position(x=335000, y=1001500), "minna_32")
    print(result.position, result.warning)

    fieldmap = FieldMapInterface(
        InMemorySurface(),
        HttpDetailSource("https://api.example.org/v1"),
        on_entity_inspect=print,
    )
    fieldmap.set_entities([{"id": 1, "lng": 7.49, "lat": 9.05, "status": "alive"}])
"""

__version__ = "0.1.0"

# Constants
from fieldmap_lib.constants import CANONICAL_SYSTEM_KEY
from fieldmap_lib.constants import JSON_ENCODING

# CRS
from fieldmap_lib.crs import REFERENCE_SYSTEMS
from fieldmap_lib.crs import ConversionResult
from fieldmap_lib.crs import RangeCheckReport
from fieldmap_lib.crs import ReferenceSystem
from fieldmap_lib.crs import check_ranges
from fieldmap_lib.crs import convert
from fieldmap_lib.crs import from_canonical
from fieldmap_lib.crs import looks_projected
from fieldmap_lib.crs import register_reference_system
from fieldmap_lib.crs import to_canonical

# Detail
from fieldmap_lib.detail import DetailCache
from fieldmap_lib.detail import HttpDetailSource
from fieldmap_lib.detail import JsonOfflineStore
from fieldmap_lib.detail import MemoryOfflineStore

# Drawing & rendering
from fieldmap_lib.draw import DrawModeController
from fieldmap_lib.draw import DrawSession

# Enums
from fieldmap_lib.enums import DetailOrigin
from fieldmap_lib.enums import DetailPart
from fieldmap_lib.enums import DrawMode
from fieldmap_lib.enums import EntityStatus
from fieldmap_lib.enums import OverlaySlot
from fieldmap_lib.enums import OverlayState
from fieldmap_lib.enums import StatusCategory
from fieldmap_lib.enums import WarningKind

# Errors
from fieldmap_lib.errors import ConversionWarning
from fieldmap_lib.errors import DetailFetchError
from fieldmap_lib.errors import DrawingDisabledError
from fieldmap_lib.errors import FieldMapError
from fieldmap_lib.errors import InsufficientVerticesError
from fieldmap_lib.errors import MalformedGeometryError
from fieldmap_lib.features import FeatureSynchronizer

# Geometry
from fieldmap_lib.geometry import close_ring
from fieldmap_lib.geometry import open_ring
from fieldmap_lib.geometry import station_label
from fieldmap_lib.geometry import validate_ring
from fieldmap_lib.interface import FieldMapInterface

# Models
from fieldmap_lib.models import Area
from fieldmap_lib.models import DetailRecord
from fieldmap_lib.models import Entity
from fieldmap_lib.models import MaintenanceSummary
from fieldmap_lib.models import PointerEvent
from fieldmap_lib.models import Position
from fieldmap_lib.models import StationPoint
from fieldmap_lib.models import TaskRecord
from fieldmap_lib.models import TimelineEntry
from fieldmap_lib.models import Viewport
from fieldmap_lib.overlay import OverlayController
from fieldmap_lib.overlay import OverlayView

# Status
from fieldmap_lib.status import normalize_status
from fieldmap_lib.status import status_label
from fieldmap_lib.surface import InMemorySurface

__all__ = [
    # Constants
    "CANONICAL_SYSTEM_KEY",
    "JSON_ENCODING",
    # CRS
    "REFERENCE_SYSTEMS",
    "ConversionResult",
    "RangeCheckReport",
    "ReferenceSystem",
    "check_ranges",
    "convert",
    "from_canonical",
    "looks_projected",
    "register_reference_system",
    "to_canonical",
    # Enums
    "DetailOrigin",
    "DetailPart",
    "DrawMode",
    "EntityStatus",
    "OverlaySlot",
    "OverlayState",
    "StatusCategory",
    "WarningKind",
    # Errors
    "ConversionWarning",
    "DetailFetchError",
    "DrawingDisabledError",
    "FieldMapError",
    "InsufficientVerticesError",
    "MalformedGeometryError",
    # Models
    "Area",
    "DetailRecord",
    "Entity",
    "MaintenanceSummary",
    "PointerEvent",
    "Position",
    "StationPoint",
    "TaskRecord",
    "TimelineEntry",
    "Viewport",
    # Geometry & status
    "close_ring",
    "open_ring",
    "station_label",
    "validate_ring",
    "normalize_status",
    "status_label",
    # Components
    "DetailCache",
    "DrawModeController",
    "DrawSession",
    "FeatureSynchronizer",
    "FieldMapInterface",
    "HttpDetailSource",
    "InMemorySurface",
    "JsonOfflineStore",
    "MemoryOfflineStore",
    "OverlayController",
    "OverlayView",
]
