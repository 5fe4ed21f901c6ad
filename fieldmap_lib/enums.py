# -*- coding: utf-8 -*-
"""Enumerations for the annotation subsystem.

This module contains the closed vocabularies used across the library:
entity statuses, draw modes, overlay slots and states, and warning kinds.
"""

from enum import Enum


class FileExtension(str, Enum):
    """File extensions handled by the command line tools (with dot).

    Attributes:
        JSON: JSON file extension
        GEOJSON: GeoJSON file extension
    """

    JSON = ".json"
    GEOJSON = ".geojson"


class EntityStatus(str, Enum):
    """Closed vocabulary of entity (planted tree) statuses.

    The values are the normalized keys produced by
    :func:`fieldmap_lib.status.normalize_status`.
    """

    HEALTHY = "healthy"
    ALIVE = "alive"
    DEAD = "dead"
    REMOVED = "removed"
    NEEDS_ATTENTION = "needs_attention"
    PEST = "pest"
    DISEASE = "disease"
    NEED_REPLACEMENT = "need_replacement"
    DAMAGED = "damaged"
    NEED_WATERING = "need_watering"
    NEED_PROTECTION = "need_protection"
    PENDING_PLANTING = "pending_planting"


class StatusCategory(str, Enum):
    """Visual category of a status, used to pick a marker palette.

    Attributes:
        HEALTHY: Healthy-like statuses (drawn with a halo)
        DEAD: Dead or removed entities
        ATTENTION: Entities needing some intervention
        PENDING: Entities not planted yet
    """

    HEALTHY = "healthy"
    DEAD = "dead"
    ATTENTION = "attention"
    PENDING = "pending"


class DrawMode(str, Enum):
    """Interaction mode of the drawing tool.

    Attributes:
        IDLE: No drawing controls active (inspect only)
        PLACING_POINT: Next click places a single point
        DRAWING_POLYGON: Clicks add polygon vertices
    """

    IDLE = "idle"
    PLACING_POINT = "placing_point"
    DRAWING_POLYGON = "drawing_polygon"

    @property
    def tool_mode(self) -> str:
        """Mode command understood by the surface drawing tool."""
        return {
            DrawMode.IDLE: "simple_select",
            DrawMode.PLACING_POINT: "draw_point",
            DrawMode.DRAWING_POLYGON: "draw_polygon",
        }[self]


class OverlaySlot(str, Enum):
    """Independent overlay slots.

    Attributes:
        HOVER: Transient overlay following the pointer
        CLICK: Pinned overlay opened by a click
    """

    HOVER = "hover"
    CLICK = "click"


class OverlayState(str, Enum):
    """Display state of an overlay slot.

    Attributes:
        LOADING: Fetch in flight (cached detail may be shown meanwhile)
        READY: Fresh detail rendered
        OFFLINE: Detail partly or wholly read from the offline store
        NO_DATA: Fetch failed and nothing is known about the entity
    """

    LOADING = "loading"
    READY = "ready"
    OFFLINE = "offline"
    NO_DATA = "no_data"


class DetailPart(str, Enum):
    """Independently fetched parts of a detail record."""

    TASKS = "tasks"
    TIMELINE = "timeline"


class DetailOrigin(str, Enum):
    """Where a detail part came from."""

    NETWORK = "network"
    OFFLINE = "offline"
    MISSING = "missing"


class WarningKind(str, Enum):
    """Kinds of recoverable problems reported alongside a value.

    Attributes:
        UNKNOWN_REFERENCE_SYSTEM: Reference system key not in the table
        CONVERSION_FAILURE: The projection library raised
        MALFORMED_GEOMETRY: A feature was dropped from a batch
    """

    UNKNOWN_REFERENCE_SYSTEM = "unknown_reference_system"
    CONVERSION_FAILURE = "conversion_failure"
    MALFORMED_GEOMETRY = "malformed_geometry"
