# -*- coding: utf-8 -*-
"""Entity feature synchronization with the rendering surface.

This module converts domain entities (planted-tree markers), work areas and
survey boundary vertices into GeoJSON feature collections and pushes them to
the rendering surface.

Rules:
- One bad item never blanks the map: entities with non-finite positions and
  areas with malformed geometry are dropped individually (logged as
  ``MalformedGeometry``) and the rest of the batch renders.
- A source is only pushed when its serialized content changed, so the
  surface never re-renders for reasons unrelated to the data.
- Pushes requested before the surface is ready are held; only the newest
  collection per source is delivered once it is (superseded pushes are
  skipped, not queued).
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING
from typing import Any

import orjson
from geojson import Feature
from geojson import FeatureCollection
from geojson import Point
from geojson import Polygon
from pydantic import ValidationError
from shapely.geometry import shape

from fieldmap_lib.constants import AREA_FILL_COLOR
from fieldmap_lib.constants import AREA_FILL_LAYER_ID
from fieldmap_lib.constants import AREA_OUTLINE_LAYER_ID
from fieldmap_lib.constants import AREA_SOURCE_ID
from fieldmap_lib.constants import AREA_STROKE_COLOR
from fieldmap_lib.constants import BOUNDARY_FILL_LAYER_ID
from fieldmap_lib.constants import BOUNDARY_FIT_MAX_ZOOM
from fieldmap_lib.constants import BOUNDARY_FIT_PADDING
from fieldmap_lib.constants import BOUNDARY_OUTLINE_LAYER_ID
from fieldmap_lib.constants import BOUNDARY_PARTIAL_FIT_MAX_ZOOM
from fieldmap_lib.constants import BOUNDARY_SOURCE_ID
from fieldmap_lib.constants import CANONICAL_SYSTEM_KEY
from fieldmap_lib.constants import ENTITY_CORE_LAYER_ID
from fieldmap_lib.constants import ENTITY_OUTER_LAYER_ID
from fieldmap_lib.constants import ENTITY_SOURCE_ID
from fieldmap_lib.constants import FIT_MAX_ZOOM
from fieldmap_lib.constants import FIT_PADDING
from fieldmap_lib.constants import MARKER_PALETTES
from fieldmap_lib.constants import MIN_RING_VERTICES
from fieldmap_lib.constants import STATION_LAYER_ID
from fieldmap_lib.constants import STATION_SOURCE_ID
from fieldmap_lib.crs.converter import to_canonical
from fieldmap_lib.enums import StatusCategory
from fieldmap_lib.enums import WarningKind
from fieldmap_lib.errors import ConversionWarning
from fieldmap_lib.errors import MalformedGeometryError
from fieldmap_lib.geometry import close_ring
from fieldmap_lib.geometry import label_points
from fieldmap_lib.geometry import ring_bounds
from fieldmap_lib.geometry import valid_points
from fieldmap_lib.models import Area
from fieldmap_lib.models import Entity
from fieldmap_lib.models import StationPoint
from fieldmap_lib.status import is_active_status
from fieldmap_lib.status import normalize_status
from fieldmap_lib.status import status_category
from fieldmap_lib.status import status_label

if TYPE_CHECKING:
    from collections.abc import Iterable
    from collections.abc import Sequence

    from fieldmap_lib.models import Position
    from fieldmap_lib.surface import RenderingSurface

logger = logging.getLogger(__name__)

AREA_GEOMETRY_TYPES = ("Polygon", "MultiPolygon")

_DEFAULT_PALETTE = MARKER_PALETTES[StatusCategory.HEALTHY.value]


# -----------------------------------------------------------------------------
# Parsing raw backend rows
# -----------------------------------------------------------------------------


def parse_entities(rows: Iterable[dict[str, Any]]) -> list[Entity]:
    """Validate raw entity rows, dropping the rows that do not validate."""
    entities: list[Entity] = []
    for row in rows:
        try:
            entities.append(Entity.model_validate(row))
        except ValidationError:
            logger.warning("Skipping entity row %r: invalid fields", row.get("id"))
    return entities


def parse_areas(rows: Iterable[dict[str, Any]]) -> list[Area]:
    """Validate raw area rows, dropping the rows that do not validate."""
    areas: list[Area] = []
    for row in rows:
        try:
            areas.append(Area.model_validate(row))
        except ValidationError:
            logger.warning("Skipping area row %r: invalid fields", row.get("id"))
    return areas


# -----------------------------------------------------------------------------
# Feature conversion
# -----------------------------------------------------------------------------


def entity_to_feature(entity: Entity) -> Feature:
    """Convert an entity to a GeoJSON Point Feature.

    Raises:
        MalformedGeometryError: If the position is not finite
    """
    if not (math.isfinite(entity.lng) and math.isfinite(entity.lat)):
        raise MalformedGeometryError(
            f"Entity {entity.id} has a non-finite position ({entity.lng}, {entity.lat})"
        )

    category = status_category(entity.status)
    palette = MARKER_PALETTES.get(category.value, _DEFAULT_PALETTE)
    return Feature(
        geometry=Point((entity.lng, entity.lat)),
        properties={
            "id": entity.id,
            "status": normalize_status(entity.status),
            "label": status_label(entity.status),
            "active": is_active_status(entity.status),
            "category": category.value,
            "outer": palette["outer"],
            "core": palette["core"],
            "ring": palette["ring"],
        },
    )


def _coordinates_finite(coordinates: Any) -> bool:
    if isinstance(coordinates, (list, tuple)):
        return all(_coordinates_finite(c) for c in coordinates)
    try:
        return math.isfinite(coordinates)
    except TypeError:
        return False


def area_to_feature(area: Area) -> Feature:
    """Convert a work area to a GeoJSON Feature.

    Raises:
        MalformedGeometryError: If the geometry is missing, of the wrong
            type, has no or non-finite coordinates or does not form a valid
            shape
    """
    geometry = area.geometry
    if not geometry or geometry.get("type") not in AREA_GEOMETRY_TYPES:
        raise MalformedGeometryError(
            f"Area {area.id}: expected Polygon or MultiPolygon, "
            f"got {(geometry or {}).get('type')!r}"
        )
    if not geometry.get("coordinates"):
        raise MalformedGeometryError(f"Area {area.id}: empty coordinates")
    if not _coordinates_finite(geometry["coordinates"]):
        raise MalformedGeometryError(f"Area {area.id}: non-finite coordinates")

    try:
        parsed = shape(geometry)
    except Exception as e:  # noqa: BLE001
        raise MalformedGeometryError(f"Area {area.id}: {e}") from e
    if parsed.is_empty:
        raise MalformedGeometryError(f"Area {area.id}: empty geometry")

    return Feature(
        geometry=geometry,
        properties={
            "id": area.id,
            "name": area.name or f"Area {area.id}",
            "assignee": area.assignee,
        },
    )


def _dropped(warnings: list[ConversionWarning] | None, error: Exception) -> None:
    logger.warning("Dropping feature: %s", error)
    if warnings is not None:
        warnings.append(
            ConversionWarning(kind=WarningKind.MALFORMED_GEOMETRY, message=str(error))
        )


def build_entity_collection(
    entities: Iterable[Entity],
    warnings: list[ConversionWarning] | None = None,
) -> FeatureCollection:
    """Build the entity FeatureCollection, dropping malformed entities.

    Args:
        entities: Entities to render
        warnings: Optional list collecting one warning per dropped entity

    Returns:
        GeoJSON FeatureCollection
    """
    features: list[Feature] = []
    for entity in entities:
        try:
            features.append(entity_to_feature(entity))
        except MalformedGeometryError as e:
            _dropped(warnings, e)
    return FeatureCollection(features)


def build_area_collection(
    areas: Iterable[Area],
    warnings: list[ConversionWarning] | None = None,
) -> FeatureCollection:
    """Build the area FeatureCollection, dropping malformed areas."""
    features: list[Feature] = []
    for area in areas:
        try:
            features.append(area_to_feature(area))
        except MalformedGeometryError as e:
            _dropped(warnings, e)
    return FeatureCollection(features)


def build_boundary_collections(
    points: Sequence[StationPoint],
) -> tuple[FeatureCollection, FeatureCollection]:
    """Station markers and (with >= 3 points) the closed boundary polygon.

    Args:
        points: Valid, geographic boundary vertices

    Returns:
        ``(stations, polygon)`` feature collections
    """
    stations = FeatureCollection(
        [
            Feature(geometry=Point(p.as_tuple()), properties={"station": p.station})
            for p in points
        ]
    )
    if len(points) < MIN_RING_VERTICES:
        return stations, FeatureCollection([])

    ring = [p.as_tuple() for p in close_ring(points)]
    polygon = FeatureCollection([Feature(geometry=Polygon([ring]), properties={})])
    return stations, polygon


def fingerprint(collection: FeatureCollection) -> bytes:
    """Stable serialization used to detect content changes."""
    return orjson.dumps(collection, option=orjson.OPT_SORT_KEYS)


# -----------------------------------------------------------------------------
# Layers
# -----------------------------------------------------------------------------


def _default_layers() -> list[dict[str, Any]]:
    healthy = _DEFAULT_PALETTE
    return [
        {
            "id": AREA_FILL_LAYER_ID,
            "type": "fill",
            "source": AREA_SOURCE_ID,
            "paint": {"fill-color": AREA_FILL_COLOR, "fill-opacity": 0.15},
        },
        {
            "id": AREA_OUTLINE_LAYER_ID,
            "type": "line",
            "source": AREA_SOURCE_ID,
            "paint": {"line-color": AREA_STROKE_COLOR, "line-width": 2},
        },
        {
            "id": BOUNDARY_FILL_LAYER_ID,
            "type": "fill",
            "source": BOUNDARY_SOURCE_ID,
            "paint": {"fill-color": AREA_FILL_COLOR, "fill-opacity": 0.25},
        },
        {
            "id": BOUNDARY_OUTLINE_LAYER_ID,
            "type": "line",
            "source": BOUNDARY_SOURCE_ID,
            "paint": {"line-color": AREA_STROKE_COLOR, "line-width": 3},
        },
        {
            "id": STATION_LAYER_ID,
            "type": "symbol",
            "source": STATION_SOURCE_ID,
            "layout": {"text-field": ["get", "station"]},
        },
        {
            # Halo, drawn only for healthy-like entities
            "id": ENTITY_OUTER_LAYER_ID,
            "type": "circle",
            "source": ENTITY_SOURCE_ID,
            "filter": ["==", ["get", "active"], True],
            "paint": {
                "circle-radius": 12,
                "circle-color": ["coalesce", ["get", "outer"], healthy["outer"]],
                "circle-stroke-width": 1,
                "circle-stroke-color": ["coalesce", ["get", "ring"], healthy["ring"]],
            },
        },
        {
            "id": ENTITY_CORE_LAYER_ID,
            "type": "circle",
            "source": ENTITY_SOURCE_ID,
            "paint": {
                "circle-radius": 4,
                "circle-color": ["coalesce", ["get", "core"], healthy["core"]],
                "circle-stroke-width": 1,
                "circle-stroke-color": "#2f7e34",
            },
        },
    ]


MANAGED_SOURCES = (
    AREA_SOURCE_ID,
    BOUNDARY_SOURCE_ID,
    STATION_SOURCE_ID,
    ENTITY_SOURCE_ID,
)


# -----------------------------------------------------------------------------
# Synchronizer
# -----------------------------------------------------------------------------


class FeatureSynchronizer:
    """Keeps the surface's entity, area and boundary sources up to date.

    Only this class (and the draw controller, for the drawing tool) writes
    to the surface.
    """

    def __init__(self, surface: RenderingSurface) -> None:
        self._surface = surface
        self._attached = False
        self._pushed: dict[str, bytes] = {}
        self._pending: dict[str, FeatureCollection] = {}
        self._warnings: dict[str, list[ConversionWarning]] = {}

    @property
    def attached(self) -> bool:
        return self._attached

    def warnings(self, source_id: str) -> list[ConversionWarning]:
        """Warnings of the latest update of ``source_id``."""
        return list(self._warnings.get(source_id, []))

    @property
    def last_warnings(self) -> list[ConversionWarning]:
        """Warnings of the latest entity, area and boundary updates."""
        return [
            warning
            for source_id in (ENTITY_SOURCE_ID, AREA_SOURCE_ID, BOUNDARY_SOURCE_ID)
            for warning in self._warnings.get(source_id, [])
        ]

    def attach(self) -> bool:
        """Create the managed sources and layers once the surface is ready.

        Returns:
            True if the synchronizer is attached after the call
        """
        if self._attached:
            return True
        if not self._surface.ready:
            return False

        for source_id in MANAGED_SOURCES:
            if not self._surface.has_source(source_id):
                self._surface.add_source(source_id, FeatureCollection([]))
        for layer in _default_layers():
            if not self._surface.has_layer(layer["id"]):
                self._surface.add_layer(layer)

        self._attached = True
        self._flush()
        return True

    def detach(self) -> None:
        for layer in _default_layers():
            self._surface.remove_layer(layer["id"])
        self._attached = False
        self._pushed.clear()

    def surface_ready(self) -> None:
        """Surface ready callback: attach and deliver held collections."""
        self.attach()

    def _flush(self) -> None:
        pending, self._pending = self._pending, {}
        for source_id, collection in pending.items():
            self._push(source_id, collection)

    def _push(self, source_id: str, collection: FeatureCollection) -> bool:
        digest = fingerprint(collection)
        if self._pushed.get(source_id) == digest:
            # An older held collection is superseded by unchanged content
            self._pending.pop(source_id, None)
            logger.debug("Skipping push to %s: content unchanged", source_id)
            return False

        if not self._attached and not self.attach():
            if source_id in self._pending:
                logger.debug("Superseding held push to %s", source_id)
            self._pending[source_id] = collection
            return False

        self._surface.set_feature_collection(source_id, collection)
        self._pushed[source_id] = digest
        return True

    # --- public updates ---

    def update_entities(self, entities: Iterable[Entity]) -> bool:
        """Render entities. Returns True if the surface was updated."""
        warnings: list[ConversionWarning] = []
        self._warnings[ENTITY_SOURCE_ID] = warnings
        collection = build_entity_collection(entities, warnings)
        return self._push(ENTITY_SOURCE_ID, collection)

    def update_areas(self, areas: Iterable[Area]) -> bool:
        """Render work areas. Returns True if the surface was updated."""
        warnings: list[ConversionWarning] = []
        self._warnings[AREA_SOURCE_ID] = warnings
        collection = build_area_collection(areas, warnings)
        return self._push(AREA_SOURCE_ID, collection)

    def push_boundary(
        self,
        points: Sequence[Position],
        system_key: str = CANONICAL_SYSTEM_KEY,
        *,
        fit: bool = True,
    ) -> list[StationPoint]:
        """Render survey boundary vertices entered in ``system_key``.

        Placeholder and non-finite vertices are excluded. Vertices are
        converted to the canonical system, labelled ``A, B, ...`` and, with at
        least 3 of them, rendered as a closed polygon. Conversion warnings are
        kept under ``warnings(BOUNDARY_SOURCE_ID)``.

        Returns:
            The rendered (valid, canonical, labelled) vertices
        """
        warnings: list[ConversionWarning] = []
        self._warnings[BOUNDARY_SOURCE_ID] = warnings
        canonical: list[Position] = []
        for point in valid_points(points):
            result = to_canonical(point, system_key)
            if result.warning is not None:
                warnings.append(result.warning)
            canonical.append(result.position)

        labelled = label_points(canonical)
        stations, polygon = build_boundary_collections(labelled)
        self._push(STATION_SOURCE_ID, stations)
        self._push(BOUNDARY_SOURCE_ID, polygon)

        if fit and labelled:
            complete = len(labelled) >= MIN_RING_VERTICES
            self.fit_to(
                labelled,
                padding=BOUNDARY_FIT_PADDING,
                max_zoom=BOUNDARY_FIT_MAX_ZOOM if complete else BOUNDARY_PARTIAL_FIT_MAX_ZOOM,
            )
        return labelled

    def fit_to(
        self,
        points: Iterable[Position],
        *,
        padding: int = FIT_PADDING,
        max_zoom: float = FIT_MAX_ZOOM,
    ) -> bool:
        """Fit the view to the finite positions. Returns False if none."""
        bounds = ring_bounds(points)
        if bounds is None or not self._surface.ready:
            return False
        self._surface.fit_to_bounds(bounds, padding=padding, max_zoom=max_zoom)
        return True
