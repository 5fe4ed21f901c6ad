# -*- coding: utf-8 -*-
"""Coordinate conversion between the canonical system and projected systems.

The canonical system is WGS84 longitude/latitude. Every conversion is
fail-open: an unknown system key or a projection library error produces a
:class:`~fieldmap_lib.errors.ConversionWarning` and the input position is
returned unchanged, so that one bad configuration never breaks a geometry
flow. The warning travels with the value in a :class:`ConversionResult`.

Numeric policy (applied once, at the output boundary):

- to a projected system: 2 decimals (centimetres)
- to the geographic system: 6 decimals (~0.11 m at the equator)
"""

from __future__ import annotations

import logging
import math
from typing import NamedTuple

import utm
from pyproj import CRS
from pyproj import Transformer

from fieldmap_lib.constants import CANONICAL_SYSTEM_KEY
from fieldmap_lib.constants import GEOGRAPHIC_MAX_X
from fieldmap_lib.constants import GEOGRAPHIC_MAX_Y
from fieldmap_lib.constants import GEOGRAPHIC_PRECISION
from fieldmap_lib.constants import PROJECTED_PRECISION
from fieldmap_lib.crs.definitions import ReferenceSystem
from fieldmap_lib.crs.definitions import get_reference_system
from fieldmap_lib.enums import WarningKind
from fieldmap_lib.errors import ConversionWarning
from fieldmap_lib.models import Position

logger = logging.getLogger(__name__)


class ConversionResult(NamedTuple):
    """A converted position and the warning raised on the way, if any."""

    position: Position
    warning: ConversionWarning | None = None

    @property
    def ok(self) -> bool:
        return self.warning is None


# Cache for pyproj transformers ((source CRS, target CRS) -> transformer)
_transformer_cache: dict[tuple[str, str], Transformer] = {}


def _get_transformer(source: ReferenceSystem, target: ReferenceSystem) -> Transformer:
    """Get or lazily create a transformer between two reference systems.

    Keyed by the CRS definitions rather than the system keys, so that a
    re-registered system never reuses a stale transformer.
    """
    cache_key = (source.crs_input, target.crs_input)
    if cache_key not in _transformer_cache:
        logger.debug("Building transformer %s -> %s", source.key, target.key)
        _transformer_cache[cache_key] = Transformer.from_crs(
            CRS.from_user_input(source.crs_input),
            CRS.from_user_input(target.crs_input),
            always_xy=True,
        )
    return _transformer_cache[cache_key]


def clear_transformer_cache() -> None:
    _transformer_cache.clear()


def _unknown_system(position: Position, key: str) -> ConversionResult:
    logger.warning("Unknown coordinate system: %s", key)
    return ConversionResult(
        position,
        ConversionWarning(
            kind=WarningKind.UNKNOWN_REFERENCE_SYSTEM,
            message=f"Unknown coordinate system: {key}",
            system_key=key,
        ),
    )


def _transform(
    position: Position,
    source: ReferenceSystem,
    target: ReferenceSystem,
) -> ConversionResult:
    """Project ``position`` from ``source`` to ``target`` and round once."""
    try:
        transformer = _get_transformer(source, target)
        x, y = transformer.transform(position.x, position.y, errcheck=True)
        x, y = float(x), float(y)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Non-finite result ({x}, {y})")  # noqa: TRY301
    except Exception as e:  # noqa: BLE001
        logger.warning(
            "Coordinate conversion error (%s -> %s) for (%s, %s): %s",
            source.key,
            target.key,
            position.x,
            position.y,
            e,
        )
        return ConversionResult(
            position,
            ConversionWarning(
                kind=WarningKind.CONVERSION_FAILURE,
                message=f"Failed to convert ({position.x}, {position.y}): {e}",
                system_key=target.key if source.geographic else source.key,
            ),
        )

    precision = GEOGRAPHIC_PRECISION if target.geographic else PROJECTED_PRECISION
    return ConversionResult(
        Position(x=round(x, precision), y=round(y, precision), system=target.key)
    )


def to_canonical(position: Position, source_key: str) -> ConversionResult:
    """Convert a position expressed in ``source_key`` to WGS84 lon/lat.

    Args:
        position: Coordinates in the source system (easting/northing or
            lon/lat); its ``system`` tag is ignored in favour of
            ``source_key``
        source_key: Key of the source reference system

    Returns:
        ConversionResult with the canonical position, or the unchanged input
        and a warning if the system is unknown or the conversion failed
    """
    if source_key == CANONICAL_SYSTEM_KEY:
        return ConversionResult(
            Position(x=position.x, y=position.y, system=CANONICAL_SYSTEM_KEY)
        )

    source = get_reference_system(source_key)
    if source is None:
        return _unknown_system(position, source_key)

    canonical = get_reference_system(CANONICAL_SYSTEM_KEY)
    return _transform(position, source, canonical)


def from_canonical(position: Position, target_key: str) -> ConversionResult:
    """Convert a WGS84 lon/lat position to the ``target_key`` system.

    Args:
        position: Longitude/latitude
        target_key: Key of the target reference system

    Returns:
        ConversionResult with the projected position, or the unchanged input
        and a warning if the system is unknown or the conversion failed
    """
    if target_key == CANONICAL_SYSTEM_KEY:
        return ConversionResult(
            Position(x=position.x, y=position.y, system=CANONICAL_SYSTEM_KEY)
        )

    target = get_reference_system(target_key)
    if target is None:
        return _unknown_system(position, target_key)

    canonical = get_reference_system(CANONICAL_SYSTEM_KEY)
    return _transform(position, canonical, target)


def convert(position: Position, target_key: str) -> ConversionResult:
    """Convert a position from its own ``system`` tag to ``target_key``.

    Converts directly between the two systems so that rounding only happens
    once, at the output.
    """
    if position.system == target_key:
        return ConversionResult(position)
    if position.system == CANONICAL_SYSTEM_KEY:
        return from_canonical(position, target_key)
    if target_key == CANONICAL_SYSTEM_KEY:
        return to_canonical(position, position.system)

    source = get_reference_system(position.system)
    if source is None:
        return _unknown_system(position, position.system)
    target = get_reference_system(target_key)
    if target is None:
        return _unknown_system(position, target_key)
    return _transform(position, source, target)


def looks_projected(x: float, y: float) -> bool:
    """Best-effort guess whether a raw pair is projected rather than lon/lat.

    Only used for auto-detection hints, never for persisted data.
    """
    return abs(x) > GEOGRAPHIC_MAX_X or abs(y) > GEOGRAPHIC_MAX_Y


def suggest_utm_key(lng: float, lat: float) -> str | None:
    """Key of the registered UTM system whose zone contains ``(lng, lat)``.

    Returns ``None`` when the position is not geographic or no registered
    system covers the zone.
    """
    if not (math.isfinite(lng) and math.isfinite(lat)) or looks_projected(lng, lat):
        return None
    zone = utm.latlon_to_zone_number(lat, lng)
    hemisphere = "n" if lat >= 0 else "s"
    key = f"utm_{zone}{hemisphere}"
    return key if get_reference_system(key) is not None else None
