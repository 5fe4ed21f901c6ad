# -*- coding: utf-8 -*-
"""Coordinate reference system conversion.

Usage::

    from fieldmap_lib.crs import from_canonical, to_canonical
    from fieldmap_lib.models import Position

    result = from_canonical(Position(x=7.4951, y=9.0579), "utm_32n")
    if result.warning:
        print(result.warning)
    easting, northing = result.position.as_tuple()

New projected systems are added with :func:`register_reference_system`.
"""

from fieldmap_lib.crs.converter import ConversionResult
from fieldmap_lib.crs.converter import convert
from fieldmap_lib.crs.converter import from_canonical
from fieldmap_lib.crs.converter import looks_projected
from fieldmap_lib.crs.converter import suggest_utm_key
from fieldmap_lib.crs.converter import to_canonical
from fieldmap_lib.crs.definitions import REFERENCE_SYSTEMS
from fieldmap_lib.crs.definitions import ReferenceSystem
from fieldmap_lib.crs.definitions import get_reference_system
from fieldmap_lib.crs.definitions import register_reference_system
from fieldmap_lib.crs.definitions import unregister_reference_system
from fieldmap_lib.crs.ranges import RangeCheckReport
from fieldmap_lib.crs.ranges import check_ranges

__all__ = [
    "REFERENCE_SYSTEMS",
    "ConversionResult",
    "RangeCheckReport",
    "ReferenceSystem",
    "check_ranges",
    "convert",
    "from_canonical",
    "get_reference_system",
    "looks_projected",
    "register_reference_system",
    "suggest_utm_key",
    "to_canonical",
    "unregister_reference_system",
]
