# -*- coding: utf-8 -*-
"""Ring normalization and station labelling for boundary polygons.

A ring is an ordered list of positions describing a polygon boundary. A
*closed* ring repeats its first position at the end. The closing position is
always derived, never measured, so closing and opening compare coordinates
exactly (no tolerance) and are idempotent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import TypeVar

from shapely.geometry import Polygon as ShapelyPolygon

from fieldmap_lib.constants import MIN_RING_VERTICES
from fieldmap_lib.constants import STATION_ALPHABET_SIZE
from fieldmap_lib.errors import InsufficientVerticesError
from fieldmap_lib.models import Position
from fieldmap_lib.models import StationPoint

if TYPE_CHECKING:
    from collections.abc import Iterable
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Position)


# -----------------------------------------------------------------------------
# Ring closing
# -----------------------------------------------------------------------------


def is_closed(points: Sequence[Position]) -> bool:
    """Whether the ring's last position exactly equals its first."""
    return len(points) > 1 and points[0].same_coordinates(points[-1])


def close_ring(points: Sequence[P]) -> list[P]:
    """Close a ring by repeating its first position.

    Rings with fewer than 3 points are returned unchanged. An already closed
    ring is returned as is.

    Example:
        >>> ring = [Position(x=0, y=0), Position(x=0, y=3), Position(x=4, y=3)]
        >>> [p.as_tuple() for p in close_ring(ring)]
        [(0.0, 0.0), (0.0, 3.0), (4.0, 3.0), (0.0, 0.0)]
    """
    result = list(points)
    if len(result) < MIN_RING_VERTICES or is_closed(result):
        return result
    result.append(result[0].model_copy())
    return result


def open_ring(points: Sequence[P]) -> list[P]:
    """Drop the closing position of a closed ring.

    Only rings with more than 3 points are opened, so that a degenerate
    triangle-with-repeat is never reduced below 3 entries.
    """
    result = list(points)
    if len(result) > MIN_RING_VERTICES and is_closed(result):
        return result[:-1]
    return result


# -----------------------------------------------------------------------------
# Station labels
# -----------------------------------------------------------------------------


def station_label(index: int) -> str:
    """Spreadsheet-column style label for a zero-based vertex index.

    0 -> ``A``, 25 -> ``Z``, 26 -> ``AA``, 27 -> ``AB``, 701 -> ``ZZ``,
    702 -> ``AAA``. There is no upper bound.

    Raises:
        ValueError: If ``index`` is negative
    """
    if index < 0:
        raise ValueError(f"Station index must be >= 0, got {index}")

    label = ""
    num = index
    while num >= 0:
        num, rem = divmod(num, STATION_ALPHABET_SIZE)
        label = chr(ord("A") + rem) + label
        num -= 1
    return label


def label_points(points: Iterable[Position]) -> list[StationPoint]:
    """Attach sequential station labels (``A``, ``B``, ...) to positions."""
    return [
        StationPoint(x=point.x, y=point.y, system=point.system, station=station_label(i))
        for i, point in enumerate(points)
    ]


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


def is_placeholder(point: Position) -> bool:
    """The ``(0, 0)`` pair marks a vertex the user has not entered yet."""
    return point.x == 0 and point.y == 0


def valid_points(points: Iterable[P]) -> list[P]:
    """Keep finite positions that are not unset placeholders."""
    return [p for p in points if p.is_finite and not is_placeholder(p)]


def find_duplicate_vertices(points: Sequence[Position]) -> list[int]:
    """Indices of vertices exactly equal to an earlier vertex.

    The closing position of a closed ring is not reported.
    """
    seen: set[tuple[float, float]] = set()
    duplicates: list[int] = []
    for index, point in enumerate(open_ring(points)):
        key = point.as_tuple()
        if key in seen:
            duplicates.append(index)
        else:
            seen.add(key)
    return duplicates


def distinct_vertex_count(points: Sequence[Position]) -> int:
    """Number of distinct finite vertices (closing position excluded)."""
    return len({p.as_tuple() for p in open_ring(points) if p.is_finite})


def validate_ring(points: Sequence[P]) -> list[P]:
    """Check that a ring can form a polygon and return it opened.

    Raises:
        InsufficientVerticesError: If fewer than 3 distinct finite vertices
    """
    distinct = distinct_vertex_count(points)
    if distinct < MIN_RING_VERTICES:
        raise InsufficientVerticesError(distinct, MIN_RING_VERTICES)
    return open_ring(points)


# -----------------------------------------------------------------------------
# Measurements
# -----------------------------------------------------------------------------


def ring_bounds(points: Iterable[Position]) -> tuple[float, float, float, float] | None:
    """``(min_x, min_y, max_x, max_y)`` of the finite positions, or None."""
    finite = [p for p in points if p.is_finite]
    if not finite:
        return None
    xs = [p.x for p in finite]
    ys = [p.y for p in finite]
    return (min(xs), min(ys), max(xs), max(ys))


def to_shapely(points: Sequence[Position]) -> ShapelyPolygon:
    """Build a shapely polygon from a (validated) ring."""
    ring = validate_ring(points)
    return ShapelyPolygon([p.as_tuple() for p in ring])


def ring_area(points: Sequence[Position]) -> float:
    """Planar area of the ring in squared units of its system.

    Only meaningful for projected systems (square metres).
    """
    return float(to_shapely(points).area)


def is_simple_ring(points: Sequence[Position]) -> bool:
    """Whether the ring forms a valid polygon (no self-intersection)."""
    polygon = to_shapely(points)
    if not polygon.is_valid:
        logger.debug("Ring is not simple: %d vertices", len(points))
        return False
    return True
