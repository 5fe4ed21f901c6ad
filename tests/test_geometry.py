# -*- coding: utf-8 -*-
"""Tests for ring normalization and station labelling."""

import math

import pytest

from fieldmap_lib.errors import InsufficientVerticesError
from fieldmap_lib.geometry import close_ring
from fieldmap_lib.geometry import distinct_vertex_count
from fieldmap_lib.geometry import find_duplicate_vertices
from fieldmap_lib.geometry import is_closed
from fieldmap_lib.geometry import is_simple_ring
from fieldmap_lib.geometry import label_points
from fieldmap_lib.geometry import open_ring
from fieldmap_lib.geometry import ring_area
from fieldmap_lib.geometry import ring_bounds
from fieldmap_lib.geometry import station_label
from fieldmap_lib.geometry import valid_points
from fieldmap_lib.geometry import validate_ring
from fieldmap_lib.models import Position


def _ring(*pairs):
    return [Position(x=x, y=y) for x, y in pairs]


def _tuples(points):
    return [p.as_tuple() for p in points]


TRIANGLE = _ring((0, 0), (0, 3), (4, 3))


class TestCloseRing:
    """Tests for close_ring / open_ring."""

    def test_close_triangle(self):
        """Test closing [(0,0),(0,3),(4,3)]."""
        assert _tuples(close_ring(TRIANGLE)) == [(0, 0), (0, 3), (4, 3), (0, 0)]

    def test_close_already_closed(self):
        """Test that a closed ring is returned identical."""
        closed = close_ring(TRIANGLE)
        assert _tuples(close_ring(closed)) == _tuples(closed)

    @pytest.mark.parametrize(
        "pairs",
        [
            [(0, 0), (0, 3), (4, 3)],
            [(1.5, 2.5), (3, 4), (5, 1), (2, -1)],
            [(0, 0), (0, 1), (1, 1), (1, 0), (0, 0)],
        ],
    )
    def test_close_idempotent(self, pairs):
        """Test close_ring(close_ring(R)) == close_ring(R)."""
        ring = _ring(*pairs)
        assert _tuples(close_ring(close_ring(ring))) == _tuples(close_ring(ring))

    @pytest.mark.parametrize("pairs", [[], [(1, 1)], [(1, 1), (2, 2)]])
    def test_short_rings_unchanged(self, pairs):
        """Test that rings with fewer than 3 points are not closed."""
        ring = _ring(*pairs)
        assert _tuples(close_ring(ring)) == pairs

    def test_close_does_not_mutate_input(self):
        """Test that the input list is left untouched."""
        ring = list(TRIANGLE)
        close_ring(ring)
        assert len(ring) == 3

    def test_closing_point_is_a_copy(self):
        """Test that the closing point is a new object equal to the first."""
        closed = close_ring(TRIANGLE)
        assert closed[-1] is not closed[0]
        assert closed[-1] == closed[0]

    def test_near_equal_is_not_closed(self):
        """Test that closing uses exact equality."""
        ring = _ring((0, 0), (0, 3), (4, 3), (1e-12, 0))
        assert not is_closed(ring)
        assert len(close_ring(ring)) == 5

    def test_open_ring(self):
        """Test that opening drops the closing point."""
        assert _tuples(open_ring(close_ring(TRIANGLE))) == _tuples(TRIANGLE)

    def test_open_ring_idempotent(self):
        """Test that opening an open ring is a no-op."""
        assert _tuples(open_ring(TRIANGLE)) == _tuples(TRIANGLE)

    def test_open_keeps_three_points(self):
        """Test that a 3-point closed sequence is not reduced below 3."""
        ring = _ring((0, 0), (1, 1), (0, 0))
        assert len(open_ring(ring)) == 3


class TestStationLabel:
    """Tests for spreadsheet-column station labels."""

    def test_first_28_labels(self):
        """Test labels 0..27."""
        expected = [chr(ord("A") + i) for i in range(26)] + ["AA", "AB"]
        assert [station_label(i) for i in range(28)] == expected

    @pytest.mark.parametrize(
        ("index", "label"),
        [(0, "A"), (25, "Z"), (26, "AA"), (51, "AZ"), (52, "BA"), (701, "ZZ"), (702, "AAA")],
    )
    def test_known_labels(self, index, label):
        """Test selected indices."""
        assert station_label(index) == label

    def test_unbounded(self):
        """Test that large indices keep producing unique labels."""
        labels = {station_label(i) for i in range(20_000)}
        assert len(labels) == 20_000

    def test_negative_index(self):
        """Test that negative indices are rejected."""
        with pytest.raises(ValueError):
            station_label(-1)

    def test_label_points(self):
        """Test attaching labels to positions."""
        labelled = label_points(TRIANGLE)
        assert [p.station for p in labelled] == ["A", "B", "C"]
        assert _tuples(labelled) == _tuples(TRIANGLE)
        assert str(labelled[1]) == "B(0.0, 3.0)"


class TestValidation:
    """Tests for ring validation helpers."""

    def test_valid_points_drops_placeholders_and_nan(self):
        """Test that (0,0) and non-finite points are excluded."""
        points = _ring((0, 0), (7.49, 9.05), (math.nan, 9.0), (7.5, math.inf), (7.5, 9.06))
        assert _tuples(valid_points(points)) == [(7.49, 9.05), (7.5, 9.06)]

    def test_validate_ring_ok(self):
        """Test that a closed triangle validates and comes back open."""
        assert _tuples(validate_ring(close_ring(TRIANGLE))) == _tuples(TRIANGLE)

    @pytest.mark.parametrize(
        "pairs",
        [
            [],
            [(0, 0), (1, 1)],
            [(0, 0), (1, 1), (1, 1)],
            [(0, 0), (1, 1), (0, 0), (1, 1)],
        ],
    )
    def test_validate_ring_insufficient(self, pairs):
        """Test that fewer than 3 distinct vertices are rejected."""
        with pytest.raises(InsufficientVerticesError) as exc_info:
            validate_ring(_ring(*pairs))
        assert exc_info.value.required == 3
        assert exc_info.value.distinct < 3

    def test_distinct_count_ignores_closing_point(self):
        """Test that the closing repeat is not counted."""
        assert distinct_vertex_count(close_ring(TRIANGLE)) == 3

    def test_find_duplicates(self):
        """Test duplicate detection by index."""
        ring = _ring((0, 0), (0, 3), (0, 0), (4, 3), (0, 3))
        assert find_duplicate_vertices(ring) == [2, 4]


class TestMeasurements:
    """Tests for bounds, area and simplicity."""

    def test_bounds(self):
        """Test the bounding box of finite positions."""
        points = [*TRIANGLE, Position(x=math.nan, y=100)]
        assert ring_bounds(points) == (0, 0, 4, 3)

    def test_bounds_empty(self):
        """Test that no finite position gives None."""
        assert ring_bounds([]) is None

    def test_area(self):
        """Test the planar area of the 3-4-5 triangle."""
        assert ring_area(TRIANGLE) == pytest.approx(6.0)

    def test_simple_ring(self):
        """Test self-intersection detection."""
        square = _ring((0, 0), (0, 1), (1, 1), (1, 0))
        bowtie = _ring((0, 0), (1, 1), (1, 0), (0, 1))
        assert is_simple_ring(square)
        assert not is_simple_ring(bowtie)
