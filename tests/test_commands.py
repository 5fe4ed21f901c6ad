# -*- coding: utf-8 -*-
"""Tests for the command line tools."""

import math

import orjson
import pytest

import fieldmap_lib
from fieldmap_lib.commands.check_ring import check_boundary
from fieldmap_lib.commands.check_ring import check_ring
from fieldmap_lib.commands.check_ring import parse_points
from fieldmap_lib.commands.convert import convert
from fieldmap_lib.commands.geojson import geojson
from fieldmap_lib.commands.geojson import load_records
from fieldmap_lib.commands.geojson import records_to_geojson
from fieldmap_lib.commands.main import main
from fieldmap_lib.errors import InsufficientVerticesError
from fieldmap_lib.models import Position

SQUARE = [[7.49, 9.05], [7.50, 9.05], [7.50, 9.06], [7.49, 9.06]]


def _write_json(path, data):
    path.write_bytes(orjson.dumps(data))
    return path


class TestMain:
    """Tests for the fieldmap entry point."""

    def test_version(self, monkeypatch, capsys):
        """Test that --version prints the library version."""
        monkeypatch.setattr("sys.argv", ["fieldmap", "--version"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        assert fieldmap_lib.__version__ in capsys.readouterr().out


class TestConvertCommand:
    """Tests for the convert command."""

    def test_geographic_to_utm(self, capsys):
        """Test a lon/lat to UTM conversion."""
        assert convert(["--to", "utm_32n", "7.4951", "9.0579"]) == 0

        result = orjson.loads(capsys.readouterr().out)
        assert result["system"] == "utm_32n"
        assert 300_000 < result["x"] < 400_000
        assert result["warning"] is None

    def test_minna_to_geographic(self, capsys):
        """Test a Minna easting/northing to lon/lat conversion."""
        assert convert(["--from", "minna_32", "--to", "wgs84", "335000", "1001500"]) == 0

        result = orjson.loads(capsys.readouterr().out)
        assert result["system"] == "wgs84"
        assert 7.0 < result["x"] < 8.0
        assert 8.5 < result["y"] < 9.5

    def test_unknown_system(self, capsys):
        """Test that an unknown system returns the input and exits with 1."""
        assert convert(["--to", "lambert_93", "7.4951", "9.0579"]) == 1

        result = orjson.loads(capsys.readouterr().out)
        assert (result["x"], result["y"]) == (7.4951, 9.0579)
        assert "unknown_reference_system" in result["warning"]

    def test_missing_target(self):
        """Test that --to is required."""
        with pytest.raises(SystemExit):
            convert(["7.4951", "9.0579"])


class TestGeoJSONCommand:
    """Tests for the geojson command."""

    def test_entities_to_file(self, tmp_path, entity_rows):
        """Test exporting entities to a GeoJSON file."""
        input_file = _write_json(tmp_path / "trees.json", entity_rows)
        output_file = tmp_path / "trees.geojson"

        assert geojson(["-i", str(input_file), "-o", str(output_file)]) == 0

        data = orjson.loads(output_file.read_bytes())
        assert data["type"] == "FeatureCollection"
        assert [f["properties"]["id"] for f in data["features"]] == [7, 8, 9, 10]

    def test_entities_and_areas_to_stdout(self, tmp_path, capsys, entity_rows, area_rows):
        """Test that areas are appended and malformed ones skipped."""
        input_file = _write_json(tmp_path / "trees.json", {"entities": entity_rows})
        areas_file = _write_json(tmp_path / "areas.json", area_rows)

        assert geojson(["-i", str(input_file), "--areas", str(areas_file)]) == 0

        data = orjson.loads(capsys.readouterr().out)
        types = [f["geometry"]["type"] for f in data["features"]]
        assert types == ["Point"] * 4 + ["Polygon"]

    def test_missing_input(self, tmp_path):
        """Test that a missing input file exits with 1."""
        assert geojson(["-i", str(tmp_path / "missing.json")]) == 1

    def test_invalid_input(self, tmp_path):
        """Test that a file without records exits with 1."""
        input_file = _write_json(tmp_path / "bad.json", {"count": 3})
        assert geojson(["-i", str(input_file)]) == 1

    def test_load_records_wrapped(self, tmp_path):
        """Test the items envelope."""
        path = _write_json(tmp_path / "x.json", {"items": [{"id": 1}, 2]})
        assert load_records(path, "entities") == [{"id": 1}]

    def test_bad_records_skipped(self, entity_rows):
        """Test that invalid and non-finite records do not fail the export."""
        rows = [*entity_rows, {"id": 11}, {"id": 12, "lng": math.nan, "lat": 9.0}]
        collection = records_to_geojson(rows)
        assert len(collection["features"]) == 4


class TestCheckRingCommand:
    """Tests for the check-ring command."""

    def test_valid_boundary(self, tmp_path, capsys):
        """Test a valid lon/lat boundary."""
        input_file = _write_json(tmp_path / "plot.json", SQUARE)

        assert check_ring(["-i", str(input_file)]) == 0

        result = orjson.loads(capsys.readouterr().out)
        assert result["vertices"] == 4
        assert [p["station"] for p in result["ring"]] == ["A", "B", "C", "D", "A"]
        assert result["simple"]
        assert result["duplicates"] == []
        # Roughly 1.1 km x 1.1 km
        assert 1.0e6 < result["area_m2"] < 1.5e6
        assert not result["requires_confirmation"]

    def test_too_few_vertices(self, tmp_path):
        """Test that fewer than 3 distinct vertices exits with 1."""
        input_file = _write_json(tmp_path / "plot.json", SQUARE[:2] + [[0, 0]])
        assert check_ring(["-i", str(input_file)]) == 1

    def test_wrong_system_requires_confirmation(self, tmp_path, capsys):
        """Test that lon/lat points checked as UTM need explicit acceptance."""
        input_file = _write_json(tmp_path / "plot.json", SQUARE)

        assert check_ring(["-i", str(input_file), "--system", "utm_32n"]) == 1
        result = orjson.loads(capsys.readouterr().out)
        assert result["out_of_range"] == 4
        assert result["requires_confirmation"]

        args = ["-i", str(input_file), "--system", "utm_32n", "--accept-out-of-range"]
        assert check_ring(args) == 0

    def test_missing_input(self, tmp_path):
        """Test that a missing input file exits with 1."""
        assert check_ring(["-i", str(tmp_path / "missing.json")]) == 1

    def test_check_boundary_report(self):
        """Test placeholders, closing vertex and self-intersection."""
        points = [
            Position(x=7.0, y=9.0),
            Position(x=7.01, y=9.01),
            Position(x=0.0, y=0.0),
            Position(x=7.01, y=9.0),
            Position(x=7.0, y=9.01),
            Position(x=7.0, y=9.0),
        ]
        report = check_boundary(points, "wgs84")

        assert report["input_points"] == 6
        assert report["ignored_points"] == 1
        assert report["closed_input"]
        assert report["vertices"] == 4
        assert not report["simple"]

    def test_check_boundary_insufficient(self):
        """Test that a degenerate boundary raises."""
        with pytest.raises(InsufficientVerticesError):
            check_boundary([Position(x=7.0, y=9.0)] * 3, "wgs84")

    @pytest.mark.parametrize(
        "data",
        [
            [[1, 2]],
            [{"x": 1, "y": 2}],
            [{"lng": 1, "lat": 2}],
            {"points": [{"easting": 1, "northing": 2}]},
        ],
    )
    def test_parse_points(self, data):
        """Test the accepted point shapes."""
        assert parse_points(data, "utm_32n") == [Position(x=1.0, y=2.0, system="utm_32n")]

    @pytest.mark.parametrize("data", [{"count": 1}, [{"a": 1}], ["1,2"]])
    def test_parse_points_invalid(self, data):
        """Test that unrecognized point shapes are rejected."""
        with pytest.raises(ValueError):
            parse_points(data, "wgs84")
