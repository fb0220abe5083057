"""
Tests for geometry.py - Coordinate precision helpers.

These tests verify:
- Half-up rounding and idempotence over the whole precision range
- Rounding of every geometry type without mutating the input
- Coordinate counting and decimal-place detection used by the analyzer
"""

import copy
import math
import pytest
from geofuse.domain.geometry import (
    round_half_up,
    round_coordinate,
    round_geometry,
    count_coordinates,
    decimal_places,
    max_decimal_places,
)

SAMPLES = [0.1, 1.23456789, -12.3456789, 179.99999999, -0.5, 2.5, 45.000001, 1e-7, 13.404954]


class TestRounding:
    """Tests for single coordinate rounding."""

    def test_half_up(self):
        """Halves go toward +inf."""
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(0.49) == 0

    def test_rounds_to_precision(self):
        assert round_coordinate(13.404954, 3) == 13.405
        assert round_coordinate(-0.12345, 2) == -0.12

    def test_passthrough(self):
        """Integers, non-finite values and non-numbers are left alone."""
        assert round_coordinate(12, 3) == 12
        assert round_coordinate(3.0, 2) == 3.0
        assert math.isnan(round_coordinate(float("nan"), 2))
        assert round_coordinate(float("inf"), 2) == float("inf")
        assert round_coordinate("1.2345", 2) == "1.2345"
        assert round_coordinate(None, 2) is None

    @pytest.mark.parametrize("precision", range(0, 11))
    def test_idempotent(self, precision):
        """Rounding an already rounded value at the same precision is a no-op."""
        for x in SAMPLES:
            once = round_coordinate(x, precision)
            assert round_coordinate(once, precision) == once

    def test_precision_zero_rounds_to_integers(self):
        """
        Precision 0 rounds to whole numbers.

        Some UI text calls 0 "full precision"; the rounding itself has always
        treated it literally, and that is what is kept here.
        """
        assert round_coordinate(13.404954, 0) == 13
        assert round_coordinate(2.5, 0) == 3
        assert round_coordinate(-0.4, 0) == 0


class TestRoundGeometry:
    """Tests for whole-geometry rounding."""

    def test_polygon(self):
        geom = {"type": "Polygon", "coordinates": [[[0.123456, 1.987654], [2.5, 3], [0.123456, 1.987654]]]}
        out = round_geometry(geom, 2)
        assert out["coordinates"] == [[[0.12, 1.99], [2.5, 3], [0.12, 1.99]]]

    def test_does_not_mutate_input(self):
        geom = {"type": "MultiPolygon", "coordinates": [[[[10.123456, 20.654321]]]]}
        before = copy.deepcopy(geom)
        out = round_geometry(geom, 1)
        assert geom == before
        assert out is not geom
        assert out["coordinates"] == [[[[10.1, 20.7]]]]

    def test_geometry_collection(self):
        geom = {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Point", "coordinates": [1.55555, 2.44444]},
                {"type": "LineString", "coordinates": [[0.11111, 0.99999], [5.5, 6.6]]},
            ],
        }
        out = round_geometry(geom, 3)
        assert out["geometries"][0]["coordinates"] == [1.556, 2.444]
        assert out["geometries"][1]["coordinates"] == [[0.111, 1.0], [5.5, 6.6]]

    def test_empty_geometry(self):
        assert round_geometry(None, 3) is None


class TestMeasurements:
    """Tests for analyzer measurements."""

    def test_count_coordinates(self):
        assert count_coordinates({"type": "Point", "coordinates": [1, 2]}) == 1
        assert count_coordinates({"type": "LineString", "coordinates": [[1, 2], [3, 4]]}) == 2
        assert count_coordinates({"type": "Polygon", "coordinates": [[[0, 0], [1, 1], [0, 0]], [[0, 0]]]}) == 4
        assert count_coordinates({"type": "MultiPolygon", "coordinates": [[[[0, 0], [1, 1]]], [[[2, 2]]]]}) == 3
        assert count_coordinates(None) == 0

    def test_decimal_places(self):
        assert decimal_places(1.25) == 2
        assert decimal_places(13.404954) == 6
        assert decimal_places(7) == 0
        assert decimal_places(7.0) == 0
        assert decimal_places(float("inf")) == 0
        assert decimal_places(1e-7) == 7

    def test_max_decimal_places(self):
        geom = {"type": "LineString", "coordinates": [[1.5, 2.25], [3.125, 4]]}
        assert max_decimal_places(geom) == 3
