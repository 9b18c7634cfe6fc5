# SPDX-License-Identifier: MIT
"""Tests for geographic helpers."""

import pytest

from pipeline.utils.geo import (
    haversine_distance,
    location_hash,
    normalize_coordinates,
    parse_wkt_point,
)


class TestHaversine:
    """Test great-circle distance."""

    def test_zero_distance(self):
        assert haversine_distance(41.01, 28.98, 41.01, 28.98) == 0

    def test_small_offset(self):
        """0.0001 degrees is roughly 14 metres at Istanbul's latitude."""
        distance = haversine_distance(41.01, 28.98, 41.0101, 28.9801)
        assert 0.01 < distance < 0.02

    def test_istanbul_ankara(self):
        assert haversine_distance(41.0082, 28.9784, 39.9334, 32.8597) == pytest.approx(350, abs=10)


class TestParseWktPoint:
    """Test WKT parsing used for Wikidata coordinates."""

    def test_wikidata_point(self):
        assert parse_wkt_point("Point(28.98 41.01)") == (28.98, 41.01)

    def test_invalid(self):
        assert parse_wkt_point("LINESTRING(1 2, 3 4)") == (None, None)
        assert parse_wkt_point("") == (None, None)


class TestNormalizeCoordinates:
    """Test coordinate validation."""

    def test_strings(self):
        assert normalize_coordinates("41.01", "28.98") == (41.01, 28.98)

    def test_swapped(self):
        assert normalize_coordinates(120.5, 10.0) == (10.0, 120.5)

    def test_invalid(self):
        assert normalize_coordinates(None, 28.98) == (None, None)
        assert normalize_coordinates("nan", "1") == (None, None)
        assert normalize_coordinates("abc", "1") == (None, None)
        assert normalize_coordinates(200, 200) == (None, None)


class TestLocationHash:
    """Test the ~1 km grid key."""

    def test_rounds_to_two_decimals(self):
        assert location_hash(41.0082, 28.9784) == "41.01,28.98"

    def test_nearby_points_share_cell(self):
        assert location_hash(41.0101, 28.9801) == location_hash(41.0099, 28.9799)

    def test_missing(self):
        assert location_hash(None, 28.98) is None
        assert location_hash(41.01, None) is None
