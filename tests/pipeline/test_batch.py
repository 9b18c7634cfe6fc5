# SPDX-License-Identifier: MIT
"""Tests for intra-batch deduplication."""

from pipeline.deduplication import dedupe_by_country, dedupe_by_location


class TestDedupeByLocation:
    """Test (name, ~1 km cell) collapsing."""

    def test_same_name_same_cell_collapses(self, make_candidate):
        first = make_candidate("Hoia Forest", url="https://dbpedia.org/resource/Hoia", lat=46.7801, lon=23.4802)
        second = make_candidate("hoia forest ", url="http://www.geonames.org/1", lat=46.7799, lon=23.4798)

        result = dedupe_by_location([first, second])

        assert result == [first]
        assert [s.url for s in first.sources] == ["https://dbpedia.org/resource/Hoia", "http://www.geonames.org/1"]

    def test_same_name_far_apart_kept(self, make_candidate):
        a = make_candidate("Old Cemetery", lat=41.0, lon=29.0)
        b = make_candidate("Old Cemetery", lat=39.9, lon=32.8)

        assert dedupe_by_location([a, b]) == [a, b]

    def test_missing_coordinates_group_together(self, make_candidate):
        a = make_candidate("Old Cemetery", url="https://a.example/1")
        b = make_candidate("Old Cemetery", url="https://b.example/2")

        assert dedupe_by_location([a, b]) == [a]
        assert len(a.sources) == 2

    def test_fills_missing_fields(self, make_candidate):
        a = make_candidate("Hoia Forest", lat=46.78, lon=23.48)
        b = make_candidate("Hoia Forest", lat=46.78, lon=23.48, description="Haunted forest", city="Cluj")

        dedupe_by_location([a, b])

        assert a.description == "Haunted forest"
        assert a.city == "Cluj"

    def test_repeated_url_not_doubled(self, make_candidate):
        a = make_candidate("Hoia Forest", url="https://x.example/hoia")
        b = make_candidate("Hoia Forest", url="https://X.example/hoia")

        dedupe_by_location([a, b])

        assert len(a.sources) == 1


class TestDedupeByCountry:
    """Test (name, country) collapsing used by the AI scan."""

    def test_same_country_collapses(self, make_candidate):
        a = make_candidate("Bran Castle", country_code="RO")
        b = make_candidate("BRAN CASTLE", country_code="ro", url="https://b.example/bran")

        assert dedupe_by_country([a, b]) == [a]
        assert len(a.sources) == 2

    def test_different_country_kept(self, make_candidate):
        a = make_candidate("Old Mill", country_code="GB")
        b = make_candidate("Old Mill", country_code="US")

        assert dedupe_by_country([a, b]) == [a, b]
