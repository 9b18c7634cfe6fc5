# SPDX-License-Identifier: MIT
"""Tests for slug normalization and text helpers."""

import pytest

from pipeline.utils.text import (
    clean_description,
    extract_domain,
    is_http_url,
    normalize_slug,
    trigram_similarity,
)


class TestNormalizeSlug:
    """Test slug normalization."""

    @pytest.mark.parametrize("name,expected", [
        ("Örümcek Köşkü", "orumcek-kosku"),
        ("Çırağan Sarayı", "ciragan-sarayi"),
        ("The Haunted House", "haunted-house"),
        ("Der Spukhaus", "spukhaus"),
        ("Ghost Town (abandoned)", "ghost-town"),
        ("Castle (Ruins) Hill", "castle-hill"),
        ("  Hotel   del  Coronado!! ", "hotel-del-coronado"),
        ("Theater Royal", "theater-royal"),
        ("Area 51", "area-51"),
    ])
    def test_known_names(self, name, expected):
        """Names should normalize to their expected slugs."""
        assert normalize_slug(name) == expected

    def test_case_and_diacritic_invariance(self):
        """Case and Turkish diacritics should not change the slug."""
        assert normalize_slug("Şatoburg") == normalize_slug("satoburg") == normalize_slug("SATOBURG")

    def test_only_one_leading_article_removed(self):
        """Only a single leading article is stripped."""
        assert normalize_slug("The The Band") == "the-band"

    def test_article_inside_name_kept(self):
        """Articles are only removed at the start."""
        assert normalize_slug("House of the Dead") == "house-of-the-dead"

    @pytest.mark.parametrize("name", ["", "!!!", "   ", "(...)"])
    def test_empty_results(self, name):
        """Names without slug characters give an empty slug."""
        assert normalize_slug(name) == ""

    @pytest.mark.parametrize("name", [
        "Örümcek Köşkü",
        "The Haunted House (Old)",
        "--weird--name--",
        "Le Château d'If",
        "a b c",
    ])
    def test_idempotent(self, name):
        """Normalizing a slug again should not change it."""
        slug = normalize_slug(name)
        assert normalize_slug(slug) == slug


class TestTrigramSimilarity:
    """Test the pg_trgm-compatible similarity."""

    def test_identical(self):
        assert trigram_similarity("Galata Tower", "galata tower") == 1.0

    def test_plural_variant(self):
        """12 shared trigrams out of 15 distinct ones."""
        assert trigram_similarity("Galata Tower", "Galata Towers") == pytest.approx(0.8)

    def test_unrelated(self):
        assert trigram_similarity("Galata Tower", "Poveglia") == 0.0

    def test_empty(self):
        assert trigram_similarity("", "Galata") == 0.0
        assert trigram_similarity("!!!", "???") == 0.0

    def test_symmetric(self):
        a, b = "Bran Castle", "Castle Bran Romania"
        assert trigram_similarity(a, b) == trigram_similarity(b, a)


class TestCleanDescription:
    """Test description cleanup."""

    def test_strips_html_and_whitespace(self):
        assert clean_description("<p>Old   <b>mansion</b></p>\n") == "Old mansion"

    def test_truncates(self):
        text = clean_description("x" * 600, max_length=500)
        assert len(text) == 500
        assert text.endswith("...")

    def test_empty(self):
        assert clean_description(None) is None
        assert clean_description("<br/>") is None


class TestUrls:
    """Test URL helpers."""

    def test_extract_domain(self):
        assert extract_domain("https://www.atlasobscura.com/places/x") == "atlasobscura.com"
        assert extract_domain("http://geonames.org/123") == "geonames.org"

    def test_extract_domain_invalid(self):
        assert extract_domain("not a url") is None
        assert extract_domain(None) is None

    def test_is_http_url(self):
        assert is_http_url("https://en.wikipedia.org/wiki/Bran_Castle")
        assert not is_http_url("ftp://example.com/file")
        assert not is_http_url("Wikipedia")
        assert not is_http_url(None)
