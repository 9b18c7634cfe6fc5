"""Utility modules for the data pipeline."""

from pipeline.utils.geo import (
    haversine_distance,
    is_valid_coordinates,
    location_hash,
    normalize_coordinates,
    parse_wkt_point,
)
from pipeline.utils.http import GatewayError, HTTPError, RateLimitError, fetch_json, fetch_with_retry
from pipeline.utils.logging import setup_logging
from pipeline.utils.text import (
    clean_description,
    extract_domain,
    is_http_url,
    normalize_slug,
    trigram_similarity,
)

__all__ = [
    # HTTP utilities
    "fetch_with_retry",
    "fetch_json",
    "HTTPError",
    "GatewayError",
    "RateLimitError",
    # Logging
    "setup_logging",
    # Geographic utilities
    "is_valid_coordinates",
    "haversine_distance",
    "parse_wkt_point",
    "normalize_coordinates",
    "location_hash",
    # Text utilities
    "normalize_slug",
    "trigram_similarity",
    "clean_description",
    "extract_domain",
    "is_http_url",
]
