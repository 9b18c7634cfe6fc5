"""Coordinate helpers shared by the providers and the duplicate checker."""

import math
import re


EARTH_RADIUS_KM = 6371.0

# "Point(28.98 41.01)" as returned by the Wikidata Query Service (lon first)
WKT_POINT_RE = re.compile(
    r"^\s*POINT\s*\(\s*(-?\d+(?:\.\d+)?(?:E-?\d+)?)[\s,]+(-?\d+(?:\.\d+)?(?:E-?\d+)?)\s*\)\s*$",
    re.IGNORECASE,
)


def is_valid_coordinates(lat: float, lon: float) -> bool:
    """True when lat is within ±90 and lon within ±180."""
    return -90 <= lat <= 90 and -180 <= lon <= 180


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def parse_wkt_point(wkt: str) -> tuple[float | None, float | None]:
    """Parse a WKT POINT into ``(lon, lat)``; ``(None, None)`` for anything else."""
    if not isinstance(wkt, str):
        return None, None

    match = WKT_POINT_RE.match(wkt)
    if not match:
        return None, None
    return float(match.group(1)), float(match.group(2))


def normalize_coordinates(
    lat: float | str | None,
    lon: float | str | None,
) -> tuple[float | None, float | None]:
    """
    Coerce a provider's coordinate pair to floats.

    Providers hand back strings, NaN and the occasional swapped pair. A
    latitude beyond ±90 whose partner would be a valid latitude is treated
    as swapped. Anything unusable becomes ``(None, None)`` so a place is
    never stored with half a location.
    """
    if lat is None or lon is None:
        return None, None

    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        return None, None

    if math.isnan(lat) or math.isnan(lon):
        return None, None

    if abs(lat) > 90 and abs(lon) <= 90:
        lat, lon = lon, lat

    if not is_valid_coordinates(lat, lon):
        return None, None
    return lat, lon


def location_hash(lat: float | None, lon: float | None, precision: int = 2) -> str | None:
    """
    Grid cell key used to group one batch's candidates.

    Two decimals is roughly a 1 km cell. Returns None when either side is missing.
    """
    if lat is None or lon is None:
        return None
    return f"{lat:.{precision}f},{lon:.{precision}f}"
