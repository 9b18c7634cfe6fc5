"""
Fuzzy name + distance lookup against stored places.

On PostgreSQL the trigram score comes from pg_trgm's ``similarity()`` (the
extension must be installed). Any other dialect scores in Python with the
same trigram rules, which keeps SQLite usable for tests and local runs.
"""

from typing import Optional

from loguru import logger
from sqlalchemy import select, text
from sqlalchemy.orm import Session

from pipeline.database import Place
from pipeline.deduplication.types import SimilarPlace
from pipeline.utils.geo import haversine_distance
from pipeline.utils.text import trigram_similarity


SIMILAR_PLACES_SQL = text("""
    SELECT id, name, slug, lat, lon,
           similarity(lower(name), lower(:name)) AS score
    FROM places
    WHERE similarity(lower(name), lower(:name)) >= :threshold
    ORDER BY score DESC
    LIMIT :limit
""")


def _is_postgres(session: Session) -> bool:
    return session.get_bind().dialect.name == "postgresql"


def _sort_key(place: SimilarPlace):
    # Highest score first, then nearest, unknown distance last
    return (-place.similarity_score, place.distance_km is None, place.distance_km or 0.0)


def find_similar_places(
    session: Session,
    name: str,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    threshold: float = 0.75,
    limit: int = 20,
) -> list[SimilarPlace]:
    """
    Find stored places whose name is similar to ``name``.

    Args:
        session: Database session
        name: Name to compare against
        lat, lon: Candidate coordinates; distance is only computed when both
            sides have coordinates
        threshold: Minimum similarity score (0-1)
        limit: Maximum number of results

    Returns:
        Similar places sorted by descending score, ties by ascending distance

    Store errors propagate to the caller.
    """
    if not name or not name.strip():
        return []

    if _is_postgres(session):
        rows = session.execute(
            SIMILAR_PLACES_SQL,
            {"name": name, "threshold": threshold, "limit": limit},
        ).all()
        scored = [(row.id, row.name, row.slug, row.lat, row.lon, float(row.score)) for row in rows]
    else:
        scored = []
        rows = session.execute(select(Place.id, Place.name, Place.slug, Place.lat, Place.lon)).all()
        for row in rows:
            score = trigram_similarity(row.name, name)
            if score >= threshold:
                scored.append((row.id, row.name, row.slug, row.lat, row.lon, score))

    results = []
    for place_id, place_name, place_slug, place_lat, place_lon, score in scored:
        distance = None
        if None not in (lat, lon, place_lat, place_lon):
            distance = haversine_distance(lat, lon, place_lat, place_lon)

        results.append(SimilarPlace(
            place_id=str(place_id),
            place_name=place_name,
            place_slug=place_slug,
            similarity_score=min(1.0, max(0.0, score)),
            distance_km=distance,
            lat=place_lat,
            lon=place_lon,
        ))

    results.sort(key=_sort_key)
    logger.debug(f"Similarity lookup for '{name}': {len(results)} matches >= {threshold}")
    return results[:limit]
