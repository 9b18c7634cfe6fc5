"""Review scan over stored places for likely duplicates."""

from loguru import logger
from sqlalchemy.orm import Session

from pipeline.config import settings
from pipeline.deduplication.store import PlaceStore


def find_potential_duplicates(session: Session, threshold: float | None = None) -> list[dict]:
    """
    Run the similarity resolver for every place that has coordinates.

    Returns:
        List of ``{"place": {...}, "similar_places": [...]}`` groups, one per
        place with at least one similar neighbour other than itself
    """
    threshold = settings.dedup.review_threshold if threshold is None else threshold
    store = PlaceStore(session)

    groups = []
    for place in store.places_with_coordinates():
        similar = [
            match for match in store.find_similar(place.name, place.lat, place.lon, threshold)
            if match.place_id != str(place.id)
        ]
        if not similar:
            continue

        groups.append({
            "place": {
                "id": str(place.id),
                "name": place.name,
                "slug": place.slug,
                "lat": place.lat,
                "lon": place.lon,
                "country_code": place.country_code,
            },
            "similar_places": [match.to_dict() for match in similar],
        })

    logger.info(f"Duplicate review: {len(groups)} place(s) with similar neighbours (threshold {threshold})")
    return groups
