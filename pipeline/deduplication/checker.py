"""
Duplicate checker: decides whether an incoming place already exists.

Signals are tried from strongest to weakest:

1. External id (wikidata first, then osm), exact match
2. Normalized slug, exact match
3. Fuzzy name similarity plus geographic distance (only with coordinates)

A fuzzy match only counts as a duplicate when it is both very similar and
very close. Anything weaker is returned as ``similar_places`` for review
and the candidate is treated as new.
"""

import math
from typing import Union

from loguru import logger

from pipeline.config import settings
from pipeline.deduplication.store import PlaceStore
from pipeline.deduplication.types import DuplicateCandidate, DuplicateCheckResult
from pipeline.utils.text import normalize_slug


def _percent(score: float) -> int:
    # Half-up rounding, 0.905 -> 91
    return int(math.floor(score * 100 + 0.5))


def check_for_duplicates(
    store: PlaceStore,
    candidate: Union[DuplicateCandidate, dict],
    recall_threshold: float | None = None,
    merge_similarity: float | None = None,
    merge_distance_km: float | None = None,
) -> DuplicateCheckResult:
    """
    Check a candidate against the stored places.

    Args:
        store: Place store to query
        candidate: Candidate identity (dataclass or dict with the same keys)
        recall_threshold: Minimum similarity for fuzzy recall (default 0.75)
        merge_similarity: Similarity the top match must exceed (default 0.9)
        merge_distance_km: Distance the top match must stay under (default 1 km)

    Returns:
        DuplicateCheckResult

    Raises:
        Any store error. A failed lookup is never reported as "not a duplicate".
    """
    if isinstance(candidate, dict):
        candidate = DuplicateCandidate.from_dict(candidate)

    recall_threshold = settings.dedup.recall_threshold if recall_threshold is None else recall_threshold
    merge_similarity = settings.dedup.merge_similarity if merge_similarity is None else merge_similarity
    merge_distance_km = settings.dedup.merge_distance_km if merge_distance_km is None else merge_distance_km

    # 1. External ids
    for id_type, value in (("wikidata", candidate.wikidata_id), ("osm", candidate.osm_id)):
        if not value:
            continue
        existing = store.find_by_external_id(id_type, value)
        if existing is not None:
            return DuplicateCheckResult(
                is_duplicate=True,
                existing_place_id=str(existing.id),
                reason=f"Duplicate {id_type} ID: {value}",
            )

    # 2. Slug
    slug = normalize_slug(candidate.name)
    if slug:
        existing = store.find_by_slug(slug)
        if existing is not None:
            return DuplicateCheckResult(
                is_duplicate=True,
                existing_place_id=str(existing.id),
                reason=f"Duplicate slug: {slug}",
            )

    # 3. Fuzzy name + distance
    if candidate.lat is not None and candidate.lon is not None:
        similar = store.find_similar(candidate.name, candidate.lat, candidate.lon, recall_threshold)
        if similar:
            best = similar[0]
            if (
                best.similarity_score > merge_similarity
                and best.distance_km is not None
                and best.distance_km < merge_distance_km
            ):
                logger.warning(
                    f"Fuzzy duplicate: '{candidate.name}' ({candidate.lat}, {candidate.lon}) -> "
                    f"'{best.place_name}' ({best.lat}, {best.lon}) "
                    f"score={best.similarity_score:.3f} distance={best.distance_km:.3f}km"
                )
                return DuplicateCheckResult(
                    is_duplicate=True,
                    existing_place_id=best.place_id,
                    reason=(
                        f"Similar name ({_percent(best.similarity_score)}%) "
                        f"and close location ({best.distance_km:.2f}km)"
                    ),
                    similar_places=similar,
                )

            return DuplicateCheckResult(is_duplicate=False, similar_places=similar)

    return DuplicateCheckResult(is_duplicate=False)
