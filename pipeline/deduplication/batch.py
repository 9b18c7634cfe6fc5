"""
Intra-batch deduplication.

Providers often return the same place more than once in a single run (the
same venue from two providers, or two LLM answers). These helpers collapse
such repeats before anything touches the store, unioning their citations.
"""

from typing import Callable, Hashable, Iterable, TypeVar

from pipeline.deduplication.merger import union_sources
from pipeline.utils.geo import location_hash

T = TypeVar("T")

# Fields copied from a later duplicate when the first one lacks them
FILLABLE_FIELDS = ("description", "city", "wikidata_id", "osm_id")


def location_key(candidate) -> tuple:
    """(lowercased name, ~1 km grid cell)."""
    return (candidate.name.strip().lower(), location_hash(candidate.lat, candidate.lon))


def country_key(candidate) -> tuple:
    """(lowercased name, upper-case country code)."""
    return (candidate.name.strip().lower(), (candidate.country_code or "XX").upper())


def _absorb(kept, other) -> None:
    kept.sources, _ = union_sources(kept.sources, other.sources)
    for field_name in FILLABLE_FIELDS:
        if getattr(kept, field_name, None) is None and getattr(other, field_name, None) is not None:
            setattr(kept, field_name, getattr(other, field_name))

    # Coordinates travel as a pair
    if kept.lat is None or kept.lon is None:
        kept.lat, kept.lon = other.lat, other.lon


def dedupe(candidates: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Collapse candidates sharing a key, keeping the first and its order."""
    kept: dict[Hashable, T] = {}
    for candidate in candidates:
        k = key(candidate)
        if k in kept:
            _absorb(kept[k], candidate)
        else:
            kept[k] = candidate
    return list(kept.values())


def dedupe_by_location(candidates: Iterable[T]) -> list[T]:
    return dedupe(candidates, location_key)


def dedupe_by_country(candidates: Iterable[T]) -> list[T]:
    return dedupe(candidates, country_key)
