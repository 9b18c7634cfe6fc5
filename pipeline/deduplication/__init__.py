"""
Duplicate detection and source merging.

Every place written by an ingestion scan goes through ``check_for_duplicates``;
duplicates have their citations folded in with ``merge_sources`` instead of
creating a new row.
"""

from pipeline.deduplication.batch import dedupe_by_country, dedupe_by_location
from pipeline.deduplication.checker import check_for_duplicates
from pipeline.deduplication.locks import advisory_lock, lock_key
from pipeline.deduplication.merger import merge_sources, union_sources
from pipeline.deduplication.review import find_potential_duplicates
from pipeline.deduplication.similarity import find_similar_places
from pipeline.deduplication.store import PlaceNotFoundError, PlaceStore
from pipeline.deduplication.types import (
    DuplicateCandidate,
    DuplicateCheckResult,
    SimilarPlace,
    SourceRef,
)
from pipeline.utils.text import normalize_slug

__all__ = [
    "normalize_slug",
    "find_similar_places",
    "check_for_duplicates",
    "merge_sources",
    "union_sources",
    "dedupe_by_location",
    "dedupe_by_country",
    "advisory_lock",
    "lock_key",
    "find_potential_duplicates",
    "PlaceStore",
    "PlaceNotFoundError",
    "DuplicateCandidate",
    "DuplicateCheckResult",
    "SimilarPlace",
    "SourceRef",
]
