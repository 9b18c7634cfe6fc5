"""
Source merger: folds new citations into an existing place.

Citations are keyed by their URL (stripped, case-folded). Entries already
held are passed through as they are, including ones without a URL or with
keys this module does not know about. A repeated URL only refreshes the
``last_seen`` of the first entry holding it; unseen URLs are appended.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Union

from loguru import logger

from pipeline.deduplication.store import PlaceStore
from pipeline.deduplication.types import SourceRef, source_key

SourceLike = Union[SourceRef, dict]


def _as_ref(source: SourceLike) -> SourceRef:
    return replace(source) if isinstance(source, SourceRef) else SourceRef.from_dict(source)


def _copy(entry: SourceLike) -> SourceLike:
    return replace(entry) if isinstance(entry, SourceRef) else dict(entry)


def _entry_url(entry: SourceLike) -> str:
    url = entry.url if isinstance(entry, SourceRef) else entry.get("url")
    return str(url).strip() if url else ""


def _touch(entry: SourceLike, stamp: str) -> None:
    if isinstance(entry, SourceRef):
        entry.last_seen = stamp
    else:
        entry["last_seen"] = stamp


def union_sources(
    existing: Iterable[SourceLike],
    new: Iterable[SourceLike],
    seen_at: datetime | None = None,
) -> tuple[list[SourceLike], int]:
    """
    Union two citation lists, preserving order.

    Existing entries come back in the form they were given (dicts stay
    dicts with all their keys) and none is dropped. New citations are
    appended as ``SourceRef`` objects.

    Args:
        existing: Citations already held (order and content kept)
        new: Incoming citations, appended in order when their URL is unseen;
            ones without a URL are ignored
        seen_at: Timestamp recorded as ``last_seen`` on repeats and as
            ``first_seen``/``last_seen`` on new entries that carry none

    Returns:
        (merged list, number of entries added)
    """
    stamp = seen_at.isoformat() if seen_at else None

    merged: list[SourceLike] = []
    index: dict[str, SourceLike] = {}
    for source in existing:
        entry = _copy(source)
        merged.append(entry)
        url = _entry_url(entry)
        if url:
            index.setdefault(source_key(url), entry)

    added = 0
    for source in new:
        ref = _as_ref(source)
        if not ref.url or not ref.url.strip():
            continue

        current = index.get(ref.key)
        if current is not None:
            if stamp:
                _touch(current, stamp)
            continue

        ref = SourceRef(
            url=ref.url.strip(),
            domain=ref.domain,
            type=ref.type,
            first_seen=ref.first_seen or stamp,
            last_seen=ref.last_seen or stamp,
        )
        index[ref.key] = ref
        merged.append(ref)
        added += 1

    return merged, added


def merge_sources(
    store: PlaceStore,
    target_place_id,
    new_sources: Iterable[SourceLike],
    seen_at: datetime | None = None,
) -> int:
    """
    Append new citations to a stored place.

    Only ``sources_json`` and ``last_seen_at`` change; every other column
    of the target is left as it was. The caller owns the commit.

    Returns:
        Number of citations actually added

    Raises:
        PlaceNotFoundError: If the target does not exist
    """
    place = store.require(target_place_id)
    seen_at = seen_at or datetime.now(timezone.utc)

    merged, added = union_sources(place.sources_json or [], new_sources, seen_at)

    # New list of copied dicts so the JSON column is flagged dirty
    place.sources_json = [
        entry.to_dict() if isinstance(entry, SourceRef) else entry for entry in merged
    ]
    place.last_seen_at = seen_at
    store.session.flush()

    logger.info(f"Merged {added} new source(s) into {place.slug} ({place.id})")
    return added
