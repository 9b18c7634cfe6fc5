"""
Value types shared by the duplicate-detection pipeline.

The dict shapes produced by ``to_dict()`` are what the admin UI and the
scan functions exchange, so their keys must not change.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pipeline.utils.text import extract_domain


@dataclass
class SourceRef:
    """One citation backing a place (an entry of ``Place.sources_json``)."""

    url: str
    domain: str
    type: str
    first_seen: Optional[str] = None
    last_seen: Optional[str] = None

    @property
    def key(self) -> str:
        """Identity used when merging citation lists."""
        return source_key(self.url)

    def to_dict(self) -> dict:
        data = {"url": self.url, "domain": self.domain, "type": self.type}
        if self.first_seen:
            data["first_seen"] = self.first_seen
        if self.last_seen:
            data["last_seen"] = self.last_seen
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SourceRef":
        url = str(data.get("url") or "")
        return cls(
            url=url,
            domain=data.get("domain") or extract_domain(url) or "",
            type=data.get("type") or "web",
            first_seen=data.get("first_seen"),
            last_seen=data.get("last_seen"),
        )

    @classmethod
    def from_url(cls, url: str, source_type: str, domain: str | None = None,
                 seen_at: datetime | None = None) -> "SourceRef":
        stamp = seen_at.isoformat() if seen_at else None
        return cls(
            url=url,
            domain=domain or extract_domain(url) or "",
            type=source_type,
            first_seen=stamp,
            last_seen=stamp,
        )


def source_key(url: str | None) -> str:
    """Case-folded, stripped URL."""
    return (url or "").strip().casefold()


@dataclass
class SimilarPlace:
    """A stored place returned by the similarity resolver."""

    place_id: str
    place_name: str
    place_slug: str
    similarity_score: float
    distance_km: Optional[float] = None
    lat: Optional[float] = None
    lon: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "place_id": self.place_id,
            "place_name": self.place_name,
            "place_slug": self.place_slug,
            "similarity_score": self.similarity_score,
            "distance_km": self.distance_km,
        }


@dataclass
class DuplicateCandidate:
    """The identity-relevant fields of an incoming place."""

    name: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    wikidata_id: Optional[str] = None
    osm_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DuplicateCandidate":
        return cls(
            name=data.get("name") or "",
            lat=data.get("lat"),
            lon=data.get("lon"),
            wikidata_id=data.get("wikidata_id") or None,
            osm_id=data.get("osm_id") or None,
        )


@dataclass
class DuplicateCheckResult:
    """Verdict of the duplicate checker."""

    is_duplicate: bool
    existing_place_id: Optional[str] = None
    reason: Optional[str] = None
    similar_places: list[SimilarPlace] = field(default_factory=list)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"isDuplicate": self.is_duplicate}
        if self.existing_place_id:
            data["existingPlaceId"] = self.existing_place_id
        if self.reason:
            data["reason"] = self.reason
        if self.similar_places:
            data["similarPlaces"] = [p.to_dict() for p in self.similar_places]
        return data
