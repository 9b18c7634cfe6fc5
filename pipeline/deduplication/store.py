"""
Read/write access to stored places for the dedup pipeline.

Everything that touches the ``places`` table during ingestion goes through
``PlaceStore``, so tests can swap out single lookups.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from pipeline.database import Place
from pipeline.deduplication.similarity import find_similar_places
from pipeline.deduplication.types import SimilarPlace


class PlaceNotFoundError(LookupError):
    """Raised when a place id does not resolve to a stored place."""

    def __init__(self, place_id):
        super().__init__(f"Place not found: {place_id}")
        self.place_id = place_id


EXTERNAL_ID_COLUMNS = {
    "wikidata": Place.wikidata_id,
    "osm": Place.osm_id,
}


class PlaceStore:
    """Place lookups and writes bound to one session."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, place_id) -> Optional[Place]:
        if not isinstance(place_id, uuid.UUID):
            try:
                place_id = uuid.UUID(str(place_id))
            except ValueError:
                return None
        return self.session.get(Place, place_id)

    def require(self, place_id) -> Place:
        place = self.get(place_id)
        if place is None:
            raise PlaceNotFoundError(place_id)
        return place

    def find_by_external_id(self, id_type: str, value: str) -> Optional[Place]:
        """Exact lookup on ``wikidata_id`` or ``osm_id``."""
        column = EXTERNAL_ID_COLUMNS.get(id_type)
        if column is None:
            raise ValueError(f"Unknown external id type: {id_type}")
        return self.session.scalars(select(Place).where(column == value).limit(1)).first()

    def find_by_slug(self, slug: str) -> Optional[Place]:
        if not slug:
            return None
        return self.session.scalars(select(Place).where(Place.slug == slug).limit(1)).first()

    def find_similar(
        self,
        name: str,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        threshold: float = 0.75,
    ) -> list[SimilarPlace]:
        return find_similar_places(self.session, name, lat, lon, threshold)

    def places_with_coordinates(self) -> list[Place]:
        stmt = (
            select(Place)
            .where(Place.lat.is_not(None), Place.lon.is_not(None))
            .order_by(Place.created_at.desc())
        )
        return list(self.session.scalars(stmt))

    def insert_place(self, **fields) -> Place:
        """Add a new place and flush so constraint violations surface here."""
        place = Place(**fields)
        self.session.add(place)
        self.session.flush()
        return place
