"""
Places API Routes - duplicate checks and review.
"""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.services.admin_auth import require_admin
from pipeline.database import get_db
from pipeline.deduplication import (
    DuplicateCandidate,
    PlaceStore,
    check_for_duplicates,
    find_potential_duplicates,
)

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


class DuplicateCheckRequest(BaseModel):
    """Identity of a place to check before adding it."""
    name: str = Field(..., min_length=1, max_length=500)
    lat: float | None = Field(None, ge=-90, le=90)
    lon: float | None = Field(None, ge=-180, le=180)
    wikidata_id: str | None = Field(None, max_length=50)
    osm_id: str | None = Field(None, max_length=50)


@router.post("/check-duplicate")
def check_duplicate(request: DuplicateCheckRequest, db: Session = Depends(get_db)):
    """
    Check whether a place already exists.

    Returns ``{isDuplicate, existingPlaceId?, reason?, similarPlaces?}``.
    """
    candidate = DuplicateCandidate(
        name=request.name,
        lat=request.lat,
        lon=request.lon,
        wikidata_id=request.wikidata_id,
        osm_id=request.osm_id,
    )
    return check_for_duplicates(PlaceStore(db), candidate).to_dict()


@router.get("/duplicates")
def get_potential_duplicates(
    threshold: float = Query(0.7, ge=0, le=1, description="Minimum name similarity"),
    db: Session = Depends(get_db),
):
    """Stored places that have similar neighbours, for manual review."""
    groups = find_potential_duplicates(db, threshold)
    return {"count": len(groups), "groups": groups}
