"""
Scan API Routes - trigger ingestion scans and read their logs.

Supports:
- API scan (Wikidata + Wikipedia)
- AI scan (LLM suggestions)
- Multi-source scan (DBpedia, Foursquare, Google Places, GeoNames, Atlas Obscura)
- The scan chosen by the data_collection_method app setting
- Recent scan logs
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from api.services.admin_auth import require_admin
from pipeline.config import get_settings
from pipeline.database import ScanLog, get_db
from pipeline.ingestion import SCANS, ScanConfig

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


class ScanRequest(BaseModel):
    """Optional overrides for one scan run."""
    category: str | None = Field(None, max_length=100)
    country: str | None = Field(None, min_length=2, max_length=2)
    enabled_apis: list[str] | None = Field(
        None,
        validation_alias=AliasChoices("enabled_apis", "enabledApis"),
        description="Provider ids for the multi-source scan",
    )


def _run_scan(scan_type: str, request: ScanRequest | None, db: Session) -> dict:
    request = request or ScanRequest()
    config = ScanConfig.from_settings(
        get_settings(),
        db,
        category=request.category,
        country=request.country.upper() if request.country else None,
        enabled_providers=request.enabled_apis,
    )

    scan = SCANS[scan_type](session=db)
    try:
        result = scan.run(config)
    except Exception as e:
        logger.exception(f"{scan_type} scan failed")
        raise HTTPException(status_code=500, detail=f"Scan failed: {e}")

    return result.to_dict()


@router.post("")
def run_configured_scan(request: ScanRequest | None = None, db: Session = Depends(get_db)):
    """Run the scan selected by the data_collection_method app setting (api or ai)."""
    method = ScanConfig.from_settings(get_settings(), db).collection_method
    if method not in SCANS:
        raise HTTPException(status_code=400, detail=f"Unknown data collection method: {method}")
    return _run_scan(method, request, db)


@router.post("/api")
def run_api_scan(request: ScanRequest | None = None, db: Session = Depends(get_db)):
    """Scan Wikidata for haunted houses, ghost towns, cemeteries, temples and castles."""
    return _run_scan("api", request, db)


@router.post("/ai")
def run_ai_scan(request: ScanRequest | None = None, db: Session = Depends(get_db)):
    """Ask the LLM for new places."""
    return _run_scan("ai", request, db)


@router.post("/multi")
def run_multi_scan(request: ScanRequest | None = None, db: Session = Depends(get_db)):
    """Fan out to the enabled third-party providers."""
    return _run_scan("multi", request, db)


@router.get("/logs")
def get_scan_logs(
    limit: int = Query(10, ge=1, le=100, description="Number of logs to return"),
    db: Session = Depends(get_db),
):
    """Most recent scan logs, newest first."""
    logs = db.scalars(
        select(ScanLog).order_by(ScanLog.scan_started_at.desc()).limit(limit)
    ).all()

    return {
        "count": len(logs),
        "logs": [
            {
                "id": str(log.id),
                "status": log.status,
                "search_query": log.search_query,
                "places_found": log.places_found,
                "places_added": log.places_added,
                "places_merged": log.places_merged,
                "error_message": log.error_message,
                "scan_started_at": log.scan_started_at.isoformat() if log.scan_started_at else None,
                "scan_completed_at": log.scan_completed_at.isoformat() if log.scan_completed_at else None,
            }
            for log in logs
        ],
    }
