"""
Base scan class for the ingestion orchestrators.

A scan fetches candidates from its providers, collapses repeats within the
batch, then runs every candidate through the duplicate checker one at a
time: duplicates have their sources merged into the stored place, new
places are inserted. One bad candidate never aborts the batch.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from pipeline.config import (
    APP_SETTING_COLLECTION_METHOD,
    APP_SETTING_SCANNING_PAUSED,
    DEFAULT_AI_PLACE_COUNT,
    DEFAULT_LLM_MODEL,
    PROVIDERS,
    Settings,
)
from pipeline.database import AppSetting, ScanLog, SessionLocal
from pipeline.deduplication import (
    PlaceStore,
    advisory_lock,
    check_for_duplicates,
    dedupe_by_location,
    lock_key,
    merge_sources,
    union_sources,
)
from pipeline.providers import BaseProvider, ProviderCandidate, ProviderError
from pipeline.utils.text import normalize_slug


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_setting_bool(value: Optional[str]) -> bool:
    """app_settings values are stored as text, sometimes JSON-quoted."""
    return (value or "").strip().strip('"').lower() in ("true", "1", "yes", "on")


@dataclass
class ScanConfig:
    """
    Everything a scan run needs, resolved once when the scan is triggered.

    Nothing is re-read from the environment or the app_settings table while
    the batch is running.
    """
    country: str = "TR"
    category: str = "haunted_location"
    enabled_providers: list[str] = field(default_factory=list)
    result_limit: int = 50
    scanning_paused: bool = False
    collection_method: str = "api"

    # Duplicate detection
    recall_threshold: float = 0.75
    merge_similarity: float = 0.9
    merge_distance_km: float = 1.0

    # AI scan
    llm_model: str = DEFAULT_LLM_MODEL
    ai_place_count: int = DEFAULT_AI_PLACE_COUNT

    # Provider id -> credential
    credentials: dict[str, Optional[str]] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[Session] = None, **overrides) -> "ScanConfig":
        """
        Build a config from environment settings and, when a session is
        given, the runtime app_settings rows. ``None`` overrides are ignored.
        """
        credentials = {}
        for provider_id, info in PROVIDERS.items():
            key_setting = info.get("key_setting")
            if key_setting:
                credentials[provider_id] = getattr(settings.scan, key_setting, None)

        values: dict[str, Any] = {
            "country": settings.scan.scan_country,
            "category": settings.scan.scan_category,
            "enabled_providers": settings.scan.scan_providers_list,
            "result_limit": settings.scan.scan_result_limit,
            "scanning_paused": settings.scan.scanning_paused,
            "recall_threshold": settings.dedup.recall_threshold,
            "merge_similarity": settings.dedup.merge_similarity,
            "merge_distance_km": settings.dedup.merge_distance_km,
            "llm_model": settings.scan.llm_model,
            "ai_place_count": settings.scan.ai_scan_place_count,
            "credentials": credentials,
        }

        if session is not None:
            rows = dict(session.execute(select(AppSetting.setting_key, AppSetting.setting_value)).all())
            if APP_SETTING_SCANNING_PAUSED in rows:
                values["scanning_paused"] = parse_setting_bool(rows[APP_SETTING_SCANNING_PAUSED])
            method = (rows.get(APP_SETTING_COLLECTION_METHOD) or "").strip().strip('"')
            if method:
                values["collection_method"] = method

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


@dataclass
class ScanResult:
    """Result of a scan run."""
    scan_type: str
    success: bool = False
    status: str = "running"
    scan_log_id: Optional[str] = None
    places_found: int = 0
    unique_places: int = 0
    places_added: int = 0
    places_merged: int = 0
    possible_duplicates: int = 0
    errors: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Calculate duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("scan_type", "started_at", "completed_at"):
            data.pop(key)
        return data


class BaseScan(ABC):
    """
    Abstract base class for ingestion scans.

    Subclasses must implement:
    - build_providers(): Providers to query for this scan
    - evidence_score(): Score given to newly inserted places
    """

    # Class attributes to be set by subclasses
    scan_type: str = None           # e.g., "api"
    search_query: str = None        # Recorded on the scan log
    ai_collected: int = 0

    def __init__(self, session: Session | None = None, providers: list[BaseProvider] | None = None):
        """
        Initialize the scan.

        Args:
            session: SQLAlchemy session (optional, will create if not provided)
            providers: Provider instances to use instead of build_providers()
        """
        if self.scan_type is None:
            raise ValueError("scan_type must be set in subclass")

        self.session = session or SessionLocal()
        self._owns_session = session is None
        self.store = PlaceStore(self.session)
        self.providers = providers

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owns_session:
            self.session.close()

    @abstractmethod
    def build_providers(self, config: ScanConfig) -> list[BaseProvider]:
        """Providers this scan queries, in order."""
        pass

    @abstractmethod
    def evidence_score(self, candidate: ProviderCandidate, slug: str) -> int:
        """Evidence score for a newly inserted place (0-100)."""
        pass

    def describe(self, config: ScanConfig) -> str:
        """Search query text recorded on the scan log."""
        return self.search_query or self.scan_type

    def dedupe_batch(self, candidates: list[ProviderCandidate]) -> list[ProviderCandidate]:
        """Collapse repeats within the batch."""
        return dedupe_by_location(candidates)

    def fetch_candidates(self, providers: list[BaseProvider], result: ScanResult) -> list[ProviderCandidate]:
        """
        Query every provider, recording failures instead of aborting.

        Returns:
            All candidates, in provider order
        """
        candidates = []
        self._failed_providers = 0
        for provider in providers:
            try:
                candidates.extend(provider.fetch())
            except ProviderError as e:
                self._failed_providers += 1
                logger.warning(str(e))
                result.errors.append(str(e))
        return candidates

    def build_place(self, candidate: ProviderCandidate, slug: str, seen_at: datetime) -> dict:
        """Column values for a new place."""
        sources, _ = union_sources([], candidate.sources, seen_at)
        return {
            "name": candidate.name.strip(),
            "slug": slug,
            "category": candidate.category,
            "description": candidate.description,
            "country_code": (candidate.country_code or "XX").upper(),
            "city": candidate.city,
            "lat": candidate.lat,
            "lon": candidate.lon,
            "wikidata_id": candidate.wikidata_id,
            "osm_id": candidate.osm_id,
            "evidence_score": max(0, min(100, self.evidence_score(candidate, slug))),
            "status": "pending",
            "ai_collected": self.ai_collected,
            "human_approved": 0,
            "sources_json": [source.to_dict() for source in sources],
            "first_seen_at": seen_at,
            "last_seen_at": seen_at,
        }

    def process_candidate(self, candidate: ProviderCandidate, config: ScanConfig, result: ScanResult) -> None:
        """
        Check one candidate and merge or insert it.

        The check and the write happen under a lock keyed by the candidate's
        identity and are committed together. Failures are rolled back and
        recorded on the result.
        """
        slug = normalize_slug(candidate.name)
        if not slug:
            message = f"Skipped '{candidate.name}': name has no slug"
            logger.warning(message)
            result.errors.append(message)
            return

        key = lock_key(slug, candidate.wikidata_id, candidate.osm_id)
        now = _utcnow()

        try:
            with advisory_lock(self.session, key):
                try:
                    check = check_for_duplicates(
                        self.store,
                        candidate.duplicate_candidate(),
                        recall_threshold=config.recall_threshold,
                        merge_similarity=config.merge_similarity,
                        merge_distance_km=config.merge_distance_km,
                    )

                    if check.is_duplicate:
                        logger.info(f"Duplicate found: {candidate.name} - {check.reason}")
                        merge_sources(self.store, check.existing_place_id, candidate.sources, seen_at=now)
                        self.session.commit()
                        result.places_merged += 1
                        return

                    self.store.insert_place(**self.build_place(candidate, slug, now))
                    self.session.commit()
                except Exception:
                    self.session.rollback()
                    raise
        except Exception as e:
            logger.exception(f"Failed to process {candidate.name}")
            result.errors.append(f"{candidate.name}: {e}")
            return

        result.places_added += 1
        if check.similar_places:
            result.possible_duplicates += 1
            logger.info(
                f"Added {candidate.name} with {len(check.similar_places)} similar place(s) for review"
            )
        else:
            logger.info(f"Added: {candidate.name}")

    def run(self, config: ScanConfig) -> ScanResult:
        """
        Run the full scan.

        Args:
            config: Resolved scan configuration

        Returns:
            ScanResult with statistics

        Raises:
            Any error escaping the batch loop, after marking the scan log failed
        """
        result = ScanResult(scan_type=self.scan_type, started_at=_utcnow())

        if config.scanning_paused:
            logger.info(f"Scanning is paused, skipping {self.scan_type} scan")
            result.success = True
            result.status = "skipped"
            result.completed_at = _utcnow()
            return result

        logger.info(f"Starting {self.scan_type} scan...")
        scan_log = ScanLog(
            status="running",
            search_query=self.describe(config),
            scan_started_at=result.started_at,
        )
        self.session.add(scan_log)
        self.session.commit()
        result.scan_log_id = str(scan_log.id)

        try:
            providers = self.providers if self.providers is not None else self.build_providers(config)
            candidates = self.fetch_candidates(providers, result)
            result.places_found = len(candidates)

            unique = self.dedupe_batch(candidates)
            result.unique_places = len(unique)
            logger.info(f"Found {result.places_found} places, {result.unique_places} unique")

            for candidate in unique:
                self.process_candidate(candidate, config, result)

        except Exception as e:
            self.session.rollback()
            result.completed_at = _utcnow()
            result.status = "failed"
            result.errors.append(str(e))

            scan_log.status = "failed"
            scan_log.error_message = str(e)
            scan_log.places_found = result.places_found
            scan_log.places_added = result.places_added
            scan_log.places_merged = result.places_merged
            scan_log.scan_completed_at = result.completed_at
            self.session.commit()

            logger.error(f"{self.scan_type} scan failed: {e}")
            raise

        result.completed_at = _utcnow()
        result.status = "completed"
        # A scan whose every provider failed has nothing to show for itself
        result.success = not (providers and self._failed_providers == len(providers))

        scan_log.status = "completed"
        scan_log.places_found = result.places_found
        scan_log.places_added = result.places_added
        scan_log.places_merged = result.places_merged
        scan_log.error_message = "; ".join(result.errors) or None
        scan_log.scan_completed_at = result.completed_at
        self.session.commit()

        logger.info(
            f"{self.scan_type} scan completed. Found: {result.places_found}, "
            f"added: {result.places_added}, merged: {result.places_merged} "
            f"({result.duration_seconds:.1f}s)"
        )
        return result
