"""
Database models for the Haunted Places directory.

Uses SQLAlchemy 2.0. PostgreSQL in production (JSONB + pg_trgm),
SQLite is supported for local runs and tests.
"""

import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    create_engine,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func

from pipeline.config import settings


# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# Database Engine and Session
# =============================================================================

def engine_options(url: str) -> dict:
    """Connection pool options for a database URL."""
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,          # Connection timeout to prevent hanging
        "pool_recycle": 1800,        # Recycle connections every 30 minutes
        "connect_args": {
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000",  # 30s query timeout
        },
    }


engine = create_engine(
    settings.database.url,
    echo=settings.pipeline.log_level == "DEBUG",
    **engine_options(settings.database.url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_session():
    """Context manager for database sessions."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================================
# Base Model
# =============================================================================

class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# =============================================================================
# Places
# =============================================================================

class Place(Base):
    """
    A haunted place listed in the directory.

    Sources are kept denormalized in ``sources_json`` (ordered list of
    ``{url, domain, type, first_seen?, last_seen?}``); the ingestion
    pipeline only ever appends to it through the source merger.
    """
    __tablename__ = "places"

    # Identity
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)

    # Location
    country_code: Mapped[str] = mapped_column(String(2), nullable=False, default="XX")
    city: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lon: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # External identifiers (strongest duplicate keys)
    wikidata_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, unique=True)
    osm_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, unique=True)

    # Classification
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Provenance / trust
    evidence_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ai_collected: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    human_approved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    # Engagement
    votes_up: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    votes_down: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating_sum: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Sources
    sources_json: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    # Timestamps
    first_seen_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_seen_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_ai_scan_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ai_scan_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("evidence_score BETWEEN 0 AND 100", name="ck_places_evidence_score"),
        CheckConstraint("votes_up >= 0 AND votes_down >= 0", name="ck_places_votes"),
        Index("idx_places_status", "status"),
        Index("idx_places_country", "country_code"),
    )

    def __repr__(self) -> str:
        return f"<Place {self.slug} ({self.lat}, {self.lon})>"


# =============================================================================
# Scan bookkeeping
# =============================================================================

class ScanLog(Base):
    """
    One row per scan run (API, AI or multi-source).

    Status goes running -> completed, or running -> failed when the batch
    aborts before completion.
    """
    __tablename__ = "ai_scan_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="running")
    search_query: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    places_found: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    places_added: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    places_merged: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scan_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    scan_completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_scan_logs_started", "scan_started_at"),
    )

    def __repr__(self) -> str:
        return f"<ScanLog {self.id} ({self.status})>"


class AppSetting(Base):
    """Runtime key/value settings edited from the admin panel."""
    __tablename__ = "app_settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    setting_key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    setting_value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    updated_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<AppSetting {self.setting_key}={self.setting_value}>"


# =============================================================================
# Helper Functions
# =============================================================================

def create_all_tables(bind=None):
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def drop_all_tables(bind=None):
    """Drop all database tables. USE WITH CAUTION!"""
    Base.metadata.drop_all(bind=bind or engine)
