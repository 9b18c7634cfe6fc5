# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for Haunted Places tests."""

import os
from typing import Generator

import pytest

# Set test environment variables before importing app
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DISABLE_LOGGING", "1")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pipeline.database import Base, Place
from pipeline.deduplication.types import SourceRef
from pipeline.providers.base import BaseProvider, ProviderCandidate
from pipeline.utils.text import normalize_slug


ADMIN_KEY = "test-admin-key"


class StubProvider(BaseProvider):
    """Provider returning canned candidates, or failing with a given error."""

    provider_id = "stub"
    provider_name = "Stub"

    def __init__(self, candidates=None, error=None, name="Stub"):
        super().__init__()
        self.provider_name = name
        self.candidates = candidates or []
        self.error = error

    def fetch_raw(self):
        if self.error is not None:
            raise self.error
        return list(self.candidates)

    def normalize(self, item):
        return item


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory) -> Generator:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def place_factory(db_session):
    """Create and commit a Place with sensible defaults."""

    def _create(name: str = "Haunted House", **fields) -> Place:
        values = {
            "name": name,
            "slug": normalize_slug(name),
            "category": "haunted",
            "country_code": "TR",
            "evidence_score": 50,
            "sources_json": [
                {"url": f"https://example.com/{normalize_slug(name)}", "domain": "example.com", "type": "web"}
            ],
        }
        values.update(fields)
        place = Place(**values)
        db_session.add(place)
        db_session.commit()
        return place

    return _create


@pytest.fixture
def make_candidate():
    """Build a ProviderCandidate with one citation."""

    def _make(name: str = "Haunted House", url: str | None = None, source_type: str = "api", **fields):
        url = url or f"https://provider.example/{normalize_slug(name) or 'x'}"
        values = {
            "provider": "stub",
            "name": name,
            "category": "haunted",
            "country_code": "TR",
            "sources": [SourceRef.from_url(url, source_type)],
        }
        values.update(fields)
        return ProviderCandidate(**values)

    return _make


@pytest.fixture
def stub_provider():
    """Factory for StubProvider instances."""
    return StubProvider


@pytest.fixture
def admin_headers(monkeypatch) -> dict:
    monkeypatch.setenv("ADMIN_KEY", ADMIN_KEY)
    return {"Authorization": f"Bearer {ADMIN_KEY}"}


@pytest.fixture
def test_client(db_session) -> Generator:
    """Create a test client for the FastAPI application, bound to the test database."""
    from fastapi.testclient import TestClient
    from api.main import app
    from pipeline.database import get_db

    def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
