# SPDX-License-Identifier: MIT
"""Tests for the loguru setup."""

import pytest
from loguru import logger

from pipeline.deduplication import DuplicateCandidate, PlaceStore, SimilarPlace, check_for_duplicates
from pipeline.utils.logging import setup_logging


@pytest.fixture
def configured(tmp_path):
    """Console + file + audit sinks in a temp dir; sinks removed afterwards."""
    paths = {"log": tmp_path / "logs" / "pipeline.log", "audit": tmp_path / "logs" / "audit.log"}
    setup_logging(level="INFO", log_file=paths["log"], audit_file=paths["audit"])
    yield paths
    logger.remove()


class TestSetupLogging:
    """Test sink configuration."""

    def test_creates_log_directory(self, configured):
        logger.info("hello")
        logger.remove()

        assert "hello" in configured["log"].read_text(encoding="utf-8")

    def test_fuzzy_merge_lands_in_audit_file(self, configured, db_session, mocker):
        store = PlaceStore(db_session)
        mocker.patch.object(store, "find_similar", return_value=[SimilarPlace(
            place_id="00000000-0000-0000-0000-000000000001",
            place_name="Örümcek Köşkü",
            place_slug="orumcek-kosku",
            similarity_score=0.93,
            distance_km=0.014,
            lat=41.01,
            lon=28.98,
        )])

        logger.info("unrelated message")
        check_for_duplicates(store, DuplicateCandidate(name="The Örümcek Mansion", lat=41.0101, lon=28.9801))
        logger.remove()

        audit = configured["audit"].read_text(encoding="utf-8")
        assert "Fuzzy duplicate: 'The Örümcek Mansion'" in audit
        assert "unrelated message" not in audit
