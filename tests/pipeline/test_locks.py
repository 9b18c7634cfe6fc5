# SPDX-License-Identifier: MIT
"""Tests for advisory locking around check-then-insert."""

import gc
import threading

from pipeline.deduplication.locks import _local_lock, _local_locks, advisory_lock, lock_key


class TestLockKey:
    """Test lock key selection."""

    def test_wikidata_first(self):
        assert lock_key("bran-castle", "Q123", "way/1") == "wikidata:Q123"

    def test_osm_second(self):
        assert lock_key("bran-castle", None, "way/1") == "osm:way/1"

    def test_slug_fallback(self):
        assert lock_key("bran-castle") == "slug:bran-castle"


class TestAdvisoryLock:
    """Test both lock backends."""

    def test_local_lock_held_inside_block(self, db_session):
        with advisory_lock(db_session, "slug:hoia-forest"):
            assert _local_lock("slug:hoia-forest").locked()
        assert not _local_lock("slug:hoia-forest").locked()

    def test_local_lock_released_on_error(self, db_session):
        try:
            with advisory_lock(db_session, "slug:error-case"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert not _local_lock("slug:error-case").locked()

    def test_local_lock_evicted_after_block(self, db_session):
        with advisory_lock(db_session, "slug:evicted"):
            assert "slug:evicted" in _local_locks

        gc.collect()
        assert "slug:evicted" not in _local_locks

    def test_local_lock_evicted_after_error(self, db_session):
        try:
            with advisory_lock(db_session, "slug:evicted-error"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        gc.collect()
        assert "slug:evicted-error" not in _local_locks

    def test_many_keys_do_not_accumulate(self, db_session):
        for i in range(50):
            with advisory_lock(db_session, f"slug:place-{i}"):
                pass

        gc.collect()
        assert not any(key.startswith("slug:place-") for key in list(_local_locks.keys()))

    def test_same_key_serializes_threads(self, db_session):
        entered = threading.Event()

        def contender():
            with advisory_lock(db_session, "slug:contended"):
                entered.set()

        with advisory_lock(db_session, "slug:contended"):
            worker = threading.Thread(target=contender)
            worker.start()
            assert not entered.wait(timeout=0.2)

        worker.join(timeout=2)
        assert entered.is_set()

    def test_postgres_uses_transaction_lock(self, mocker):
        session = mocker.MagicMock()
        session.get_bind.return_value.dialect.name = "postgresql"

        with advisory_lock(session, "wikidata:Q1"):
            session.commit()

        # Released by the commit, no explicit unlock
        assert session.execute.call_count == 1
        lock_sql = str(session.execute.call_args_list[0][0][0])
        assert "pg_advisory_xact_lock(hashtext(:key))" in lock_sql
        assert session.execute.call_args_list[0][0][1] == {"key": "wikidata:Q1"}
