"""
Advisory locks around check-then-insert.

Two scans running at the same time can both decide a place is new and both
try to insert it. Holding a lock keyed by the candidate's identity for the
whole check/insert-or-merge/commit sequence serializes them.
"""

import threading
import weakref
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.orm import Session

# Entries vanish once no holder or waiter references the lock
_local_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_local_locks_guard = threading.Lock()


def lock_key(slug: str, wikidata_id: str | None = None, osm_id: str | None = None) -> str:
    """Lock key for a candidate: external id when present, else slug."""
    if wikidata_id:
        return f"wikidata:{wikidata_id}"
    if osm_id:
        return f"osm:{osm_id}"
    return f"slug:{slug}"


def _local_lock(key: str) -> threading.Lock:
    with _local_locks_guard:
        lock = _local_locks.get(key)
        if lock is None:
            lock = _local_locks[key] = threading.Lock()
        return lock


@contextmanager
def advisory_lock(session: Session, key: str):
    """
    Hold a named lock for the duration of the block.

    PostgreSQL takes a transaction-level ``pg_advisory_xact_lock``, so
    concurrent processes are serialized too. It is released by the commit
    or rollback that ends the transaction, which the block must perform.
    Other dialects fall back to an in-process lock, which only covers scans
    in the same process.
    """
    if session.get_bind().dialect.name == "postgresql":
        session.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})
        logger.debug(f"Acquired advisory lock {key}")
        yield
        return

    lock = _local_lock(key)
    with lock:
        yield
