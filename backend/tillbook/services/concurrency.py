# Overview: Transaction boundaries, row locking and retry for write paths.

from __future__ import annotations

import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, StaleDataError)

# Fragments of driver messages that mean "someone else holds the lock".
_LOCK_MESSAGES = ("database is locked", "deadlock", "could not serialize", "lock wait timeout", "lock timeout")


def begin_unit_of_work(session: Session) -> None:
    """
    Open the write transaction for a unit of work.

    SQLite has no row locks, so take the database write lock up front with
    BEGIN IMMEDIATE; concurrent writers queue on it instead of failing at
    commit. Other databases rely on lock_for_update row locks.

    The session must not hold uncommitted writes when this is called.
    """
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def is_lock_conflict(exc: Exception) -> bool:
    """True when a database error is a lock/serialization collision."""
    if isinstance(exc, (StaleDataError, IntegrityError)):
        return True
    message = str(getattr(exc, "orig", exc)).lower()
    return any(fragment in message for fragment in _LOCK_MESSAGES)


def run_with_retry(
    func,
    *,
    session: Session,
    attempts: int = 3,
    backoff_base: float = 0.1,
    retry_on: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts) by default. The session is rolled back
    before every retry; the last error is re-raised once attempts run out.
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning(
                "Retrying after %s (attempt %d of %d): %s",
                type(exc).__name__, attempt + 1, attempts, exc,
            )
            time.sleep(backoff_base * (2 ** attempt))
