# Overview: Optimistic-lock retry and row locking helpers for stock mutations.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (version_id conflicts on inventory rows). Each retry starts from a
    rolled-back session, so func must re-read everything it writes.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrent write conflict (%s), retry %d of %d",
                type(exc).__name__, attempt + 1, attempts - 1,
            )
            time.sleep(backoff_base * (2 ** attempt))
