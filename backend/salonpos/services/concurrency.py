# Overview: Row locking and conflict retry shared by every ledger write path.

from __future__ import annotations

import time

from flask import current_app, has_app_context
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    version_id columns still catch concurrent writes there.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a whole unit of work with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). func must be safe to re-run from
    scratch: the session is rolled back before every retry. When the last
    attempt still conflicts a retryable ConflictError is raised.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if has_app_context():
                current_app.logger.warning(
                    "Storage conflict on attempt %s/%s: %s", attempt + 1, attempts, exc.__class__.__name__
                )
            if attempt >= attempts - 1:
                raise ConflictError(
                    "Concurrent update detected, please retry",
                    {"attempts": attempts, "cause": exc.__class__.__name__},
                    retryable=True,
                ) from exc
            time.sleep(backoff_base * (2 ** attempt))
    raise ConflictError("No attempts were made", {"attempts": attempts})
