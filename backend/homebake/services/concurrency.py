# Overview: Retry helper for writers racing on unique constraints and locks.

"""
Concurrent writers

Two managers creating a batch for the same bread type and shift compute
the same next number; the unique constraint rejects the second insert.
SQLite also reports "database is locked" under write contention.

run_with_retry rolls the session back and calls `func` again, so `func`
must rebuild whatever it adds to the session. Never pass a bare
db.session.commit: after the rollback there is nothing left to commit.
"""

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


RETRYABLE_ERRORS = (IntegrityError, OperationalError, StaleDataError)


def run_with_retry(
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
    retry_on: tuple = RETRYABLE_ERRORS,
    on_retry=None,
    sleep=time.sleep,
):
    """
    Call `func` until it succeeds or `attempts` runs out.

    on_retry(attempt, exc) is called before each retry. The last error is
    re-raised once attempts are exhausted.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            if attempt >= attempts:
                raise
            if on_retry is not None:
                on_retry(attempt, exc)
            if backoff_base:
                sleep(backoff_base * (2 ** (attempt - 1)))
