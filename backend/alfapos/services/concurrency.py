# Overview: Service-layer helpers for locking, retries and atomic units of work.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; atomic() compensates there by
    opening the transaction with BEGIN IMMEDIATE.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    Run the enclosed block as one database transaction.

    Commits on normal exit and rolls back on any exception, which is then
    re-raised. On SQLite the write lock is taken up front so concurrent
    writers queue instead of interleaving between the stock check and the
    decrement.
    """
    session = db.session
    try:
        if db.engine.dialect.name == "sqlite":
            session.execute(text("BEGIN IMMEDIATE"))
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
