# Overview: Service-layer helpers for locking and retrying database work under concurrency.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    On SQLite use begin_write() to serialize writers instead.
    """
    return query.with_for_update()


def begin_write(session) -> None:
    """
    Take the database write lock up front on SQLite.

    A deferred SQLite transaction that reads first and writes later can
    deadlock against another writer; BEGIN IMMEDIATE makes the second
    writer wait for the first to commit instead. No-op on other dialects
    and when the connection is already inside a transaction.
    """
    conn = session.connection()
    if conn.dialect.name != "sqlite":
        return
    driver_conn = conn.connection.driver_connection
    if not driver_conn.in_transaction:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def run_with_retry(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). The session is rolled back before
    every retry, so func must start from a clean transaction.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(session, func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func inside one write transaction and commit it.

    Any exception rolls the whole unit back, so callers never leave partial
    state behind. Lock/optimistic-locking conflicts are retried.
    """
    def _op():
        begin_write(session)
        try:
            result = func()
            session.commit()
            return result
        except Exception:
            session.rollback()
            raise

    return run_with_retry(session, _op, attempts=attempts, backoff_base=backoff_base)
