# Overview: Transaction helpers shared by checkout, status updates and catalog edits.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import PersistenceError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking and reload rows from the database.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, see begin_write().
    """
    return query.populate_existing().with_for_update()


def begin_write(session=None) -> None:
    """
    Open the write transaction up front.

    SQLite has no row locks, so take the database write lock before the first
    read; concurrent writers then serialize instead of validating against a
    view that is about to change.
    """
    session = session or db.session
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.05, session=None):
    """
    Execute a DB unit of work with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). The whole unit is re-run from scratch,
    so every retry re-reads and re-validates current state.
    """
    session = session or db.session
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def run_in_transaction(func, *, attempts: int = 3, session=None, failure_message: str = "Transaction failed"):
    """
    Run func as one atomic unit of work and commit it.

    - The write lock is taken before func reads anything (begin_write).
    - Any exception rolls the whole unit back; nothing partial is visible.
    - Lock/version conflicts re-run the unit; domain errors propagate as-is.
    - Storage faults surface as PersistenceError.
    """
    session = session or db.session

    def _op():
        begin_write(session)
        try:
            result = func()
            session.commit()
            return result
        except Exception:
            session.rollback()
            raise

    try:
        return run_with_retry(_op, attempts=attempts, session=session)
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceError(failure_message) from exc
