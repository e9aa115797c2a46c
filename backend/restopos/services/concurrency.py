# Overview: Transaction helpers shared by the money-moving services.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db


class PersistenceError(Exception):
    """
    Raised when the data store rejects or cannot complete a write.

    The session has already been rolled back when this is raised. Money
    moving operations are never retried automatically.
    """
    pass


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def commit_or_rollback(action: str) -> None:
    """Commit the current unit of work, or roll all of it back."""
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError(f"Failed to {action}") from exc


@contextmanager
def atomic(action: str):
    """
    Run a multi-step write as one transaction.

    Commits when the block finishes. Any exception rolls back everything
    flushed inside the block; store errors surface as PersistenceError,
    business errors propagate unchanged.
    """
    try:
        yield
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError(f"Failed to {action}") from exc
    except Exception:
        db.session.rollback()
        raise
