# Overview: Transaction helpers shared by the write paths.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    All-or-nothing unit of work on db.session.

    Commits when the block exits normally. Any exception rolls the whole
    session back; database errors are re-raised as PersistenceError so
    routes answer with the generic message, domain errors pass through.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError() from exc
    except Exception:
        db.session.rollback()
        raise
