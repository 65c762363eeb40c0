"""
Unit of Work boundary for the ORM-backed backend.

Every ORM repository opens its transactions through ``session_scope`` so a
reorder or a create commits or rolls back as one unit. Do not open ad hoc
sessions elsewhere.
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator

from sqlalchemy.orm import Session, sessionmaker


@contextlib.contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Database session context manager.

    Provides Unit of Work semantics:
    - Opens a DB session from ``factory``
    - Yields it for use
    - On success: commits the transaction
    - On exception: rolls back and re-raises the exception
    - Always closes the session

    Usage:
        with session_scope(factory) as db:
            db.add(some_object)
    """
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
