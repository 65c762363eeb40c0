"""
SQLAlchemy engine and session factories for the ORM-backed backend.

Nothing here is created at import time; ``build_catalog`` creates one engine
per process from ``Settings`` and hands the session factory to the ORM
repositories.
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.schema import MetaData

# Deterministic constraint/index names (prevents Alembic churn)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def _enable_sqlite_foreign_keys(dbapi_conn, _):
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def get_engine(db_url: str, *, echo: bool = False) -> Engine:
    """Create a database engine for ``db_url``.

    SQLite URLs get ``check_same_thread=False`` and foreign-key enforcement;
    an in-memory SQLite URL shares one connection so every session sees the
    same database.
    """
    connect_args: dict[str, object] = {}
    kwargs: dict[str, object] = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(
        db_url,
        echo=echo,
        pool_pre_ping=True,
        future=True,
        connect_args=connect_args,
        **kwargs,
    )
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    """Get a session factory bound to ``engine``."""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def create_schema(engine: Engine) -> None:
    """Create all ORM tables (development and tests; production uses Alembic)."""
    from ..domain import entities  # noqa: F401  # register mappers

    Base.metadata.create_all(engine)
