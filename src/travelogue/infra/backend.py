"""
Storage backend selection.

The backend is chosen exactly once per process from an injected
``RuntimeConfig``: the direct-SQL backend when running in production with a
SQL database handle bound, otherwise the ORM-backed backend. Callers only see
the repository interfaces in the returned ``Backend`` bundle, so one request
never mixes the two.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine

from ..domain.events import EventBus
from ..repositories import (
    AssetLinkRepository,
    AuditLogStore,
    CollectionRepository,
    LocationRepository,
    YearRepository,
)
from ..shared.types import BackendKind
from .db import create_schema, get_engine, get_sessionmaker
from .logging import get_logger
from .settings import Settings
from .sqlite import SqlDatabase

_log = get_logger(__name__)


@dataclass(frozen=True)
class RuntimeConfig:
    """Process-wide facts the backend choice depends on."""

    environment: str = "dev"
    database_url: str = "sqlite:///./travelogue.db"
    sql_handle: SqlDatabase | None = None
    echo_sql: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("prod", "production")

    @classmethod
    def from_settings(cls, settings: Settings, *, sql_handle: SqlDatabase | None = None) -> RuntimeConfig:
        """Build the config, binding a SQL handle when ``CATALOG_SQL_PATH`` is set."""
        if sql_handle is None and settings.catalog_sql_path:
            sql_handle = SqlDatabase(
                settings.catalog_sql_path,
                pool_size=settings.sql_pool_size,
                timeout=settings.sql_timeout,
            )
        return cls(
            environment=settings.env,
            database_url=settings.database_url,
            sql_handle=sql_handle,
            echo_sql=settings.echo_sql,
        )


@dataclass
class Backend:
    kind: BackendKind
    years: YearRepository
    locations: LocationRepository
    collections: CollectionRepository
    assets: AssetLinkRepository
    audit_log: AuditLogStore
    engine: Engine | None = None
    sql_handle: SqlDatabase | None = None

    def ensure_schema(self) -> None:
        """Create missing tables (development and tests; production uses Alembic)."""
        if self.sql_handle is not None:
            self.sql_handle.ensure_schema()
        if self.engine is not None:
            create_schema(self.engine)

    def close(self) -> None:
        if self.sql_handle is not None:
            self.sql_handle.close_all()
        if self.engine is not None:
            self.engine.dispose()


def select_backend(config: RuntimeConfig, events: EventBus) -> Backend:
    """Build the repositories for the one backend this process will use."""
    if config.is_production and config.sql_handle is not None:
        from .sql_repositories import (
            SqlAssetLinkRepository,
            SqlAuditLogStore,
            SqlCollectionRepository,
            SqlLocationRepository,
            SqlYearRepository,
        )

        database = config.sql_handle
        backend = Backend(
            kind=BackendKind.DIRECT_SQL,
            years=SqlYearRepository(database, events),
            locations=SqlLocationRepository(database, events),
            collections=SqlCollectionRepository(database, events),
            assets=SqlAssetLinkRepository(database, events),
            audit_log=SqlAuditLogStore(database),
            sql_handle=database,
        )
    else:
        from .orm_repositories import (
            OrmAssetLinkRepository,
            OrmAuditLogStore,
            OrmCollectionRepository,
            OrmLocationRepository,
            OrmYearRepository,
        )

        engine = get_engine(config.database_url, echo=config.echo_sql)
        factory = get_sessionmaker(engine)
        backend = Backend(
            kind=BackendKind.ORM,
            years=OrmYearRepository(factory, events),
            locations=OrmLocationRepository(factory, events),
            collections=OrmCollectionRepository(factory, events),
            assets=OrmAssetLinkRepository(factory, events),
            audit_log=OrmAuditLogStore(factory),
            engine=engine,
        )

    _log.info(
        "backend_selected",
        backend=backend.kind.value,
        environment=config.environment,
        sql_handle_bound=config.sql_handle is not None,
    )
    return backend
