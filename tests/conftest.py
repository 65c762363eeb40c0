"""
Global test configuration for Travelogue.

Catalog fixtures run every backend-agnostic test against both storage
backends, each on its own temporary SQLite file.
"""

import pytest

from travelogue.bootstrap import build_catalog
from travelogue.infra.settings import Settings
from travelogue.shared.types import BackendKind


def make_settings(kind: BackendKind, tmp_path, **overrides) -> Settings:
    db_file = tmp_path / "catalog.db"
    if kind is BackendKind.DIRECT_SQL:
        values = {
            "ENV": "prod",
            "DATABASE_URL": "sqlite://",
            "CATALOG_SQL_PATH": str(db_file),
        }
    else:
        values = {"ENV": "test", "DATABASE_URL": f"sqlite:///{db_file}"}
    values.update({"CACHE_RETRY_BASE_DELAY": 0.0, "LOG_LEVEL": "WARNING"})
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(params=[BackendKind.ORM, BackendKind.DIRECT_SQL], ids=["orm", "direct_sql"])
def backend_kind(request) -> BackendKind:
    return request.param


@pytest.fixture
def catalog(backend_kind, tmp_path):
    catalog = build_catalog(make_settings(backend_kind, tmp_path), ensure_schema=True)
    assert catalog.backend.kind is backend_kind
    yield catalog
    catalog.close()


@pytest.fixture
def service(catalog):
    return catalog.service


@pytest.fixture
def year(service):
    return service.create_year("2024")


@pytest.fixture
def other_year(service):
    return service.create_year("2025")
