"""
Direct-SQL database handle.

A small ``sqlite3`` connection pool plus the schema the direct-SQL backend
writes to. Binding one of these at startup (``CATALOG_SQL_PATH``) is what makes
the direct-SQL backend eligible in production.
"""

from __future__ import annotations

import queue
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .exceptions import InternalError

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS years (
    id TEXT PRIMARY KEY,
    label TEXT NOT NULL UNIQUE,
    order_index TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'draft',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS assets (
    id TEXT PRIMARY KEY,
    filename TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS locations (
    id TEXT PRIMARY KEY,
    year_id TEXT NOT NULL REFERENCES years(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    slug TEXT NOT NULL,
    summary TEXT,
    cover_asset_id TEXT,
    order_index TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    CONSTRAINT uq_locations_year_slug UNIQUE (year_id, slug)
);
CREATE INDEX IF NOT EXISTS ix_locations_year_order ON locations (year_id, order_index);

CREATE TABLE IF NOT EXISTS collections (
    id TEXT PRIMARY KEY,
    year_id TEXT NOT NULL REFERENCES years(id) ON DELETE CASCADE,
    location_id TEXT REFERENCES locations(id) ON DELETE RESTRICT,
    slug TEXT NOT NULL,
    title TEXT NOT NULL,
    summary TEXT,
    cover_asset_id TEXT,
    status TEXT NOT NULL DEFAULT 'draft',
    order_index TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    published_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    CONSTRAINT uq_collections_year_slug UNIQUE (year_id, slug)
);
CREATE INDEX IF NOT EXISTS ix_collections_year_order ON collections (year_id, order_index);
CREATE INDEX IF NOT EXISTS ix_collections_location ON collections (location_id);

CREATE TABLE IF NOT EXISTS collection_assets (
    collection_id TEXT NOT NULL REFERENCES collections(id) ON DELETE CASCADE,
    asset_id TEXT NOT NULL REFERENCES assets(id) ON DELETE CASCADE,
    order_index TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (collection_id, asset_id)
);

CREATE TABLE IF NOT EXISTS audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    actor TEXT NOT NULL,
    actor_type TEXT NOT NULL,
    entity_type TEXT NOT NULL,
    entity_id TEXT NOT NULL,
    action TEXT NOT NULL,
    payload TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_audit_logs_entity ON audit_logs (entity_type, entity_id);
"""


class SqlDatabase:
    """Pooled ``sqlite3`` connections to one database file."""

    def __init__(self, db_path: str | Path, pool_size: int = 5, timeout: float = 30.0):
        self._db_path = str(db_path)
        self._pool_size = pool_size
        self._timeout = timeout
        self._pool: queue.Queue[sqlite3.Connection] = queue.Queue(maxsize=pool_size)
        self._created = 0
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._db_path

    def _create_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=self._timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _acquire(self) -> sqlite3.Connection:
        try:
            return self._pool.get_nowait()
        except queue.Empty:
            pass

        with self._lock:
            if self._created < self._pool_size:
                self._created += 1
                return self._create_connection()

        try:
            return self._pool.get(timeout=self._timeout)
        except queue.Empty:
            raise InternalError(
                f"No SQL connections available within {self._timeout}s (pool_size={self._pool_size})"
            )

    def _release(self, conn: sqlite3.Connection) -> None:
        try:
            self._pool.put_nowait(conn)
        except queue.Full:
            conn.close()

    @contextmanager
    def transaction(self, *, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back and re-raise on error.

        ``immediate`` takes the write lock up front so reads made inside the
        block cannot be invalidated by another writer before the block commits.
        """
        conn = self._acquire()
        try:
            if immediate:
                conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._release(conn)

    def ensure_schema(self) -> None:
        conn = self._acquire()
        try:
            conn.executescript(SCHEMA_SQL)
        finally:
            self._release(conn)

    def close_all(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except queue.Empty:
                break
        with self._lock:
            self._created = 0
