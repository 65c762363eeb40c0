"""
Direct-SQL repositories.

Hand-written SQL over a pooled ``sqlite3`` database (``SqlDatabase``). Each
unit of work is one ``BEGIN IMMEDIATE`` transaction, so the reads a mutation
makes and the writes it issues commit or roll back together. Timestamps are
stored as ISO-8601 UTC text and read back unchanged.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import AbstractContextManager
from datetime import datetime
from enum import Enum
from typing import Any

from ..domain.events import EventBus
from ..repositories.audit import AuditLogStore
from ..repositories.base import utc_iso, utcnow
from ..repositories.collections import AssetLinkRepository, CollectionRepository
from ..repositories.locations import LocationRepository
from ..repositories.years import YearRepository
from ..shared.schemas import (
    AssetLinkRecord,
    AuditEntryRecord,
    CollectionRecord,
    LocationRecord,
    YearRecord,
)
from .sqlite import SqlDatabase

_LOCATION_SELECT = """
SELECT l.id, l.year_id, l.name, l.slug, l.summary, l.cover_asset_id, l.order_index,
       l.created_at, l.updated_at,
       (SELECT COUNT(*) FROM collections c WHERE c.location_id = l.id) AS collection_count
FROM locations l
"""

_COLLECTION_SELECT = """
SELECT id, year_id, location_id, slug, title, summary, cover_asset_id, status,
       order_index, version, published_at, created_at, updated_at
FROM collections
"""


def _column_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return utc_iso(value)
    if isinstance(value, Enum):
        return value.value
    return value


def _insert_row(conn: sqlite3.Connection, table: str, values: dict[str, Any]) -> None:
    columns = list(values)
    placeholders = ", ".join("?" for _ in columns)
    conn.execute(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
        [_column_value(values[column]) for column in columns],
    )


def _update_row(
    conn: sqlite3.Connection, table: str, values: dict[str, Any], where: dict[str, Any]
) -> None:
    assignments = ", ".join(f"{column} = ?" for column in values)
    conditions = " AND ".join(f"{column} = ?" for column in where)
    conn.execute(
        f"UPDATE {table} SET {assignments} WHERE {conditions}",
        [_column_value(value) for value in values.values()] + list(where.values()),
    )


def _timestamps(row: dict[str, Any], *columns: str) -> dict[str, Any]:
    for column in columns:
        row[column] = utc_iso(row.get(column))
    return row


def _year_record(row: sqlite3.Row) -> YearRecord:
    return YearRecord(**_timestamps(dict(row), "created_at", "updated_at"))


def _location_record(row: sqlite3.Row) -> LocationRecord:
    return LocationRecord(**_timestamps(dict(row), "created_at", "updated_at"))


def _collection_record(row: sqlite3.Row) -> CollectionRecord:
    return CollectionRecord(**_timestamps(dict(row), "created_at", "updated_at", "published_at"))


class _SqlStore:
    """Database handle plumbing shared by the direct-SQL repositories."""

    integrity_errors = (sqlite3.IntegrityError,)

    def __init__(self, database: SqlDatabase, events: EventBus | None = None):
        super().__init__(events)
        self._db = database

    def unit_of_work(self) -> AbstractContextManager[sqlite3.Connection]:
        return self._db.transaction(immediate=True)


class SqlYearRepository(_SqlStore, YearRepository):
    def _find(self, tx: sqlite3.Connection, column: str, value: str) -> YearRecord | None:
        if column not in ("id", "label"):
            raise ValueError(f"Cannot look up years by {column!r}")
        row = tx.execute(
            f"SELECT id, label, order_index, status, created_at, updated_at FROM years WHERE {column} = ?",
            (value,),
        ).fetchone()
        return _year_record(row) if row is not None else None

    def _all(self, tx: sqlite3.Connection) -> list[YearRecord]:
        rows = tx.execute("SELECT id, label, order_index, status, created_at, updated_at FROM years").fetchall()
        return [_year_record(row) for row in rows]

    def _insert(self, tx: sqlite3.Connection, values: dict[str, Any]) -> None:
        _insert_row(tx, "years", values)

    def _write_index(self, tx: sqlite3.Connection, year_id: str, order_index: str, now: datetime) -> None:
        _update_row(tx, "years", {"order_index": order_index, "updated_at": now}, {"id": year_id})


class SqlLocationRepository(_SqlStore, LocationRepository):
    def _fetch(self, tx: sqlite3.Connection, year_id: str, entity_id: str) -> LocationRecord | None:
        row = tx.execute(
            _LOCATION_SELECT + " WHERE l.year_id = ? AND l.id = ?", (year_id, entity_id)
        ).fetchone()
        return _location_record(row) if row is not None else None

    def _fetch_any(self, tx: sqlite3.Connection, location_id: str) -> LocationRecord | None:
        row = tx.execute(_LOCATION_SELECT + " WHERE l.id = ?", (location_id,)).fetchone()
        return _location_record(row) if row is not None else None

    def _list(self, tx: sqlite3.Connection, year_id: str) -> list[LocationRecord]:
        rows = tx.execute(_LOCATION_SELECT + " WHERE l.year_id = ?", (year_id,)).fetchall()
        return [_location_record(row) for row in rows]

    def _slug_taken(self, tx: sqlite3.Connection, year_id: str, slug: str, exclude_id: str | None) -> bool:
        row = tx.execute(
            "SELECT 1 FROM locations WHERE year_id = ? AND slug = ? AND id != ? LIMIT 1",
            (year_id, slug, exclude_id or ""),
        ).fetchone()
        return row is not None

    def _order_indices(self, tx: sqlite3.Connection, year_id: str) -> list[str]:
        rows = tx.execute("SELECT order_index FROM locations WHERE year_id = ?", (year_id,)).fetchall()
        return [row["order_index"] for row in rows]

    def _insert(self, tx: sqlite3.Connection, values: dict[str, Any]) -> None:
        _insert_row(tx, "locations", values)

    def _update(self, tx: sqlite3.Connection, year_id: str, entity_id: str, values: dict[str, Any]) -> None:
        _update_row(tx, "locations", values, {"id": entity_id, "year_id": year_id})

    def _delete(self, tx: sqlite3.Connection, year_id: str, entity_id: str) -> None:
        tx.execute("DELETE FROM locations WHERE id = ? AND year_id = ?", (entity_id, year_id))


class SqlCollectionRepository(_SqlStore, CollectionRepository):
    def _fetch(self, tx: sqlite3.Connection, year_id: str, entity_id: str) -> CollectionRecord | None:
        row = tx.execute(_COLLECTION_SELECT + " WHERE year_id = ? AND id = ?", (year_id, entity_id)).fetchone()
        return _collection_record(row) if row is not None else None

    def _fetch_any(self, tx: sqlite3.Connection, collection_id: str) -> CollectionRecord | None:
        row = tx.execute(_COLLECTION_SELECT + " WHERE id = ?", (collection_id,)).fetchone()
        return _collection_record(row) if row is not None else None

    def _list(self, tx: sqlite3.Connection, year_id: str) -> list[CollectionRecord]:
        rows = tx.execute(_COLLECTION_SELECT + " WHERE year_id = ?", (year_id,)).fetchall()
        return [_collection_record(row) for row in rows]

    def _slug_taken(self, tx: sqlite3.Connection, year_id: str, slug: str, exclude_id: str | None) -> bool:
        row = tx.execute(
            "SELECT 1 FROM collections WHERE year_id = ? AND slug = ? AND id != ? LIMIT 1",
            (year_id, slug, exclude_id or ""),
        ).fetchone()
        return row is not None

    def _order_indices(self, tx: sqlite3.Connection, year_id: str) -> list[str]:
        rows = tx.execute("SELECT order_index FROM collections WHERE year_id = ?", (year_id,)).fetchall()
        return [row["order_index"] for row in rows]

    def _location_year(self, tx: sqlite3.Connection, location_id: str) -> str | None:
        row = tx.execute("SELECT year_id FROM locations WHERE id = ?", (location_id,)).fetchone()
        return row["year_id"] if row is not None else None

    def _insert(self, tx: sqlite3.Connection, values: dict[str, Any]) -> None:
        _insert_row(tx, "collections", values)

    def _update(self, tx: sqlite3.Connection, year_id: str, entity_id: str, values: dict[str, Any]) -> None:
        _update_row(tx, "collections", values, {"id": entity_id, "year_id": year_id})

    def _delete(self, tx: sqlite3.Connection, year_id: str, entity_id: str) -> None:
        tx.execute("DELETE FROM collections WHERE id = ? AND year_id = ?", (entity_id, year_id))


class SqlAssetLinkRepository(_SqlStore, AssetLinkRepository):
    def _links(self, tx: sqlite3.Connection, collection_id: str) -> list[AssetLinkRecord]:
        rows = tx.execute(
            "SELECT collection_id, asset_id, order_index, created_at FROM collection_assets WHERE collection_id = ?",
            (collection_id,),
        ).fetchall()
        return [AssetLinkRecord(**_timestamps(dict(row), "created_at")) for row in rows]

    def _collection_year(self, tx: sqlite3.Connection, collection_id: str) -> str | None:
        row = tx.execute("SELECT year_id FROM collections WHERE id = ?", (collection_id,)).fetchone()
        return row["year_id"] if row is not None else None

    def _asset_exists(self, tx: sqlite3.Connection, asset_id: str) -> bool:
        return tx.execute("SELECT 1 FROM assets WHERE id = ?", (asset_id,)).fetchone() is not None

    def _insert_asset(self, tx: sqlite3.Connection, values: dict[str, Any]) -> None:
        _insert_row(tx, "assets", values)

    def _insert_link(self, tx: sqlite3.Connection, values: dict[str, Any]) -> None:
        _insert_row(tx, "collection_assets", values)

    def _delete_link(self, tx: sqlite3.Connection, collection_id: str, asset_id: str) -> None:
        tx.execute(
            "DELETE FROM collection_assets WHERE collection_id = ? AND asset_id = ?",
            (collection_id, asset_id),
        )

    def _write_link_index(
        self, tx: sqlite3.Connection, collection_id: str, asset_id: str, order_index: str
    ) -> None:
        _update_row(
            tx,
            "collection_assets",
            {"order_index": order_index},
            {"collection_id": collection_id, "asset_id": asset_id},
        )


class SqlAuditLogStore(AuditLogStore):
    def __init__(self, database: SqlDatabase):
        self._db = database

    def append(
        self,
        *,
        actor: str,
        actor_type: str,
        entity_type: str,
        entity_id: str,
        action: str,
        payload: dict[str, Any] | None,
    ) -> None:
        with self._db.transaction() as conn:
            _insert_row(
                conn,
                "audit_logs",
                {
                    "actor": actor,
                    "actor_type": actor_type,
                    "entity_type": entity_type,
                    "entity_id": entity_id,
                    "action": action,
                    "payload": json.dumps(payload) if payload is not None else None,
                    "created_at": utcnow(),
                },
            )

    def _select(
        self,
        entity_type: str | None,
        entity_id: str | None,
        action: str | None,
        limit: int,
        offset: int,
    ) -> list[AuditEntryRecord]:
        conditions: list[str] = []
        params: list[Any] = []
        for column, value in (("entity_type", entity_type), ("entity_id", entity_id), ("action", action)):
            if value:
                conditions.append(f"{column} = ?")
                params.append(value)
        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""

        with self._db.transaction() as conn:
            rows = conn.execute(
                "SELECT id, actor, actor_type, entity_type, entity_id, action, payload, created_at "
                f"FROM audit_logs{where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            ).fetchall()

        entries = []
        for row in rows:
            data = _timestamps(dict(row), "created_at")
            data["payload"] = json.loads(data["payload"]) if data["payload"] else None
            entries.append(AuditEntryRecord(**data))
        return entries
