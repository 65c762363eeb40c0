"""
ORM-backed repositories.

SQLAlchemy 2.x implementations of the storage primitives declared in
``travelogue.repositories``. Every transaction goes through
``travelogue.infra.uow.session_scope``; rows are converted to records before
they leave the session, with timestamps normalized by ``utc_iso``.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..domain.entities import Asset, AuditLog, Collection, CollectionAsset, Location, Year
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
from .uow import session_scope

_collection_count = (
    select(func.count(Collection.id))
    .where(Collection.location_id == Location.id)
    .correlate(Location)
    .scalar_subquery()
)


def _year_record(year: Year) -> YearRecord:
    return YearRecord(
        id=year.id,
        label=year.label,
        order_index=year.order_index,
        status=year.status,
        created_at=utc_iso(year.created_at),
        updated_at=utc_iso(year.updated_at),
    )


def _location_record(location: Location, collection_count: int | None) -> LocationRecord:
    return LocationRecord(
        id=location.id,
        year_id=location.year_id,
        name=location.name,
        slug=location.slug,
        summary=location.summary,
        cover_asset_id=location.cover_asset_id,
        order_index=location.order_index,
        created_at=utc_iso(location.created_at),
        updated_at=utc_iso(location.updated_at),
        collection_count=int(collection_count or 0),
    )


def _collection_record(collection: Collection) -> CollectionRecord:
    return CollectionRecord(
        id=collection.id,
        year_id=collection.year_id,
        location_id=collection.location_id,
        slug=collection.slug,
        title=collection.title,
        summary=collection.summary,
        cover_asset_id=collection.cover_asset_id,
        status=collection.status,
        order_index=collection.order_index,
        version=collection.version,
        published_at=utc_iso(collection.published_at),
        created_at=utc_iso(collection.created_at),
        updated_at=utc_iso(collection.updated_at),
    )


def _link_record(link: CollectionAsset) -> AssetLinkRecord:
    return AssetLinkRecord(
        collection_id=link.collection_id,
        asset_id=link.asset_id,
        order_index=link.order_index,
        created_at=utc_iso(link.created_at),
    )


class _OrmStore:
    """Session factory plumbing shared by the ORM repositories."""

    integrity_errors = (IntegrityError,)

    def __init__(self, session_factory: sessionmaker, events: EventBus | None = None):
        super().__init__(events)
        self._session_factory = session_factory

    def unit_of_work(self) -> AbstractContextManager[Session]:
        return session_scope(self._session_factory)


class OrmYearRepository(_OrmStore, YearRepository):
    def _find(self, tx: Session, column: str, value: str) -> YearRecord | None:
        year = tx.execute(select(Year).where(getattr(Year, column) == value)).scalar_one_or_none()
        return _year_record(year) if year is not None else None

    def _all(self, tx: Session) -> list[YearRecord]:
        return [_year_record(year) for year in tx.execute(select(Year)).scalars().all()]

    def _insert(self, tx: Session, values: dict[str, Any]) -> None:
        tx.add(Year(**values))
        tx.flush()

    def _write_index(self, tx: Session, year_id: str, order_index: str, now: datetime) -> None:
        tx.execute(update(Year).where(Year.id == year_id).values(order_index=order_index, updated_at=now))


class OrmLocationRepository(_OrmStore, LocationRepository):
    def _fetch(self, tx: Session, year_id: str, entity_id: str) -> LocationRecord | None:
        row = tx.execute(
            select(Location, _collection_count)
            .where(Location.id == entity_id, Location.year_id == year_id)
            .execution_options(populate_existing=True)
        ).first()
        return _location_record(*row) if row is not None else None

    def _fetch_any(self, tx: Session, location_id: str) -> LocationRecord | None:
        row = tx.execute(
            select(Location, _collection_count)
            .where(Location.id == location_id)
            .execution_options(populate_existing=True)
        ).first()
        return _location_record(*row) if row is not None else None

    def _list(self, tx: Session, year_id: str) -> list[LocationRecord]:
        rows = tx.execute(
            select(Location, _collection_count)
            .where(Location.year_id == year_id)
            .execution_options(populate_existing=True)
        ).all()
        return [_location_record(location, count) for location, count in rows]

    def _slug_taken(self, tx: Session, year_id: str, slug: str, exclude_id: str | None) -> bool:
        stmt = select(Location.id).where(Location.year_id == year_id, Location.slug == slug)
        if exclude_id:
            stmt = stmt.where(Location.id != exclude_id)
        return tx.execute(stmt.limit(1)).first() is not None

    def _order_indices(self, tx: Session, year_id: str) -> list[str]:
        return list(tx.execute(select(Location.order_index).where(Location.year_id == year_id)).scalars())

    def _insert(self, tx: Session, values: dict[str, Any]) -> None:
        tx.add(Location(**values))
        tx.flush()

    def _update(self, tx: Session, year_id: str, entity_id: str, values: dict[str, Any]) -> None:
        tx.execute(
            update(Location)
            .where(Location.id == entity_id, Location.year_id == year_id)
            .values(**values)
        )

    def _delete(self, tx: Session, year_id: str, entity_id: str) -> None:
        tx.execute(delete(Location).where(Location.id == entity_id, Location.year_id == year_id))


class OrmCollectionRepository(_OrmStore, CollectionRepository):
    def _fetch(self, tx: Session, year_id: str, entity_id: str) -> CollectionRecord | None:
        collection = tx.execute(
            select(Collection)
            .where(Collection.id == entity_id, Collection.year_id == year_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return _collection_record(collection) if collection is not None else None

    def _fetch_any(self, tx: Session, collection_id: str) -> CollectionRecord | None:
        collection = tx.execute(
            select(Collection)
            .where(Collection.id == collection_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return _collection_record(collection) if collection is not None else None

    def _list(self, tx: Session, year_id: str) -> list[CollectionRecord]:
        collections = tx.execute(
            select(Collection)
            .where(Collection.year_id == year_id)
            .execution_options(populate_existing=True)
        ).scalars()
        return [_collection_record(collection) for collection in collections]

    def _slug_taken(self, tx: Session, year_id: str, slug: str, exclude_id: str | None) -> bool:
        stmt = select(Collection.id).where(Collection.year_id == year_id, Collection.slug == slug)
        if exclude_id:
            stmt = stmt.where(Collection.id != exclude_id)
        return tx.execute(stmt.limit(1)).first() is not None

    def _order_indices(self, tx: Session, year_id: str) -> list[str]:
        return list(tx.execute(select(Collection.order_index).where(Collection.year_id == year_id)).scalars())

    def _location_year(self, tx: Session, location_id: str) -> str | None:
        return tx.execute(select(Location.year_id).where(Location.id == location_id)).scalar_one_or_none()

    def _insert(self, tx: Session, values: dict[str, Any]) -> None:
        tx.add(Collection(**values))
        tx.flush()

    def _update(self, tx: Session, year_id: str, entity_id: str, values: dict[str, Any]) -> None:
        tx.execute(
            update(Collection)
            .where(Collection.id == entity_id, Collection.year_id == year_id)
            .values(**values)
        )

    def _delete(self, tx: Session, year_id: str, entity_id: str) -> None:
        tx.execute(delete(Collection).where(Collection.id == entity_id, Collection.year_id == year_id))


class OrmAssetLinkRepository(_OrmStore, AssetLinkRepository):
    def _links(self, tx: Session, collection_id: str) -> list[AssetLinkRecord]:
        links = tx.execute(
            select(CollectionAsset)
            .where(CollectionAsset.collection_id == collection_id)
            .execution_options(populate_existing=True)
        ).scalars()
        return [_link_record(link) for link in links]

    def _collection_year(self, tx: Session, collection_id: str) -> str | None:
        return tx.execute(select(Collection.year_id).where(Collection.id == collection_id)).scalar_one_or_none()

    def _asset_exists(self, tx: Session, asset_id: str) -> bool:
        return tx.get(Asset, asset_id) is not None

    def _insert_asset(self, tx: Session, values: dict[str, Any]) -> None:
        tx.add(Asset(**values))
        tx.flush()

    def _insert_link(self, tx: Session, values: dict[str, Any]) -> None:
        tx.add(CollectionAsset(**values))
        tx.flush()

    def _delete_link(self, tx: Session, collection_id: str, asset_id: str) -> None:
        tx.execute(
            delete(CollectionAsset).where(
                CollectionAsset.collection_id == collection_id,
                CollectionAsset.asset_id == asset_id,
            )
        )

    def _write_link_index(self, tx: Session, collection_id: str, asset_id: str, order_index: str) -> None:
        tx.execute(
            update(CollectionAsset)
            .where(
                CollectionAsset.collection_id == collection_id,
                CollectionAsset.asset_id == asset_id,
            )
            .values(order_index=order_index)
        )


class OrmAuditLogStore(AuditLogStore):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

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
        with session_scope(self._session_factory) as db:
            db.add(
                AuditLog(
                    actor=actor,
                    actor_type=actor_type,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    action=action,
                    payload=payload,
                    created_at=utcnow(),
                )
            )

    def _select(
        self,
        entity_type: str | None,
        entity_id: str | None,
        action: str | None,
        limit: int,
        offset: int,
    ) -> list[AuditEntryRecord]:
        stmt = select(AuditLog)
        if entity_type:
            stmt = stmt.where(AuditLog.entity_type == entity_type)
        if entity_id:
            stmt = stmt.where(AuditLog.entity_id == entity_id)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).offset(offset)

        with session_scope(self._session_factory) as db:
            rows = db.execute(stmt).scalars().all()
            return [
                AuditEntryRecord(
                    id=row.id,
                    actor=row.actor,
                    actor_type=row.actor_type,
                    entity_type=row.entity_type,
                    entity_id=row.entity_id,
                    action=row.action,
                    payload=row.payload,
                    created_at=utc_iso(row.created_at),
                )
                for row in rows
            ]
