"""
Domain entities for Travelogue.

Declarative SQLAlchemy models used by the ORM-backed backend and by Alembic.
The direct-SQL backend writes the same tables with hand-written statements
(see ``travelogue.infra.sqlite``), so column names here are the shared schema.
"""

from __future__ import annotations

import uuid as uuid_module
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..infra.db import Base
from ..shared.types import PublishStatus


def _new_id() -> str:
    return str(uuid_module.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


_status_enum = SQLEnum(
    PublishStatus,
    name="publish_status",
    native_enum=False,
    values_callable=lambda enum: [member.value for member in enum],
    length=16,
)


class Year(Base):
    """A catalog year; owns locations and collections."""

    __tablename__ = "years"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    label: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    order_index: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[PublishStatus] = mapped_column(
        _status_enum, nullable=False, default=PublishStatus.DRAFT
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    locations: Mapped[list[Location]] = relationship(
        "Location", back_populates="year", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Year(id={self.id}, label={self.label}, status={self.status})>"


class Location(Base):
    """A place visited within one year."""

    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint("year_id", "slug", name="uq_locations_year_slug"),
        Index("ix_locations_year_order", "year_id", "order_index"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    year_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("years.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_asset_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    order_index: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    year: Mapped[Year] = relationship("Year", back_populates="locations")
    collections: Mapped[list[Collection]] = relationship("Collection", back_populates="location")

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, year_id={self.year_id}, slug={self.slug}, order_index={self.order_index})>"


class Collection(Base):
    """A published gallery, optionally attached to a location."""

    __tablename__ = "collections"
    __table_args__ = (
        UniqueConstraint("year_id", "slug", name="uq_collections_year_slug"),
        Index("ix_collections_year_order", "year_id", "order_index"),
        Index("ix_collections_location", "location_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    year_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("years.id", ondelete="CASCADE"), nullable=False
    )
    location_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("locations.id", ondelete="RESTRICT"), nullable=True
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_asset_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    status: Mapped[PublishStatus] = mapped_column(
        _status_enum, nullable=False, default=PublishStatus.DRAFT
    )
    order_index: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    location: Mapped[Location | None] = relationship("Location", back_populates="collections")
    asset_links: Mapped[list[CollectionAsset]] = relationship(
        "CollectionAsset", back_populates="collection", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Collection(id={self.id}, year_id={self.year_id}, slug={self.slug}, location_id={self.location_id})>"


class Asset(Base):
    """An uploaded content item. Upload and variants live outside this package."""

    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Asset(id={self.id}, filename={self.filename})>"


class CollectionAsset(Base):
    """Join row placing an asset inside a collection."""

    __tablename__ = "collection_assets"

    collection_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True
    )
    asset_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assets.id", ondelete="CASCADE"), primary_key=True
    )
    order_index: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    collection: Mapped[Collection] = relationship("Collection", back_populates="asset_links")

    def __repr__(self) -> str:
        return f"<CollectionAsset(collection_id={self.collection_id}, asset_id={self.asset_id}, order_index={self.order_index})>"


class AuditLog(Base):
    """Append-only audit trail entry."""

    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_logs_entity", "entity_type", "entity_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, entity={self.entity_type}/{self.entity_id}, action={self.action})>"
