"""
Pydantic schemas for repository records and API serialization.

Records are what both storage backends hand back across the repository
boundary, so their timestamps are always ISO-8601 UTC strings regardless of
how the backend stored them. Payloads are HTTP request bodies; they keep every
field optional so that presence (``model_fields_set``) drives partial updates
and the repositories own the real validation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .types import PublishStatus


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Records
class YearRecord(CamelModel):
    id: str
    label: str
    order_index: str
    status: PublishStatus
    created_at: str
    updated_at: str


class LocationRecord(CamelModel):
    """A Location annotated with its live dependent-collection count."""

    id: str
    year_id: str
    name: str
    slug: str
    summary: str | None = None
    cover_asset_id: str | None = None
    order_index: str
    created_at: str
    updated_at: str
    collection_count: int = 0


class CollectionRecord(CamelModel):
    id: str
    year_id: str
    location_id: str | None = None
    slug: str
    title: str
    summary: str | None = None
    cover_asset_id: str | None = None
    status: PublishStatus = PublishStatus.DRAFT
    order_index: str
    version: int = 1
    published_at: str | None = None
    created_at: str
    updated_at: str


class AssetLinkRecord(CamelModel):
    """An asset's position inside one collection."""

    collection_id: str
    asset_id: str
    order_index: str
    created_at: str

    @property
    def id(self) -> str:
        return self.asset_id


class AuditEntryRecord(CamelModel):
    id: int
    actor: str
    actor_type: str
    entity_type: str
    entity_id: str
    action: str
    payload: dict[str, Any] | None = None
    created_at: str


RecordT = TypeVar("RecordT", bound=BaseModel)


@dataclass(frozen=True)
class UpdateResult(Generic[RecordT]):
    """Updated record plus only the fields that actually changed."""

    record: RecordT
    changes: dict[str, Any] = field(default_factory=dict)


# Request payloads
class YearPayload(CamelModel):
    label: str = Field(..., min_length=1, max_length=32)
    status: PublishStatus = PublishStatus.DRAFT


class LocationPayload(CamelModel):
    id: str | None = None
    name: str | None = None
    slug: str | None = None
    summary: str | None = None
    cover_asset_id: str | None = None
    order_index: str | None = None


class CollectionPayload(CamelModel):
    id: str | None = None
    title: str | None = None
    slug: str | None = None
    summary: str | None = None
    cover_asset_id: str | None = None
    location_id: str | None = None
    status: str | None = None
    order_index: str | None = None


class ReorderPayload(CamelModel):
    year_id: str | None = None
    ordered_ids: list[str]


class AssignLocationPayload(CamelModel):
    location_id: str | None = None


class AttachAssetPayload(CamelModel):
    asset_id: str
    after_asset_id: str | None = None


def draft_from_payload(payload: CamelModel) -> dict[str, Any]:
    """Return only the keys the client actually sent, camelCased, without ``id``."""
    return payload.model_dump(by_alias=True, exclude_unset=True, exclude={"id"})
