"""
Collection repository contract and the collection asset links.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from datetime import datetime
from functools import partial
from typing import Any

from ..domain.events import EventBus
from ..domain.ordering import (
    OrderPrecisionExhausted,
    insert_between,
    last_index,
    next_append_index,
    order_key,
)
from ..domain.slugs import (
    COLLECTION_TITLE_MAX_LENGTH,
    normalize_collection_slug,
    normalize_optional_text,
    normalize_required_text,
    parse_order_index,
)
from ..infra.exceptions import ConflictError, NotFoundError, ValidationError
from ..shared.schemas import AssetLinkRecord, CollectionRecord
from ..shared.types import AuditAction, EntityType, PublishStatus
from .base import SYSTEM_ACTOR, FieldSpec, OrderedEntityRepository, SiblingStore, new_id, utcnow


def _normalize_title(value: Any) -> str:
    title = normalize_required_text(value, "title", "Title is required.")
    if len(title) > COLLECTION_TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must be {COLLECTION_TITLE_MAX_LENGTH} characters or fewer.", field="title"
        )
    return title


def _normalize_status(value: Any) -> PublishStatus:
    try:
        return PublishStatus(value)
    except ValueError:
        raise ValidationError("Status must be draft or published.", field="status") from None


class CollectionRepository(OrderedEntityRepository[CollectionRecord]):
    """Collections of one Year, optionally pinned to a Location of the same Year."""

    entity_type = EntityType.COLLECTION
    not_found_message = "Collection not found."
    fields = (
        FieldSpec("title", "title", _normalize_title),
        FieldSpec("slug", "slug", normalize_collection_slug),
        FieldSpec("summary", "summary", normalize_optional_text),
        FieldSpec("coverAssetId", "cover_asset_id", normalize_optional_text),
        FieldSpec("locationId", "location_id", normalize_optional_text),
        FieldSpec("status", "status", _normalize_status),
        FieldSpec("orderIndex", "order_index", partial(parse_order_index, required=True)),
    )

    @abstractmethod
    def _fetch_any(self, tx: Any, collection_id: str) -> CollectionRecord | None:
        """Collection by id regardless of Year."""
        raise NotImplementedError

    @abstractmethod
    def _location_year(self, tx: Any, location_id: str) -> str | None:
        """Year id owning ``location_id``, or ``None`` when it does not exist."""
        raise NotImplementedError

    def _values_for_create(self, draft: Mapping[str, Any]) -> dict[str, Any]:
        status = _normalize_status(draft.get("status") or PublishStatus.DRAFT.value)
        return {
            "title": _normalize_title(draft.get("title")),
            "slug": normalize_collection_slug(draft.get("slug")),
            "summary": normalize_optional_text(draft.get("summary")),
            "cover_asset_id": normalize_optional_text(draft.get("coverAssetId")),
            "location_id": normalize_optional_text(draft.get("locationId")),
            "status": status,
            "published_at": utcnow() if status is PublishStatus.PUBLISHED else None,
        }

    def _check_value(
        self, tx: Any, year_id: str, column: str, value: Any, exclude_id: str | None
    ) -> None:
        if column == "location_id" and value is not None:
            if self._location_year(tx, value) != year_id:
                raise ValidationError(
                    "Location must belong to the same year as the collection.", field="locationId"
                )
            return
        super()._check_value(tx, year_id, column, value, exclude_id)

    def _before_update(self, existing: CollectionRecord, values: dict[str, Any], now: datetime) -> None:
        if values.get("status") is PublishStatus.PUBLISHED and existing.published_at is None:
            values["published_at"] = now

    def find(self, collection_id: str) -> CollectionRecord:
        with self.unit_of_work() as tx:
            record = self._fetch_any(tx, collection_id)
        if record is None:
            raise NotFoundError(self.not_found_message)
        return record

    def assign_location(
        self, collection_id: str, location_id: str | None, *, actor: str = SYSTEM_ACTOR
    ) -> tuple[CollectionRecord, str | None]:
        """Attach a collection to a Location of its Year, or detach it with ``None``.

        Returns the updated record and the previous location id.
        """
        location_id = normalize_optional_text(location_id)
        with self.unit_of_work() as tx:
            existing = self._fetch_any(tx, collection_id)
            if existing is None:
                raise NotFoundError(self.not_found_message)
            previous = existing.location_id
            if location_id is not None:
                location_year = self._location_year(tx, location_id)
                if location_year is None:
                    raise NotFoundError("Location not found.", field="locationId")
                if location_year != existing.year_id:
                    raise ValidationError(
                        "Location must belong to the same year as the collection.", field="locationId"
                    )
            if location_id == previous:
                return existing, previous
            self._update(
                tx,
                existing.year_id,
                collection_id,
                {"location_id": location_id, "updated_at": utcnow()},
            )
            updated = self._fetch_any(tx, collection_id)

        self.emit(
            AuditAction.EDIT,
            collection_id,
            existing.year_id,
            actor,
            {"locationId": location_id, "previousLocationId": previous},
        )
        return updated, previous


class AssetLinkRepository(SiblingStore):
    """Ordered asset membership of collections; the sibling set is one collection."""

    entity_type = EntityType.COLLECTION_ASSET

    def __init__(self, events: EventBus | None = None):
        self.events = events or EventBus()

    @abstractmethod
    def _links(self, tx: Any, collection_id: str) -> list[AssetLinkRecord]:
        raise NotImplementedError

    @abstractmethod
    def _collection_year(self, tx: Any, collection_id: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def _asset_exists(self, tx: Any, asset_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def _insert_asset(self, tx: Any, values: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def _insert_link(self, tx: Any, values: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def _delete_link(self, tx: Any, collection_id: str, asset_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def _write_link_index(self, tx: Any, collection_id: str, asset_id: str, order_index: str) -> None:
        raise NotImplementedError

    def _ordered_links(self, tx: Any, collection_id: str) -> list[AssetLinkRecord]:
        return sorted(self._links(tx, collection_id), key=lambda link: order_key(link.order_index))

    def _require_collection(self, tx: Any, collection_id: str) -> str:
        year_id = self._collection_year(tx, collection_id)
        if year_id is None:
            raise NotFoundError("Collection not found.")
        return year_id

    def register_asset(self, filename: str, *, asset_id: str | None = None) -> str:
        """Record an uploaded asset so it can be placed in collections."""
        filename = normalize_required_text(filename, "filename", "Filename is required.")
        asset_id = asset_id or new_id()
        with self.unit_of_work() as tx:
            self._insert_asset(tx, {"id": asset_id, "filename": filename, "created_at": utcnow()})
        return asset_id

    def list_assets(self, collection_id: str) -> list[AssetLinkRecord]:
        with self.unit_of_work() as tx:
            self._require_collection(tx, collection_id)
            return self._ordered_links(tx, collection_id)

    def attach_asset(
        self,
        collection_id: str,
        asset_id: str,
        after_asset_id: str | None = None,
        *,
        actor: str = SYSTEM_ACTOR,
    ) -> AssetLinkRecord:
        """Place an asset at the end of a collection, or right after ``after_asset_id``."""
        with self.unit_of_work() as tx:
            year_id = self._require_collection(tx, collection_id)
            if not self._asset_exists(tx, asset_id):
                raise NotFoundError("Asset not found.", field="assetId")
            links = self._ordered_links(tx, collection_id)
            if any(link.asset_id == asset_id for link in links):
                raise ConflictError("Asset is already in this collection.", field="assetId")

            if after_asset_id is None:
                order_index = next_append_index(last_index(link.order_index for link in links))
            else:
                positions = [link.asset_id for link in links]
                if after_asset_id not in positions:
                    raise ValidationError("Anchor asset is not in this collection.", field="afterAssetId")
                position = positions.index(after_asset_id)
                if position == len(links) - 1:
                    order_index = next_append_index(links[position].order_index)
                else:
                    try:
                        order_index = insert_between(
                            links[position].order_index, links[position + 1].order_index
                        )
                    except OrderPrecisionExhausted:
                        raise ValidationError(
                            "No room left at this position; reorder the collection first.",
                            field="afterAssetId",
                        ) from None
                    except ValueError:
                        raise ValidationError(
                            "Neighbouring order indices are not numeric or not strictly increasing; "
                            "reorder the collection first.",
                            field="afterAssetId",
                        ) from None

            self._insert_link(
                tx,
                {
                    "collection_id": collection_id,
                    "asset_id": asset_id,
                    "order_index": order_index,
                    "created_at": utcnow(),
                },
            )
            created = next(link for link in self._links(tx, collection_id) if link.asset_id == asset_id)

        self.emit(
            AuditAction.CREATE,
            collection_id,
            year_id,
            actor,
            {"assetId": asset_id, "orderIndex": order_index},
        )
        return created

    def detach_asset(self, collection_id: str, asset_id: str, *, actor: str = SYSTEM_ACTOR) -> AssetLinkRecord:
        with self.unit_of_work() as tx:
            year_id = self._require_collection(tx, collection_id)
            existing = next(
                (link for link in self._links(tx, collection_id) if link.asset_id == asset_id), None
            )
            if existing is None:
                raise NotFoundError("Asset is not in this collection.", field="assetId")
            self._delete_link(tx, collection_id, asset_id)

        self.emit(AuditAction.DELETE, collection_id, year_id, actor, {"assetId": asset_id})
        return existing

    # Sibling store

    def sibling_ids(self, tx: Any, parent_id: str) -> list[str]:
        self._require_collection(tx, parent_id)
        return [link.asset_id for link in self._ordered_links(tx, parent_id)]

    def write_order_index(
        self, tx: Any, parent_id: str, entity_id: str, order_index: str, now: datetime
    ) -> None:
        self._write_link_index(tx, parent_id, entity_id, order_index)

    def list_siblings(self, parent_id: str) -> list[AssetLinkRecord]:
        return self.list_assets(parent_id)

    def year_of(self, parent_id: str) -> str | None:
        with self.unit_of_work() as tx:
            return self._collection_year(tx, parent_id)
