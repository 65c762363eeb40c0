"""
Catalog usecases.

``CatalogService`` is what the HTTP routes and CLI commands call. It resolves
the Year named in a request (by id or label), delegates to the repositories of
the selected backend, and serves list reads through the tagged read cache so
that an invalidated tag is observable on the next read.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..infra.backend import Backend
from ..infra.cache import CacheTags, TaggedCache
from ..infra.exceptions import NotFoundError, ValidationError
from ..shared.schemas import (
    AssetLinkRecord,
    AuditEntryRecord,
    CollectionRecord,
    LocationRecord,
    UpdateResult,
    YearRecord,
)
from ..shared.types import MoveDirection, PublishStatus
from .reorder import ReorderCoordinator


class CatalogService:
    def __init__(self, backend: Backend, cache: TaggedCache | None = None, *, default_actor: str = "system"):
        self.backend = backend
        self.cache = cache if cache is not None else TaggedCache()
        self.default_actor = default_actor
        self._location_order = ReorderCoordinator(backend.locations)
        self._collection_order = ReorderCoordinator(backend.collections)
        self._asset_order = ReorderCoordinator(backend.assets)

    def _actor(self, actor: str | None) -> str:
        return actor or self.default_actor

    # ------------------------------------------------------------------
    # Years
    # ------------------------------------------------------------------

    def resolve_year(self, identifier: str | None) -> YearRecord:
        if not identifier or not str(identifier).strip():
            raise NotFoundError("Year not found.")
        return self.backend.years.find_by_identifier(str(identifier).strip())

    def list_years(self) -> list[YearRecord]:
        return list(self.cache.get_or_load("years", [CacheTags.YEARS], self.backend.years.list_years))

    def create_year(
        self, label: str, status: PublishStatus | str = PublishStatus.DRAFT, *, actor: str | None = None
    ) -> YearRecord:
        return self.backend.years.create(label, status, actor=self._actor(actor))

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    def list_locations(self, year_identifier: str) -> list[LocationRecord]:
        year = self.resolve_year(year_identifier)
        return list(
            self.cache.get_or_load(
                f"locations:{year.id}",
                [CacheTags.year(year.id), CacheTags.locations_for_year(year.id)],
                lambda: self.backend.locations.list_for_year(year.id),
            )
        )

    def get_location(self, year_identifier: str, location_id: str) -> LocationRecord:
        year = self.resolve_year(year_identifier)
        return self.backend.locations.get(year.id, location_id)

    def create_location(
        self, year_identifier: str, draft: Mapping[str, Any], *, actor: str | None = None
    ) -> LocationRecord:
        year = self.resolve_year(year_identifier)
        return self.backend.locations.create(year.id, draft, actor=self._actor(actor))

    def update_location(
        self,
        year_identifier: str,
        location_id: str | None,
        patch: Mapping[str, Any],
        *,
        actor: str | None = None,
    ) -> UpdateResult[LocationRecord]:
        year = self.resolve_year(year_identifier)
        if not location_id:
            raise ValidationError("Location id is required.", field="id")
        return self.backend.locations.update(year.id, location_id, patch, actor=self._actor(actor))

    def delete_location(
        self, year_identifier: str, location_id: str | None, *, actor: str | None = None
    ) -> LocationRecord:
        year = self.resolve_year(year_identifier)
        if not location_id:
            raise ValidationError("Location id is required.", field="id")
        return self.backend.locations.delete(year.id, location_id, actor=self._actor(actor))

    def reorder_locations(
        self, year_identifier: str, ordered_ids: Sequence[str], *, actor: str | None = None
    ) -> list[LocationRecord]:
        year = self.resolve_year(year_identifier)
        return self._location_order.reorder(year.id, ordered_ids, actor=self._actor(actor))

    def reorder_locations_via(
        self,
        location_id: str,
        year_identifier: str | None,
        ordered_ids: Sequence[str],
        *,
        actor: str | None = None,
    ) -> list[LocationRecord]:
        """Reorder the Year that ``location_id`` belongs to.

        The caller names the Year too; an unknown location is ``NOT_FOUND`` and
        a location from another Year is rejected on field ``yearId``.
        """
        if not location_id or not location_id.strip():
            raise ValidationError("Location id is required.", field="locationId")
        year = self.resolve_year(year_identifier)
        location = self.backend.locations.find(location_id)
        if location.year_id != year.id:
            raise ValidationError("Location does not belong to the given year.", field="yearId")
        return self._location_order.reorder(year.id, ordered_ids, actor=self._actor(actor))

    def move_location(
        self,
        year_identifier: str,
        location_id: str,
        direction: MoveDirection | str,
        *,
        actor: str | None = None,
    ) -> list[LocationRecord]:
        year = self.resolve_year(year_identifier)
        return self._location_order.move(year.id, location_id, direction, actor=self._actor(actor))

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def list_collections(self, year_identifier: str) -> list[CollectionRecord]:
        year = self.resolve_year(year_identifier)
        return list(
            self.cache.get_or_load(
                f"collections:{year.id}",
                [CacheTags.COLLECTIONS, CacheTags.year(year.id), CacheTags.collections_for_year(year.id)],
                lambda: self.backend.collections.list_for_year(year.id),
            )
        )

    def get_collection(self, collection_id: str) -> CollectionRecord:
        return self.backend.collections.find(collection_id)

    def create_collection(
        self, year_identifier: str, draft: Mapping[str, Any], *, actor: str | None = None
    ) -> CollectionRecord:
        year = self.resolve_year(year_identifier)
        return self.backend.collections.create(year.id, draft, actor=self._actor(actor))

    def update_collection(
        self,
        year_identifier: str,
        collection_id: str | None,
        patch: Mapping[str, Any],
        *,
        actor: str | None = None,
    ) -> UpdateResult[CollectionRecord]:
        year = self.resolve_year(year_identifier)
        if not collection_id:
            raise ValidationError("Collection id is required.", field="id")
        return self.backend.collections.update(year.id, collection_id, patch, actor=self._actor(actor))

    def delete_collection(
        self, year_identifier: str, collection_id: str | None, *, actor: str | None = None
    ) -> CollectionRecord:
        year = self.resolve_year(year_identifier)
        if not collection_id:
            raise ValidationError("Collection id is required.", field="id")
        return self.backend.collections.delete(year.id, collection_id, actor=self._actor(actor))

    def reorder_collections(
        self, year_identifier: str, ordered_ids: Sequence[str], *, actor: str | None = None
    ) -> list[CollectionRecord]:
        year = self.resolve_year(year_identifier)
        return self._collection_order.reorder(year.id, ordered_ids, actor=self._actor(actor))

    def move_collection(
        self,
        year_identifier: str,
        collection_id: str,
        direction: MoveDirection | str,
        *,
        actor: str | None = None,
    ) -> list[CollectionRecord]:
        year = self.resolve_year(year_identifier)
        return self._collection_order.move(year.id, collection_id, direction, actor=self._actor(actor))

    def assign_collection_location(
        self, collection_id: str, location_id: str | None, *, actor: str | None = None
    ) -> tuple[CollectionRecord, str | None]:
        return self.backend.collections.assign_location(collection_id, location_id, actor=self._actor(actor))

    # ------------------------------------------------------------------
    # Collection assets
    # ------------------------------------------------------------------

    def register_asset(self, filename: str, *, asset_id: str | None = None) -> str:
        return self.backend.assets.register_asset(filename, asset_id=asset_id)

    def list_collection_assets(self, collection_id: str) -> list[AssetLinkRecord]:
        return list(
            self.cache.get_or_load(
                f"assets:{collection_id}",
                [CacheTags.collection(collection_id), CacheTags.assets_for_collection(collection_id)],
                lambda: self.backend.assets.list_assets(collection_id),
            )
        )

    def attach_asset(
        self,
        collection_id: str,
        asset_id: str,
        after_asset_id: str | None = None,
        *,
        actor: str | None = None,
    ) -> AssetLinkRecord:
        return self.backend.assets.attach_asset(
            collection_id, asset_id, after_asset_id, actor=self._actor(actor)
        )

    def detach_asset(self, collection_id: str, asset_id: str, *, actor: str | None = None) -> AssetLinkRecord:
        return self.backend.assets.detach_asset(collection_id, asset_id, actor=self._actor(actor))

    def reorder_collection_assets(
        self, collection_id: str, ordered_ids: Sequence[str], *, actor: str | None = None
    ) -> list[AssetLinkRecord]:
        return self._asset_order.reorder(collection_id, ordered_ids, actor=self._actor(actor))

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def audit_entries(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        action: str | None = None,
        limit: int | None = 50,
        offset: int = 0,
    ) -> list[AuditEntryRecord]:
        return self.backend.audit_log.query(entity_type, entity_id, action, limit, offset)
