"""
Location repository contract.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from functools import partial
from typing import Any

from ..domain.slugs import normalize_location_slug, normalize_optional_text, normalize_required_text, parse_order_index
from ..infra.exceptions import HasCollectionsError, NotFoundError
from ..shared.schemas import LocationRecord
from ..shared.types import EntityType
from .base import FieldSpec, OrderedEntityRepository

_normalize_name = partial(normalize_required_text, field="name", message="Name is required.")


class LocationRepository(OrderedEntityRepository[LocationRecord]):
    """Locations of one Year, each carrying its live collection count."""

    entity_type = EntityType.LOCATION
    not_found_message = "Location not found."
    fields = (
        FieldSpec("name", "name", _normalize_name),
        FieldSpec("slug", "slug", normalize_location_slug),
        FieldSpec("summary", "summary", normalize_optional_text),
        FieldSpec("coverAssetId", "cover_asset_id", normalize_optional_text),
        FieldSpec("orderIndex", "order_index", partial(parse_order_index, required=True)),
    )

    @abstractmethod
    def _fetch_any(self, tx: Any, location_id: str) -> LocationRecord | None:
        """Location by id regardless of Year."""
        raise NotImplementedError

    def _values_for_create(self, draft: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "name": _normalize_name(draft.get("name")),
            "slug": normalize_location_slug(draft.get("slug")),
            "summary": normalize_optional_text(draft.get("summary")),
            "cover_asset_id": normalize_optional_text(draft.get("coverAssetId")),
        }

    def find(self, location_id: str) -> LocationRecord:
        with self.unit_of_work() as tx:
            record = self._fetch_any(tx, location_id)
        if record is None:
            raise NotFoundError(self.not_found_message)
        return record

    def _check_delete(self, existing: LocationRecord) -> None:
        if existing.collection_count > 0:
            raise HasCollectionsError(
                "Cannot delete a location while collections still reference it. "
                "Reassign or remove those collections first."
            )
