"""
Year repository contract.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any

from ..domain.events import EventBus
from ..domain.ordering import last_index, next_append_index, order_key
from ..domain.slugs import normalize_required_text
from ..infra.exceptions import ConflictError, NotFoundError
from ..shared.schemas import YearRecord
from ..shared.types import AuditAction, EntityType, PublishStatus
from .base import SYSTEM_ACTOR, SiblingStore, new_id, utcnow


class YearRepository(SiblingStore):
    """Years are the top of the catalog; they are ordered among themselves."""

    entity_type = EntityType.YEAR
    integrity_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, events: EventBus | None = None):
        self.events = events or EventBus()

    @abstractmethod
    def _find(self, tx: Any, column: str, value: str) -> YearRecord | None:
        """Year where ``column`` (``id`` or ``label``) equals ``value``."""
        raise NotImplementedError

    @abstractmethod
    def _all(self, tx: Any) -> list[YearRecord]:
        raise NotImplementedError

    @abstractmethod
    def _insert(self, tx: Any, values: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def _write_index(self, tx: Any, year_id: str, order_index: str, now: Any) -> None:
        raise NotImplementedError

    def find_by_identifier(self, identifier: str) -> YearRecord:
        """Resolve a Year by id first, then by label (``"2024"``)."""
        with self.unit_of_work() as tx:
            year = self._find(tx, "id", identifier) or self._find(tx, "label", identifier)
        if year is None:
            raise NotFoundError("Year not found.")
        return year

    def list_years(self) -> list[YearRecord]:
        with self.unit_of_work() as tx:
            years = self._all(tx)
        return sorted(years, key=lambda year: order_key(year.order_index))

    def create(
        self,
        label: str,
        status: PublishStatus | str = PublishStatus.DRAFT,
        *,
        actor: str = SYSTEM_ACTOR,
    ) -> YearRecord:
        label = normalize_required_text(label, "label", "Label is required.")
        status = PublishStatus(status)
        try:
            with self.unit_of_work() as tx:
                if self._find(tx, "label", label) is not None:
                    raise ConflictError(f"Year {label} already exists.", field="label")
                order_index = next_append_index(last_index(year.order_index for year in self._all(tx)))
                now = utcnow()
                year_id = new_id()
                self._insert(
                    tx,
                    {
                        "id": year_id,
                        "label": label,
                        "order_index": order_index,
                        "status": status,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
                created = self._find(tx, "id", year_id)
        except self.integrity_errors as exc:
            raise ConflictError(f"Year {label} already exists.", field="label") from exc

        self.emit(AuditAction.CREATE, year_id, year_id, actor, {"label": label})
        return created

    # Sibling store: all years form one set; ``parent_id`` is ignored.

    def sibling_ids(self, tx: Any, parent_id: str) -> list[str]:
        return [year.id for year in sorted(self._all(tx), key=lambda year: order_key(year.order_index))]

    def write_order_index(self, tx: Any, parent_id: str, entity_id: str, order_index: str, now: Any) -> None:
        self._write_index(tx, entity_id, order_index, now)

    def list_siblings(self, parent_id: str) -> list[YearRecord]:
        return self.list_years()

    def year_of(self, parent_id: str) -> str | None:
        return None
