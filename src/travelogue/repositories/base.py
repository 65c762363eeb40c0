"""
Shared repository flow for ordered catalog entities.

``OrderedEntityRepository`` owns everything that must behave identically on
both storage backends: input normalization, slug uniqueness, order index
allocation, change detection, error taxonomy, timestamp normalization and
event emission. A backend subclass only supplies the storage primitives
(``unit_of_work`` and the underscore methods) for one table.
"""

from __future__ import annotations

import uuid as uuid_module
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from ..domain.events import EntityChanged, EventBus
from ..domain.ordering import last_index, next_append_index, order_key
from ..domain.slugs import ensure_unique, parse_order_index
from ..infra.exceptions import ConflictError, NotFoundError, ValidationError
from ..shared.schemas import UpdateResult
from ..shared.types import ActorType, AuditAction, EntityType

RecordT = TypeVar("RecordT", bound=BaseModel)

SYSTEM_ACTOR = "system"


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid_module.uuid4())


def utc_iso(value: datetime | str | None) -> str | None:
    """Normalize a backend timestamp to ISO-8601 UTC with a ``Z`` suffix.

    Naive datetimes (SQLite drops the offset) are taken to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def actor_type_for(actor: str) -> ActorType:
    return ActorType.SYSTEM if actor == SYSTEM_ACTOR else ActorType.USER


@dataclass(frozen=True)
class FieldSpec:
    """An editable field: draft key, storage column, and its normalizer."""

    key: str
    column: str
    normalize: Callable[[Any], Any]


class SiblingStore(ABC):
    """Storage for one ordered sibling set, as seen by the reorder coordinator."""

    entity_type: EntityType
    events: EventBus

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[Any]:
        """Open one transaction; commit on clean exit, roll back on error."""
        raise NotImplementedError

    @abstractmethod
    def sibling_ids(self, tx: Any, parent_id: str) -> list[str]:
        """Current sibling ids under ``parent_id`` in display order."""
        raise NotImplementedError

    @abstractmethod
    def write_order_index(
        self, tx: Any, parent_id: str, entity_id: str, order_index: str, now: datetime
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_siblings(self, parent_id: str) -> list[Any]:
        raise NotImplementedError

    def year_of(self, parent_id: str) -> str | None:
        """Year that owns the sibling set, used to scope cache tags."""
        return parent_id

    def emit(
        self,
        action: AuditAction,
        entity_id: str,
        year_id: str | None,
        actor: str,
        payload: Mapping[str, Any] | None = None,
    ) -> None:
        self.events.publish(
            EntityChanged(
                entity_type=self.entity_type,
                entity_id=entity_id,
                action=action,
                year_id=year_id,
                actor=actor,
                actor_type=actor_type_for(actor),
                payload=dict(payload or {}),
            )
        )


class OrderedEntityRepository(SiblingStore, Generic[RecordT]):
    """Create/read/update/delete for an entity ordered within its Year."""

    not_found_message = "Entity not found."
    slug_conflict_message = "Slug is already in use, please choose another."
    # Backend-specific unique-violation exceptions, translated to CONFLICT on slug.
    integrity_errors: tuple[type[BaseException], ...] = ()
    fields: tuple[FieldSpec, ...] = ()

    def __init__(self, events: EventBus | None = None):
        self.events = events or EventBus()

    # ------------------------------------------------------------------
    # Storage primitives supplied by each backend
    # ------------------------------------------------------------------

    @abstractmethod
    def _fetch(self, tx: Any, year_id: str, entity_id: str) -> RecordT | None:
        raise NotImplementedError

    @abstractmethod
    def _list(self, tx: Any, year_id: str) -> list[RecordT]:
        raise NotImplementedError

    @abstractmethod
    def _slug_taken(self, tx: Any, year_id: str, slug: str, exclude_id: str | None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def _order_indices(self, tx: Any, year_id: str) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def _insert(self, tx: Any, values: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def _update(self, tx: Any, year_id: str, entity_id: str, values: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def _delete(self, tx: Any, year_id: str, entity_id: str) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Entity hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _values_for_create(self, draft: Mapping[str, Any]) -> dict[str, Any]:
        """Validated column values for a new row, excluding id, order and timestamps."""
        raise NotImplementedError

    def _check_value(
        self, tx: Any, year_id: str, column: str, value: Any, exclude_id: str | None
    ) -> None:
        """Checks that need storage access, run for each new or changed value."""
        if column == "slug":
            ensure_unique(partial(self._slug_taken, tx), year_id, value, exclude_id)

    def _before_update(self, existing: RecordT, values: dict[str, Any], now: datetime) -> None:
        pass

    def _check_delete(self, existing: RecordT) -> None:
        pass

    def _audit_ref(self, record: RecordT) -> dict[str, Any]:
        return {"yearId": getattr(record, "year_id", None), "slug": getattr(record, "slug", None)}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_for_year(self, year_id: str) -> list[RecordT]:
        with self.unit_of_work() as tx:
            records = self._list(tx, year_id)
        return sorted(records, key=lambda record: order_key(record.order_index))

    def get(self, year_id: str, entity_id: str) -> RecordT:
        with self.unit_of_work() as tx:
            record = self._fetch(tx, year_id, entity_id)
        if record is None:
            raise NotFoundError(self.not_found_message)
        return record

    def last_order_index(self, tx: Any, year_id: str) -> str | None:
        return last_index(self._order_indices(tx, year_id))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, year_id: str, draft: Mapping[str, Any], *, actor: str = SYSTEM_ACTOR) -> RecordT:
        values = self._values_for_create(draft)
        order_index = parse_order_index(draft.get("orderIndex"), required=False)
        try:
            with self.unit_of_work() as tx:
                for column, value in values.items():
                    self._check_value(tx, year_id, column, value, None)
                if order_index is None:
                    # Read-then-write with no lock: two concurrent creates can both
                    # read the same last index and store the same next index.
                    order_index = next_append_index(self.last_order_index(tx, year_id))
                now = utcnow()
                entity_id = new_id()
                self._insert(
                    tx,
                    {
                        **values,
                        "id": entity_id,
                        "year_id": year_id,
                        "order_index": order_index,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
                created = self._fetch(tx, year_id, entity_id)
        except self.integrity_errors as exc:
            raise ConflictError(self.slug_conflict_message, field="slug") from exc

        if created is None:
            raise NotFoundError(self.not_found_message)
        self.emit(AuditAction.CREATE, created.id, year_id, actor, self._audit_ref(created))
        return created

    def update(
        self,
        year_id: str,
        entity_id: str,
        patch: Mapping[str, Any],
        *,
        actor: str = SYSTEM_ACTOR,
    ) -> UpdateResult[RecordT]:
        try:
            with self.unit_of_work() as tx:
                existing = self._fetch(tx, year_id, entity_id)
                if existing is None:
                    raise NotFoundError(self.not_found_message)

                values: dict[str, Any] = {}
                changes: dict[str, Any] = {}
                for spec in self.fields:
                    if spec.key not in patch:
                        continue
                    value = spec.normalize(patch[spec.key])
                    if value == getattr(existing, spec.column):
                        continue
                    self._check_value(tx, year_id, spec.column, value, entity_id)
                    values[spec.column] = value
                    changes[spec.key] = value.value if hasattr(value, "value") else value

                if not values:
                    raise ValidationError("Provide at least one field that changes.")

                now = utcnow()
                self._before_update(existing, values, now)
                values["updated_at"] = now
                self._update(tx, year_id, entity_id, values)
                updated = self._fetch(tx, year_id, entity_id)
        except self.integrity_errors as exc:
            raise ConflictError(self.slug_conflict_message, field="slug") from exc

        if updated is None:
            raise NotFoundError(self.not_found_message)
        self.emit(AuditAction.EDIT, entity_id, year_id, actor, changes)
        return UpdateResult(record=updated, changes=changes)

    def delete(self, year_id: str, entity_id: str, *, actor: str = SYSTEM_ACTOR) -> RecordT:
        with self.unit_of_work() as tx:
            existing = self._fetch(tx, year_id, entity_id)
            if existing is None:
                raise NotFoundError(self.not_found_message)
            self._check_delete(existing)
            self._delete(tx, year_id, entity_id)

        self.emit(AuditAction.DELETE, entity_id, year_id, actor, self._audit_ref(existing))
        return existing

    # ------------------------------------------------------------------
    # Sibling store
    # ------------------------------------------------------------------

    def sibling_ids(self, tx: Any, parent_id: str) -> list[str]:
        records = sorted(self._list(tx, parent_id), key=lambda record: order_key(record.order_index))
        return [record.id for record in records]

    def write_order_index(
        self, tx: Any, parent_id: str, entity_id: str, order_index: str, now: datetime
    ) -> None:
        self._update(tx, parent_id, entity_id, {"order_index": order_index, "updated_at": now})

    def list_siblings(self, parent_id: str) -> list[RecordT]:
        return self.list_for_year(parent_id)
