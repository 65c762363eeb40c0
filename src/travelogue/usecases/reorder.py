"""
Reorder usecase.

Rewrites the order indices of one whole sibling set to ``"1.0", "2.0", ...``
in the order the editor dropped them. The id list must be an exact
permutation of the current siblings; anything else is rejected before a
single row is written. All writes share one unit of work, so a failure
part-way leaves every index as it was.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..domain.ordering import sequential_reindex
from ..infra.exceptions import ValidationError
from ..repositories.base import SYSTEM_ACTOR, SiblingStore, utcnow
from ..shared.types import AuditAction, MoveDirection


def _check_ids(ordered_ids: Any) -> list[str]:
    if not isinstance(ordered_ids, (list, tuple)) or not ordered_ids:
        raise ValidationError("orderedIds must be a non-empty list of ids.", field="orderedIds")
    if not all(isinstance(entity_id, str) and entity_id.strip() for entity_id in ordered_ids):
        raise ValidationError("orderedIds must contain only non-empty ids.", field="orderedIds")
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValidationError("orderedIds must not contain duplicates.", field="orderedIds")
    return list(ordered_ids)


class ReorderCoordinator:
    """Applies a full reorder to any sibling store (locations, collections, asset links)."""

    def __init__(self, store: SiblingStore):
        self._store = store

    def reorder(
        self, parent_id: str, ordered_ids: Sequence[str], *, actor: str = SYSTEM_ACTOR
    ) -> list[Any]:
        ids = _check_ids(ordered_ids)

        with self._store.unit_of_work() as tx:
            current = self._store.sibling_ids(tx, parent_id)
            if set(current) != set(ids) or len(current) != len(ids):
                raise ValidationError(
                    "orderedIds must contain every sibling exactly once.", field="orderedIds"
                )
            now = utcnow()
            for entity_id, order_index in sequential_reindex(ids).items():
                self._store.write_order_index(tx, parent_id, entity_id, order_index, now)

        self._store.emit(
            AuditAction.SORT,
            parent_id,
            self._store.year_of(parent_id),
            actor,
            {"orderedIds": ids},
        )
        return self._store.list_siblings(parent_id)

    def move(
        self,
        parent_id: str,
        entity_id: str,
        direction: MoveDirection | str,
        *,
        actor: str = SYSTEM_ACTOR,
    ) -> list[Any]:
        """Swap one sibling with its neighbour; a move past either end changes nothing."""
        direction = MoveDirection(direction)
        with self._store.unit_of_work() as tx:
            ids = self._store.sibling_ids(tx, parent_id)
        if entity_id not in ids:
            raise ValidationError("Entity is not part of this set.", field="id")

        position = ids.index(entity_id)
        target = position - 1 if direction is MoveDirection.UP else position + 1
        if target < 0 or target >= len(ids):
            return self._store.list_siblings(parent_id)

        ids[position], ids[target] = ids[target], ids[position]
        return self.reorder(parent_id, ids, actor=actor)
