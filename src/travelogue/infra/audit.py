"""
Audit recording.

Every committed mutation becomes one append-only ``audit_logs`` row plus one
structured ``audit`` log line. A failing write is logged and dropped; it never
reaches the caller of the mutation.
"""

from __future__ import annotations

from typing import Any

from ..domain.events import EntityChanged
from ..repositories.audit import AuditLogStore
from ..shared.types import ActorType, AuditAction
from .logging import get_logger

_log = get_logger(__name__)


class AuditRecorder:
    def __init__(self, store: AuditLogStore, *, default_actor: str = "system"):
        self._store = store
        self._default_actor = default_actor

    def record(
        self,
        actor: str | None,
        action: AuditAction | str,
        entity_ref: str,
        payload: dict[str, Any] | None = None,
        *,
        actor_type: ActorType | str | None = None,
    ) -> bool:
        """Append one entry for ``entity_ref`` (``"<entity_type>/<id>"``).

        Returns False when the entry could not be written.
        """
        actor = actor or self._default_actor
        action_value = action.value if isinstance(action, AuditAction) else str(action)
        if actor_type is None:
            actor_type = ActorType.SYSTEM if actor == "system" else ActorType.USER
        actor_type_value = actor_type.value if isinstance(actor_type, ActorType) else str(actor_type)
        entity_type, _, entity_id = entity_ref.partition("/")

        _log.info(
            "audit",
            actor=actor,
            actor_type=actor_type_value,
            action=action_value,
            entity=entity_ref,
            payload=payload,
        )
        try:
            self._store.append(
                actor=actor,
                actor_type=actor_type_value,
                entity_type=entity_type,
                entity_id=entity_id,
                action=action_value,
                payload=payload,
            )
        except Exception as exc:
            _log.error("audit_write_failed", entity=entity_ref, action=action_value, error=str(exc))
            return False
        return True

    def handle(self, event: EntityChanged) -> bool:
        """Event bus subscriber."""
        return self.record(
            event.actor,
            event.action,
            event.entity_ref,
            event.payload or None,
            actor_type=event.actor_type,
        )
