"""
Entity change events.

Repositories publish one ``EntityChanged`` per committed mutation. Cache
invalidation and audit recording subscribe to the bus, so the mutation path
does not depend on either being available: a failing handler is logged and
the next handler still runs.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from ..shared.types import ActorType, AuditAction, EntityType

_log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EntityChanged:
    entity_type: EntityType
    entity_id: str
    action: AuditAction
    year_id: str | None = None
    actor: str = "system"
    actor_type: ActorType = ActorType.SYSTEM
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def entity_ref(self) -> str:
        return f"{self.entity_type.value}/{self.entity_id}"


EventHandler = Callable[[EntityChanged], None]


class EventBus:
    """In-process publish/subscribe for ``EntityChanged``.

    With an ``executor`` each handler call is submitted and not awaited, so
    publishing never blocks the caller.
    """

    def __init__(self, executor: Executor | None = None):
        self._handlers: list[EventHandler] = []
        self._executor = executor

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def publish(self, event: EntityChanged) -> None:
        for handler in list(self._handlers):
            if self._executor is not None:
                self._executor.submit(self._dispatch, handler, event)
            else:
                self._dispatch(handler, event)

    @staticmethod
    def _dispatch(handler: EventHandler, event: EntityChanged) -> None:
        try:
            handler(event)
        except Exception:
            _log.exception(
                "event_handler_failed",
                handler=getattr(handler, "__qualname__", repr(handler)),
                entity=event.entity_ref,
                action=event.action.value,
            )
