"""
Audit log store contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..shared.schemas import AuditEntryRecord

MAX_QUERY_LIMIT = 100
DEFAULT_QUERY_LIMIT = 50


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_QUERY_LIMIT
    return max(1, min(MAX_QUERY_LIMIT, int(limit)))


class AuditLogStore(ABC):
    """Append-only audit trail."""

    @abstractmethod
    def append(
        self,
        *,
        actor: str,
        actor_type: str,
        entity_type: str,
        entity_id: str,
        action: str,
        payload: dict[str, Any] | None,
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def _select(
        self,
        entity_type: str | None,
        entity_id: str | None,
        action: str | None,
        limit: int,
        offset: int,
    ) -> list[AuditEntryRecord]:
        raise NotImplementedError

    def query(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        action: str | None = None,
        limit: int | None = DEFAULT_QUERY_LIMIT,
        offset: int = 0,
    ) -> list[AuditEntryRecord]:
        """Newest entries first; ``limit`` is clamped to 1..100."""
        return self._select(entity_type, entity_id, action, clamp_limit(limit), max(0, int(offset)))
