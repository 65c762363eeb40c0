"""
Derived read cache and tag-based invalidation.

``TaggedCache`` holds rendered list reads keyed by string and labelled with
tags. ``CacheInvalidator`` subscribes to entity change events, works out the
affected tags and purges them with retry. Purging is best-effort: a tag that
still fails after every attempt is logged and reported, never raised, and the
committed mutation stands.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from ..domain.events import EntityChanged
from ..shared.types import ActorType, AuditAction, EntityType
from .logging import get_logger

if TYPE_CHECKING:
    from .audit import AuditRecorder

T = TypeVar("T")

_log = get_logger(__name__)


class CacheTags:
    """Tag vocabulary shared by cache readers and the invalidator."""

    YEARS = "years"
    COLLECTIONS = "collections"

    @staticmethod
    def year(year_id: str) -> str:
        return f"year:{year_id}"

    @staticmethod
    def locations_for_year(year_id: str) -> str:
        return f"locations:year:{year_id}"

    @staticmethod
    def collections_for_year(year_id: str) -> str:
        return f"collections:year:{year_id}"

    @staticmethod
    def location(location_id: str) -> str:
        return f"location:{location_id}"

    @staticmethod
    def collection(collection_id: str) -> str:
        return f"collection:{collection_id}"

    @staticmethod
    def assets_for_collection(collection_id: str) -> str:
        return f"assets:collection:{collection_id}"

    @classmethod
    def for_event(cls, event: EntityChanged) -> list[str]:
        """Tags made stale by ``event``.

        Sort events carry the parent id as ``entity_id``, so they only touch
        parent-scoped tags.
        """
        tags: list[str] = []
        year_id = event.year_id
        sorted_set = event.action is AuditAction.SORT

        if event.entity_type is EntityType.YEAR:
            tags.append(cls.YEARS)
            if not sorted_set:
                tags.append(cls.year(event.entity_id))
        elif event.entity_type is EntityType.LOCATION:
            if year_id:
                tags += [cls.year(year_id), cls.locations_for_year(year_id)]
            if not sorted_set:
                tags.append(cls.location(event.entity_id))
        elif event.entity_type is EntityType.COLLECTION:
            tags.append(cls.COLLECTIONS)
            if year_id:
                tags += [cls.year(year_id), cls.collections_for_year(year_id)]
            if not sorted_set:
                tags.append(cls.collection(event.entity_id))
            location_id = event.payload.get("locationId")
            previous_id = event.payload.get("previousLocationId")
            for affected in (location_id, previous_id):
                if affected:
                    tags.append(cls.location(affected))
            if (location_id or previous_id) and year_id:
                tags.append(cls.locations_for_year(year_id))
        elif event.entity_type is EntityType.COLLECTION_ASSET:
            tags += [cls.collection(event.entity_id), cls.assets_for_collection(event.entity_id)]
            if year_id:
                tags.append(cls.collections_for_year(year_id))

        return list(dict.fromkeys(tags))


class TaggedCache:
    """Thread-safe in-process cache whose entries can be dropped by tag."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._keys_by_tag: dict[str, set[str]] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def get_or_load(self, key: str, tags: Iterable[str], loader: Callable[[], T]) -> T:
        """Return the cached value for ``key`` or load it.

        A loaded value is only stored when none of its tags was invalidated
        while ``loader`` ran; otherwise it is returned uncached.
        """
        tags = list(tags)
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            seen = self._stamp(tags)

        value = loader()
        with self._lock:
            if self._stamp(tags) != seen:
                return value
            self._entries[key] = value
            for tag in tags:
                self._keys_by_tag.setdefault(tag, set()).add(key)
        return value

    def _stamp(self, tags: list[str]) -> tuple[int, list[int]]:
        return self._epoch, [self._generations.get(tag, 0) for tag in tags]

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def invalidate_tag(self, tag: str) -> int:
        """Drop every entry labelled ``tag``; returns how many were dropped."""
        with self._lock:
            self._generations[tag] = self._generations.get(tag, 0) + 1
            keys = self._keys_by_tag.pop(tag, set())
            for key in keys:
                self._entries.pop(key, None)
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._entries.clear()
            self._keys_by_tag.clear()


@dataclass
class InvalidationResult:
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class CacheInvalidator:
    """Purges cache tags with exponential-backoff retry.

    ``purge`` is called once per tag; any exception counts as a failed attempt.
    When an ``audit`` recorder is given, every tag that still fails after the
    last attempt also gets a ``revalidate`` audit entry on ``tag/<tag>``.
    """

    def __init__(
        self,
        purge: Callable[[str], Any],
        *,
        attempts: int = 3,
        base_delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
        audit: AuditRecorder | None = None,
    ):
        self._purge = purge
        self._attempts = max(1, attempts)
        self._base_delay = max(0.0, base_delay)
        self._sleep = sleep
        self._audit = audit

    def invalidate(self, tags: Iterable[str]) -> InvalidationResult:
        result = InvalidationResult()
        for tag in tags:
            error = self._purge_with_retry(tag)
            if error is None:
                result.succeeded.append(tag)
            else:
                result.failed.append(tag)
                self._audit_failure(tag, error)

        if result.failed:
            _log.warning(
                "cache_invalidation_failed",
                failed=result.failed,
                succeeded=len(result.succeeded),
            )
        else:
            _log.debug("cache_invalidated", tags=result.succeeded)
        return result

    def _purge_with_retry(self, tag: str) -> str | None:
        """Returns None on success, else the last error message."""
        error = None
        for attempt in range(1, self._attempts + 1):
            try:
                self._purge(tag)
                return None
            except Exception as exc:
                error = str(exc)
                _log.warning(
                    "cache_purge_attempt_failed",
                    tag=tag,
                    attempt=attempt,
                    attempts=self._attempts,
                    error=str(exc),
                )
                if attempt < self._attempts:
                    self._sleep(self._base_delay * (2 ** (attempt - 1)))
        return error

    def _audit_failure(self, tag: str, error: str) -> None:
        if self._audit is None:
            return
        self._audit.record(
            "system",
            AuditAction.REVALIDATE,
            f"tag/{tag}",
            {"outcome": "failed", "attempts": self._attempts, "error": error},
            actor_type=ActorType.SYSTEM,
        )

    def handle(self, event: EntityChanged) -> InvalidationResult:
        """Event bus subscriber."""
        return self.invalidate(CacheTags.for_event(event))
