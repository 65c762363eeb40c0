"""
Process startup wiring.

``build_catalog`` is called once per process (by the FastAPI app factory or
the CLI) and returns everything a request needs: the selected backend, the
event bus with its cache and audit subscribers, and the catalog service.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .domain.events import EventBus
from .infra.audit import AuditRecorder
from .infra.backend import Backend, RuntimeConfig, select_backend
from .infra.cache import CacheInvalidator, TaggedCache
from .infra.logging import get_logger
from .infra.settings import Settings, load_settings
from .infra.sqlite import SqlDatabase
from .usecases.catalog import CatalogService


@dataclass
class Catalog:
    settings: Settings
    config: RuntimeConfig
    backend: Backend
    events: EventBus
    cache: TaggedCache
    invalidator: CacheInvalidator
    recorder: AuditRecorder
    service: CatalogService
    executor: ThreadPoolExecutor | None = None

    def close(self) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=True)
        self.backend.close()


def build_catalog(
    settings: Settings | None = None,
    *,
    sql_handle: SqlDatabase | None = None,
    ensure_schema: bool = False,
) -> Catalog:
    settings = settings or load_settings()
    config = RuntimeConfig.from_settings(settings, sql_handle=sql_handle)

    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="side-effects") if settings.side_effects_async else None
    events = EventBus(executor=executor)
    backend = select_backend(config, events)
    if ensure_schema:
        backend.ensure_schema()

    cache = TaggedCache()
    recorder = AuditRecorder(backend.audit_log, default_actor=settings.audit_actor)
    invalidator = CacheInvalidator(
        cache.invalidate_tag,
        attempts=settings.cache_retry_attempts,
        base_delay=settings.cache_retry_base_delay,
        audit=recorder,
    )
    events.subscribe(invalidator.handle)
    events.subscribe(recorder.handle)

    service = CatalogService(backend, cache, default_actor=settings.audit_actor)
    get_logger(__name__, env=settings.env).info(
        "catalog_ready", backend=backend.kind.value, side_effects_async=executor is not None
    )
    return Catalog(
        settings=settings,
        config=config,
        backend=backend,
        events=events,
        cache=cache,
        invalidator=invalidator,
        recorder=recorder,
        service=service,
        executor=executor,
    )
