"""
Audit log endpoint.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from ...usecases.catalog import CatalogService
from ..dependencies import get_service

router = APIRouter(tags=["audit"])


@router.get("/audit")
def list_audit_entries(
    entity: str | None = Query(None, description="Entity type, e.g. location"),
    entity_id: str | None = Query(None, alias="entityId"),
    action: str | None = Query(None),
    limit: int = Query(50, description="Clamped to 1..100"),
    offset: int = Query(0, ge=0),
    service: CatalogService = Depends(get_service),
) -> list[dict[str, Any]]:
    entries = service.audit_entries(entity, entity_id, action, limit, offset)
    return [entry.model_dump(mode="json", by_alias=True) for entry in entries]
