"""
Year endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...shared.schemas import YearPayload
from ...usecases.catalog import CatalogService
from ..dependencies import get_service

router = APIRouter(tags=["years"])


@router.get("/years")
def list_years(service: CatalogService = Depends(get_service)) -> list[dict[str, Any]]:
    return [year.model_dump(mode="json", by_alias=True) for year in service.list_years()]


@router.post("/years", status_code=201)
def create_year(payload: YearPayload, service: CatalogService = Depends(get_service)) -> dict[str, Any]:
    return service.create_year(payload.label, payload.status).model_dump(mode="json", by_alias=True)
