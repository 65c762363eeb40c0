"""
Location endpoints.

The update and delete routes take the location id from the request body
``id`` or, failing that, the ``id`` query parameter.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response

from ...shared.schemas import LocationPayload, ReorderPayload, draft_from_payload
from ...usecases.catalog import CatalogService
from ..dependencies import get_service

router = APIRouter(tags=["locations"])


def _dto(record: Any) -> dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)


@router.get("/years/{year_id}/locations")
def list_locations(year_id: str, service: CatalogService = Depends(get_service)) -> list[dict[str, Any]]:
    return [_dto(location) for location in service.list_locations(year_id)]


@router.post("/years/{year_id}/locations", status_code=201)
def create_location(
    year_id: str,
    payload: LocationPayload,
    service: CatalogService = Depends(get_service),
) -> dict[str, Any]:
    return _dto(service.create_location(year_id, draft_from_payload(payload)))


@router.put("/years/{year_id}/locations")
def update_location(
    year_id: str,
    payload: LocationPayload,
    location_id: str | None = Query(None, alias="id"),
    service: CatalogService = Depends(get_service),
) -> dict[str, Any]:
    result = service.update_location(year_id, payload.id or location_id, draft_from_payload(payload))
    return _dto(result.record)


@router.delete("/years/{year_id}/locations", status_code=204)
def delete_location(
    year_id: str,
    payload: LocationPayload | None = Body(None),
    location_id: str | None = Query(None, alias="id"),
    service: CatalogService = Depends(get_service),
) -> Response:
    service.delete_location(year_id, (payload.id if payload else None) or location_id)
    return Response(status_code=204)


@router.post("/locations/{location_id}/reorder")
def reorder_locations(
    location_id: str,
    payload: ReorderPayload,
    service: CatalogService = Depends(get_service),
) -> list[dict[str, Any]]:
    locations = service.reorder_locations_via(location_id, payload.year_id, payload.ordered_ids)
    return [_dto(location) for location in locations]
