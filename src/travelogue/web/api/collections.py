"""
Collection endpoints, including location assignment and asset membership.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response

from ...shared.schemas import (
    AssignLocationPayload,
    AttachAssetPayload,
    CollectionPayload,
    ReorderPayload,
    draft_from_payload,
)
from ...usecases.catalog import CatalogService
from ..dependencies import get_service

router = APIRouter(tags=["collections"])


def _dto(record: Any) -> dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)


@router.get("/years/{year_id}/collections")
def list_collections(year_id: str, service: CatalogService = Depends(get_service)) -> list[dict[str, Any]]:
    return [_dto(collection) for collection in service.list_collections(year_id)]


@router.post("/years/{year_id}/collections", status_code=201)
def create_collection(
    year_id: str,
    payload: CollectionPayload,
    service: CatalogService = Depends(get_service),
) -> dict[str, Any]:
    return _dto(service.create_collection(year_id, draft_from_payload(payload)))


@router.put("/years/{year_id}/collections")
def update_collection(
    year_id: str,
    payload: CollectionPayload,
    collection_id: str | None = Query(None, alias="id"),
    service: CatalogService = Depends(get_service),
) -> dict[str, Any]:
    result = service.update_collection(year_id, payload.id or collection_id, draft_from_payload(payload))
    return _dto(result.record)


@router.delete("/years/{year_id}/collections", status_code=204)
def delete_collection(
    year_id: str,
    payload: CollectionPayload | None = Body(None),
    collection_id: str | None = Query(None, alias="id"),
    service: CatalogService = Depends(get_service),
) -> Response:
    service.delete_collection(year_id, (payload.id if payload else None) or collection_id)
    return Response(status_code=204)


@router.post("/years/{year_id}/collections/reorder")
def reorder_collections(
    year_id: str,
    payload: ReorderPayload,
    service: CatalogService = Depends(get_service),
) -> list[dict[str, Any]]:
    return [_dto(collection) for collection in service.reorder_collections(year_id, payload.ordered_ids)]


@router.get("/collections/{collection_id}")
def get_collection(collection_id: str, service: CatalogService = Depends(get_service)) -> dict[str, Any]:
    return _dto(service.get_collection(collection_id))


@router.post("/collections/{collection_id}/location")
def assign_location(
    collection_id: str,
    payload: AssignLocationPayload,
    service: CatalogService = Depends(get_service),
) -> dict[str, Any]:
    collection, previous = service.assign_collection_location(collection_id, payload.location_id)
    return {"collection": _dto(collection), "previousLocationId": previous}


@router.get("/collections/{collection_id}/assets")
def list_assets(collection_id: str, service: CatalogService = Depends(get_service)) -> list[dict[str, Any]]:
    return [_dto(link) for link in service.list_collection_assets(collection_id)]


@router.post("/collections/{collection_id}/assets", status_code=201)
def attach_asset(
    collection_id: str,
    payload: AttachAssetPayload,
    service: CatalogService = Depends(get_service),
) -> dict[str, Any]:
    return _dto(service.attach_asset(collection_id, payload.asset_id, payload.after_asset_id))


@router.delete("/collections/{collection_id}/assets/{asset_id}", status_code=204)
def detach_asset(
    collection_id: str,
    asset_id: str,
    service: CatalogService = Depends(get_service),
) -> Response:
    service.detach_asset(collection_id, asset_id)
    return Response(status_code=204)


@router.post("/collections/{collection_id}/assets/reorder")
def reorder_assets(
    collection_id: str,
    payload: ReorderPayload = Body(...),
    service: CatalogService = Depends(get_service),
) -> list[dict[str, Any]]:
    return [_dto(link) for link in service.reorder_collection_assets(collection_id, payload.ordered_ids)]
