"""
FastAPI dependencies.
"""

from __future__ import annotations

from fastapi import Request

from ..usecases.catalog import CatalogService


def get_service(request: Request) -> CatalogService:
    """Return the process-wide catalog service stored on ``app.state``."""
    return request.app.state.catalog.service
