"""
HTTP application for the Travelogue admin API.

``create_app`` builds the catalog once and stores it on ``app.state``; routers
reach it through ``travelogue.web.dependencies.get_service``. Catalog errors
are translated verbatim into ``{error, message, field?}`` bodies.
"""

from __future__ import annotations

from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..bootstrap import Catalog, build_catalog
from ..infra.exceptions import CatalogError
from ..infra.logging import configure_logging, get_logger
from ..infra.settings import Settings, load_settings
from .api import audit, collections, locations, years

_log = get_logger(__name__)


def _validation_field(errors: list[dict[str, Any]]) -> str | None:
    for error in errors:
        loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        for part in loc:
            if isinstance(part, str):
                return part
    return None


async def _catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        _log.error("request_failed", path=request.url.path, code=exc.code, message=exc.message)
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = list(exc.errors())
    body: dict[str, Any] = {
        "error": "validation_error",
        "message": errors[0].get("msg", "Invalid request.") if errors else "Invalid request.",
    }
    field = _validation_field(errors)
    if field:
        body["field"] = field
    return JSONResponse(body, status_code=400)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    _log.exception("unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(
        {"error": "internal_error", "message": "An unexpected error occurred."},
        status_code=500,
    )


def create_app(catalog: Catalog | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app around an existing ``catalog`` or one built from ``settings``."""
    if catalog is None:
        catalog = build_catalog(settings or load_settings())

    app = FastAPI(title="Travelogue Admin API")
    app.state.catalog = catalog

    app.add_exception_handler(CatalogError, _catalog_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(years.router)
    app.include_router(locations.router)
    app.include_router(collections.router)
    app.include_router(audit.router)

    @app.get("/health")
    def health(request: Request) -> dict[str, str]:
        return {"status": "ok", "backend": request.app.state.catalog.backend.kind.value}

    return app


def run_server(host: str = "127.0.0.1", port: int = 8000, settings: Settings | None = None) -> None:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    catalog = build_catalog(settings, ensure_schema=not settings.is_production)
    app = create_app(catalog)
    try:
        uvicorn.run(app, host=host, port=port)
    finally:
        catalog.close()
