"""
Helpers shared by the command groups: opening the catalog and printing results.
"""

from __future__ import annotations

import contextlib
import json
from collections.abc import Generator
from typing import Any, NoReturn

import typer
from pydantic import BaseModel

from ..bootstrap import Catalog, build_catalog
from ..infra.exceptions import CatalogError
from ..infra.logging import configure_logging
from ..infra.settings import load_settings


@contextlib.contextmanager
def open_catalog() -> Generator[Catalog, None, None]:
    """Build the catalog from the environment for one command and close it afterwards."""
    settings = load_settings()
    configure_logging(settings.log_level)
    catalog = build_catalog(settings, ensure_schema=not settings.is_production)
    try:
        yield catalog
    finally:
        catalog.close()


def to_json(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return value


def echo_json(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(to_json(payload), indent=2))


def fail(exc: CatalogError, json_output: bool) -> NoReturn:
    """Report a catalog error and exit with status 1."""
    if json_output:
        body: dict[str, Any] = {"status": "error", "code": exc.code, "message": exc.message}
        if exc.field:
            body["field"] = exc.field
        typer.echo(json.dumps(body, indent=2))
    else:
        suffix = f" (field: {exc.field})" if exc.field else ""
        typer.echo(f"Error: {exc.message}{suffix}", err=True)
    raise typer.Exit(1)
