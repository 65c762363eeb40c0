from __future__ import annotations

import typer

from ...bootstrap import build_catalog
from ...infra.logging import configure_logging
from ...infra.settings import load_settings
from .._support import echo_json

app = typer.Typer(name="db", help="Database schema operations")


@app.command("init")
def init_db(
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Create any missing tables for the configured backend.

    Production deployments manage the ORM schema with Alembic; this command is
    for local databases and the direct-SQL database file.
    """
    settings = load_settings()
    configure_logging(settings.log_level)
    catalog = build_catalog(settings)
    try:
        catalog.backend.ensure_schema()
        backend = catalog.backend.kind.value
    finally:
        catalog.close()

    if json_output:
        echo_json({"status": "ok", "backend": backend})
    else:
        typer.echo(f"Schema ready ({backend} backend)")
