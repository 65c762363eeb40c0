"""
Main CLI application using Typer with router-based command dispatch.

Every command builds the catalog from the environment (``DATABASE_URL``,
``CATALOG_SQL_PATH``, ``ENV``...) and prints JSON when ``--json`` is given.
"""

from __future__ import annotations

import typer

from .commands import audit, collection, db, location, year
from .router import CliRouter

app = typer.Typer(help="Travelogue catalog CLI")

router = CliRouter(app)
router.register("db", db.app, help_text="Database schema operations")
router.register("year", year.app, help_text="Year management operations")
router.register("location", location.app, help_text="Location management operations")
router.register("collection", collection.app, help_text="Collection management operations")
router.register("audit", audit.app, help_text="Audit log inspection")


@app.command("serve")
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (defaults to HOST)"),
    port: int = typer.Option(None, "--port", help="Bind port (defaults to PORT)"),
):
    """Run the admin HTTP API."""
    from ..infra.settings import load_settings
    from ..web.app import run_server

    settings = load_settings()
    run_server(host or settings.host, port or settings.port, settings=settings)


def cli() -> None:
    app()


if __name__ == "__main__":
    cli()
