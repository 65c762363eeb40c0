from __future__ import annotations

from typing import Any

import typer

from ...infra.exceptions import CatalogError
from ...shared.types import PublishStatus
from .._support import echo_json, fail, open_catalog

app = typer.Typer(name="collection", help="Collection management operations")


def _print_collections(collections: list) -> None:
    if not collections:
        typer.echo("No collections found")
        return
    for collection in collections:
        location = collection.location_id or "-"
        typer.echo(
            f"{collection.order_index:>6}  {collection.slug}  {collection.title}  "
            f"[{collection.status.value}]  location={location}  {collection.id}"
        )


@app.command("list")
def list_collections(
    year: str = typer.Argument(..., help="Year id or label"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List the collections of a year in display order."""
    with open_catalog() as catalog:
        try:
            collections = catalog.service.list_collections(year)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "total": len(collections), "collections": collections})
    else:
        _print_collections(collections)


@app.command("add")
def add_collection(
    year: str = typer.Argument(..., help="Year id or label"),
    title: str = typer.Option(..., "--title", help="Display title (200 characters max)"),
    slug: str = typer.Option(..., "--slug", help="URL slug, e.g. autumn-leaves"),
    location: str | None = typer.Option(None, "--location", help="Location id in the same year"),
    summary: str | None = typer.Option(None, "--summary"),
    status: PublishStatus = typer.Option(PublishStatus.DRAFT, "--status", help="draft or published"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Create a collection; it is appended after the year's existing collections."""
    draft: dict[str, Any] = {"title": title, "slug": slug, "status": status.value}
    if location is not None:
        draft["locationId"] = location
    if summary is not None:
        draft["summary"] = summary

    with open_catalog() as catalog:
        try:
            collection = catalog.service.create_collection(year, draft)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "collection": collection})
    else:
        typer.echo("Collection created:")
        typer.echo(f"  ID: {collection.id}")
        typer.echo(f"  Title: {collection.title}")
        typer.echo(f"  Slug: {collection.slug}")
        typer.echo(f"  Order: {collection.order_index}")


@app.command("reorder")
def reorder_collections(
    year: str = typer.Argument(..., help="Year id or label"),
    ordered_ids: list[str] = typer.Argument(..., help="Every collection id of the year, in the new order"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Rewrite the order of all collections of a year."""
    with open_catalog() as catalog:
        try:
            collections = catalog.service.reorder_collections(year, ordered_ids)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "collections": collections})
    else:
        _print_collections(collections)
