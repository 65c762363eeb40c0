from __future__ import annotations

from typing import Any

import typer

from ...infra.exceptions import CatalogError
from ...shared.types import MoveDirection
from .._support import echo_json, fail, open_catalog

app = typer.Typer(name="location", help="Location management operations")


def _draft(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _print_locations(locations: list) -> None:
    if not locations:
        typer.echo("No locations found")
        return
    for location in locations:
        typer.echo(
            f"{location.order_index:>6}  {location.slug}  {location.name}  "
            f"({location.collection_count} collections)  {location.id}"
        )


@app.command("list")
def list_locations(
    year: str = typer.Argument(..., help="Year id or label"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List the locations of a year in display order."""
    with open_catalog() as catalog:
        try:
            locations = catalog.service.list_locations(year)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "total": len(locations), "locations": locations})
    else:
        _print_locations(locations)


@app.command("add")
def add_location(
    year: str = typer.Argument(..., help="Year id or label"),
    name: str = typer.Option(..., "--name", help="Display name"),
    slug: str = typer.Option(..., "--slug", help="URL slug ending in the two-digit year, e.g. kyoto-24"),
    summary: str | None = typer.Option(None, "--summary", help="Short description"),
    cover_asset: str | None = typer.Option(None, "--cover-asset", help="Cover asset id"),
    order_index: str | None = typer.Option(None, "--order-index", help="Explicit order index"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Create a location; without --order-index it is appended last.

    Examples:
        travelogue location add 2024 --name Kyoto --slug kyoto-24
    """
    draft = _draft(
        name=name, slug=slug, summary=summary, coverAssetId=cover_asset, orderIndex=order_index
    )
    with open_catalog() as catalog:
        try:
            location = catalog.service.create_location(year, draft)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "location": location})
    else:
        typer.echo("Location created:")
        typer.echo(f"  ID: {location.id}")
        typer.echo(f"  Name: {location.name}")
        typer.echo(f"  Slug: {location.slug}")
        typer.echo(f"  Order: {location.order_index}")


@app.command("update")
def update_location(
    year: str = typer.Argument(..., help="Year id or label"),
    location_id: str = typer.Argument(..., help="Location id"),
    name: str | None = typer.Option(None, "--name"),
    slug: str | None = typer.Option(None, "--slug"),
    summary: str | None = typer.Option(None, "--summary"),
    cover_asset: str | None = typer.Option(None, "--cover-asset"),
    order_index: str | None = typer.Option(None, "--order-index"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Change the given fields of a location."""
    patch = _draft(
        name=name, slug=slug, summary=summary, coverAssetId=cover_asset, orderIndex=order_index
    )
    with open_catalog() as catalog:
        try:
            result = catalog.service.update_location(year, location_id, patch)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "location": result.record, "changes": result.changes})
    else:
        typer.echo(f"Location updated: {result.record.id}")
        for key, value in result.changes.items():
            typer.echo(f"  {key}: {value}")


@app.command("delete")
def delete_location(
    year: str = typer.Argument(..., help="Year id or label"),
    location_id: str = typer.Argument(..., help="Location id"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Delete a location that no collection references."""
    with open_catalog() as catalog:
        try:
            deleted = catalog.service.delete_location(year, location_id)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "deleted": deleted})
    else:
        typer.echo(f"Location deleted: {deleted.slug} ({deleted.id})")


@app.command("reorder")
def reorder_locations(
    year: str = typer.Argument(..., help="Year id or label"),
    ordered_ids: list[str] = typer.Argument(..., help="Every location id of the year, in the new order"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Rewrite the order of all locations of a year."""
    with open_catalog() as catalog:
        try:
            locations = catalog.service.reorder_locations(year, ordered_ids)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "locations": locations})
    else:
        _print_locations(locations)


@app.command("move")
def move_location(
    year: str = typer.Argument(..., help="Year id or label"),
    location_id: str = typer.Argument(..., help="Location id"),
    direction: MoveDirection = typer.Argument(..., help="up or down"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Move a location one place up or down."""
    with open_catalog() as catalog:
        try:
            locations = catalog.service.move_location(year, location_id, direction)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "locations": locations})
    else:
        _print_locations(locations)
