from __future__ import annotations

import typer

from ...infra.exceptions import CatalogError
from ...shared.types import PublishStatus
from .._support import echo_json, fail, open_catalog

app = typer.Typer(name="year", help="Year management operations")


@app.command("add")
def add_year(
    label: str = typer.Argument(..., help="Year label, e.g. 2024"),
    status: PublishStatus = typer.Option(PublishStatus.DRAFT, "--status", help="draft or published"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Create a year; it is appended after the existing years."""
    with open_catalog() as catalog:
        try:
            year = catalog.service.create_year(label, status)
        except CatalogError as exc:
            fail(exc, json_output)

    if json_output:
        echo_json({"status": "ok", "year": year})
    else:
        typer.echo("Year created:")
        typer.echo(f"  ID: {year.id}")
        typer.echo(f"  Label: {year.label}")
        typer.echo(f"  Status: {year.status.value}")


@app.command("list")
def list_years(
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """List years in display order."""
    with open_catalog() as catalog:
        years = catalog.service.list_years()

    if json_output:
        echo_json({"status": "ok", "total": len(years), "years": years})
        return
    if not years:
        typer.echo("No years found")
        return
    for year in years:
        typer.echo(f"{year.order_index:>6}  {year.label}  [{year.status.value}]  {year.id}")
