from __future__ import annotations

import json

import typer

from .._support import echo_json, open_catalog

app = typer.Typer(name="audit", help="Audit log inspection")


@app.command("list")
def list_entries(
    entity: str | None = typer.Option(None, "--entity", help="Entity type, e.g. location"),
    entity_id: str | None = typer.Option(None, "--entity-id"),
    action: str | None = typer.Option(None, "--action", help="create, edit, delete or sort"),
    limit: int = typer.Option(50, "--limit", help="At most 100"),
    offset: int = typer.Option(0, "--offset"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Show audit entries, newest first."""
    with open_catalog() as catalog:
        entries = catalog.service.audit_entries(entity, entity_id, action, limit, offset)

    if json_output:
        echo_json({"status": "ok", "total": len(entries), "entries": entries})
        return
    if not entries:
        typer.echo("No audit entries found")
        return
    for entry in entries:
        payload = json.dumps(entry.payload) if entry.payload else ""
        typer.echo(
            f"{entry.created_at}  {entry.actor}  {entry.action}  "
            f"{entry.entity_type}/{entry.entity_id}  {payload}"
        )
