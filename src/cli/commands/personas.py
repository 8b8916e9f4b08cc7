"""Persona listing and export commands."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.config import load_config_model
from personas.export import PersonaExporter
from web.persona_store import list_personas

console = Console()


@click.group()
def personas():
    """Browse and export a user's personas."""
    pass


@personas.command("list")
@click.argument("user_id")
@click.option("-q", "--search", default=None, help="Filter by name")
def personas_list(user_id: str, search: str | None):
    config = load_config_model()
    rows = list_personas(user_id, search=search, db_path=config.paths.db_file)
    if not rows:
        console.print("[yellow]No personas found.[/]")
        return

    table = Table(title=f"Personas for {user_id}")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Origin")
    table.add_column("Category")
    table.add_column("Created")
    for p in rows:
        table.add_row(
            p["id"], p["name"], p["origin_type"], p.get("category") or "-", p["created_at"][:10]
        )
    console.print(table)


@personas.command("export")
@click.argument("user_id")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output JSON file")
@click.option("--persona", "persona_id", default=None, help="Export a single persona")
def personas_export(user_id: str, output: Path, persona_id: str | None):
    """Export personas with their AI chat history as JSON."""
    config = load_config_model()
    exporter = PersonaExporter(user_id, db_path=config.paths.db_file)
    with console.status("Exporting..."):
        count = exporter.export_json(output, persona_id=persona_id)
    if not count:
        console.print("[yellow]Nothing to export.[/]")
        return
    console.print(f"[green]Exported {count} persona(s) to {output}[/]")
