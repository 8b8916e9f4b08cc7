"""User and persona-quota administration commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.config import load_config_model
from personas.quota import effective_quota, remaining_slots
from web.persona_store import count_personas
from web.user_store import get_persona_quota, increment_persona_quota, list_users

console = Console()


@click.group()
def users():
    """Inspect registered users."""
    pass


@users.command("list")
def users_list():
    """List users with their persona usage."""
    config = load_config_model()
    rows = list_users(db_path=config.paths.db_file)
    if not rows:
        console.print("[yellow]No users yet.[/]")
        return

    free_limit = config.billing.free_persona_limit
    table = Table(title="Users")
    table.add_column("ID", style="dim")
    table.add_column("Email")
    table.add_column("Name")
    table.add_column("Personas", justify="right")
    table.add_column("Verified")
    for row in rows:
        quota = effective_quota(row["persona_quota"], free_limit)
        table.add_row(
            row["id"],
            row["email"] or "-",
            row["name"] or "-",
            f"{row['persona_count']}/{quota}",
            "yes" if row["email_verified"] else "no",
        )
    console.print(table)


@click.group()
def quota():
    """Show or grant persona slots."""
    pass


@quota.command("show")
@click.argument("user_id")
def quota_show(user_id: str):
    config = load_config_model()
    db_path = config.paths.db_file
    free_limit = config.billing.free_persona_limit
    stored = get_persona_quota(user_id, free_limit, db_path=db_path)
    if stored is None:
        console.print(f"[red]User not found:[/] {user_id}")
        raise SystemExit(1)
    count = count_personas(user_id, db_path=db_path)
    console.print(
        f"[bold]{user_id}[/]: {count}/{stored} personas, "
        f"{remaining_slots(count, stored)} slot(s) left"
    )


@quota.command("grant")
@click.argument("user_id")
@click.option("-n", "--slots", default=1, show_default=True, type=click.IntRange(min=1))
def quota_grant(user_id: str, slots: int):
    """Add persona slots, as a completed purchase would."""
    config = load_config_model()
    new_quota = increment_persona_quota(
        user_id, slots, config.billing.free_persona_limit, db_path=config.paths.db_file
    )
    if new_quota is None:
        console.print(f"[red]User not found:[/] {user_id}")
        raise SystemExit(1)
    console.print(f"[green]Granted {slots} slot(s).[/] New quota: {new_quota}")
