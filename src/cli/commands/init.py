"""Init CLI command."""

import os
from pathlib import Path

import click
from rich.console import Console

from cli.config import find_config, load_config_model, write_default_config
from web.crypto import generate_key
from web.user_store import init_db

console = Console()


@click.command()
@click.option(
    "--config-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write config.yaml (default: ~/personasim/config.yaml)",
)
def init(config_path: Path | None):
    """Create the data directory, database and a starter config."""
    config = load_config_model()
    paths = config.paths

    paths.data_dir.mkdir(parents=True, exist_ok=True)
    console.print(f"[green]✓[/] data_dir: {paths.data_dir}")

    init_db(paths.db_file)
    console.print(f"[green]✓[/] database: {paths.db_file}")

    target = config_path or find_config() or Path.home() / "personasim" / "config.yaml"
    existed = target.exists()
    write_default_config(target)
    if existed:
        console.print(f"[dim]Config already exists: {target}[/]")
    else:
        console.print(f"[green]✓[/] Created config: {target}")

    console.print("\n[bold]Minimal setup:[/]")
    console.print("  1. Set GEMINI_API_KEY (or ANTHROPIC_API_KEY / OPENAI_API_KEY)")
    console.print("  2. Set JWT_SECRET and SECRET_KEY for the API server")
    if not os.getenv("SECRET_KEY"):
        console.print(f"     e.g. [cyan]export SECRET_KEY={generate_key()}[/]")
    console.print("  3. Run [cyan]personasim serve[/]")
    console.print(
        "\n[dim]Payments are simulated unless STRIPE_SECRET_KEY and STRIPE_WEBHOOK_SECRET are set[/]"
    )
