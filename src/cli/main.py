"""CLI entry point for PersonaSim."""

import click

from cli.commands import init, personas, quota, serve, users
from cli.config import load_config_model
from cli.logging_config import setup_logging


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """PersonaSim - AI personas from your chats."""
    config = load_config_model()
    setup_logging(
        json_mode=config.logging.json_mode,
        level="DEBUG" if verbose else config.logging.level,
    )


cli.add_command(init)
cli.add_command(serve)
cli.add_command(users)
cli.add_command(quota)
cli.add_command(personas)


if __name__ == "__main__":
    cli()
