"""Run the API server."""

import click
import uvicorn


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Reload on code changes (development)")
def serve(host: str, port: int, reload: bool):
    """Start the PersonaSim web API."""
    uvicorn.run("web.app:app", host=host, port=port, reload=reload)
