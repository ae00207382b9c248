"""Server command for the cardsync CLI.

Commands:
- serve: Run the HTTP API
"""

from __future__ import annotations

import click

from cardsync.cli.config import get_data_dir


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", "-p", type=int, default=8000, show_default=True, help="Port to listen on.")
def serve(host: str, port: int) -> None:
    """Run the HTTP API used by the web UI."""
    import uvicorn

    from cardsync.server.app import app_factory

    data_dir = get_data_dir()
    click.echo(f"Serving on http://{host}:{port} (data: {data_dir})")
    uvicorn.run(app_factory(data_dir), host=host, port=port)
