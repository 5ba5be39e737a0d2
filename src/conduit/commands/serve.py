"""conduit serve — run the streaming chat API."""

from __future__ import annotations

from pathlib import Path

import click
import uvicorn

from conduit.commands import configure_logging, load_or_exit
from conduit.server.app import create_app


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to conduit.yaml (default: ./conduit.yaml if present).",
)
@click.option("--host", default=None, help="Bind address (overrides config).")
@click.option("--port", type=int, default=None, help="Bind port (overrides config).")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    verbose: bool,
) -> None:
    """Serve the chat bridge over HTTP (Server-Sent Events)."""
    configure_logging(verbose)
    settings = load_or_exit(config_path)

    bind_host = host or settings.server.host
    bind_port = port or settings.server.port
    click.echo(f"Conduit listening on http://{bind_host}:{bind_port}")

    uvicorn.run(
        create_app(settings),
        host=bind_host,
        port=bind_port,
        log_level="debug" if verbose else "info",
    )
