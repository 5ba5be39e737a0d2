"""conduit status — check that the Claude CLI is installed and working."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from conduit.bridge.locator import locate_executable
from conduit.bridge.status import probe_status
from conduit.commands import configure_logging, load_or_exit


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to conduit.yaml (default: ./conduit.yaml if present).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
def status(config_path: Path | None, verbose: bool) -> None:
    """Report whether the Claude CLI is reachable, and its version."""
    configure_logging(verbose)
    settings = load_or_exit(config_path)

    executable = locate_executable(
        search_paths=settings.cli.search_paths,
        fallback=settings.cli.fallback_path,
    )
    result = asyncio.run(probe_status(executable, timeout=settings.cli.status_timeout))

    if result.connected:
        click.echo(f"Connected: Claude CLI {result.version} ({executable})")
        return

    click.echo(f"Not connected: {result.error}", err=True)
    raise SystemExit(1)
