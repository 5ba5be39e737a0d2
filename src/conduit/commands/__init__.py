"""Subcommands of the ``conduit`` CLI."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from conduit.config.models import Settings
from conduit.config.parser import ConfigError, load_settings


def configure_logging(verbose: bool) -> None:
    """Route library logging to stderr; DEBUG when *verbose*."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_or_exit(config_path: Path | None) -> Settings:
    """Load settings, printing a readable error and exiting 1 on failure."""
    try:
        return load_settings(config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from None
