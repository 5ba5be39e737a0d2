"""Root CLI group and version flag."""

import click

from conduit import __version__
from conduit.commands.chat import chat
from conduit.commands.serve import serve
from conduit.commands.status import status


@click.group()
@click.version_option(version=__version__, prog_name="conduit")
def cli() -> None:
    """Conduit — stream a CLI coding assistant to the browser."""


cli.add_command(serve)
cli.add_command(status)
cli.add_command(chat)
