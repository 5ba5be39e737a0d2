"""conduit chat — run one prompt through the bridge and print the stream."""

from __future__ import annotations

import asyncio
import contextlib
import signal
from pathlib import Path

import click

from conduit.bridge.pipeline import ChatPipeline
from conduit.commands import configure_logging, load_or_exit
from conduit.config.models import Settings
from conduit.events.models import (
    ChatEvent,
    ChatRequest,
    ErrorEvent,
    MessageStartEvent,
    TextEvent,
    ThinkingEvent,
    ToolUseEndEvent,
    ToolUseStartEvent,
    encode_event,
)


@click.command()
@click.argument("message")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to conduit.yaml (default: ./conduit.yaml if present).",
)
@click.option(
    "-w",
    "--workspace",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Working directory for the CLI process.",
)
@click.option("--json", "as_json", is_flag=True, help="Print raw events as JSON lines.")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
def chat(
    message: str,
    config_path: Path | None,
    workspace: Path | None,
    as_json: bool,
    verbose: bool,
) -> None:
    """Send MESSAGE to the Claude CLI and stream the reply."""
    if not message.strip():
        click.echo("Error: Message is required", err=True)
        raise SystemExit(1)

    configure_logging(verbose)
    settings = load_or_exit(config_path)
    request = ChatRequest(
        message=message,
        workspace_path=str(workspace) if workspace is not None else None,
    )

    had_error = asyncio.run(_stream(request, settings, as_json=as_json))
    if had_error:
        raise SystemExit(1)


async def _stream(request: ChatRequest, settings: Settings, *, as_json: bool) -> bool:
    """Run the pipeline, echo events, and return True if an error was seen."""
    pipeline = ChatPipeline(request, settings)
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, pipeline.cancel)

    had_error = False
    try:
        async for event in pipeline.start():
            if isinstance(event, ErrorEvent):
                had_error = True
            if as_json:
                click.echo(encode_event(event))
            else:
                _render(event)
        await pipeline.wait_closed()
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    if not as_json:
        click.echo()
    return had_error


def _render(event: ChatEvent) -> None:
    """Human-readable rendering of one event."""
    if isinstance(event, TextEvent):
        click.echo(event.content, nl=False)
    elif isinstance(event, ThinkingEvent):
        if event.content:
            click.echo(click.style(event.content, dim=True), nl=False)
    elif isinstance(event, ToolUseStartEvent):
        click.echo(click.style(f"\n[tool] {event.tool} ({event.id})", fg="cyan"))
    elif isinstance(event, ToolUseEndEvent):
        if event.status == "error":
            click.echo(click.style(f"[tool] {event.id} failed: {event.error}", fg="red"))
        else:
            click.echo(click.style(f"[tool] {event.id} done", fg="cyan"))
    elif isinstance(event, ErrorEvent):
        code = f" [{event.code}]" if event.code else ""
        click.echo(click.style(f"\nError{code}: {event.content}", fg="red"), err=True)
    elif isinstance(event, MessageStartEvent):
        pass
