"""Translate Claude CLI ``stream-json`` lines into chat events.

The CLI (``--output-format stream-json --verbose``) mixes two shapes of
record on stdout:

* CLI envelopes — ``system`` (init), ``assistant`` (an API message whose
  blocks live in ``message.content[]``) and ``result`` (final summary or
  a tool result).
* Raw API stream events — ``content_block_start``,
  ``content_block_delta``, ``content_block_stop``, ``message_delta``,
  ``message_stop`` and ``error``.

Each complete line maps to at most one event.  The translator is
stateless: it keeps nothing between lines.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from conduit.events.models import (
    ChatEvent,
    ErrorEvent,
    MessageStartEvent,
    TextEvent,
    ThinkingEvent,
    ToolUseEndEvent,
    ToolUseStartEvent,
)

logger = logging.getLogger(__name__)


def translate_line(line: str) -> ChatEvent | None:
    """Translate one complete stdout line.

    Non-JSON lines that do not look like broken JSON are passed through as
    text, since the CLI occasionally prints plain diagnostics.
    """
    stripped = line.strip()
    if not stripped:
        return None

    try:
        record = json.loads(stripped)
    except (ValueError, RecursionError):
        # JSONDecodeError, or nesting deep enough to exhaust the decoder.
        if stripped.startswith("{"):
            logger.debug("Dropping malformed JSON line: %s", stripped[:200])
            return None
        logger.debug("Non-JSON output from CLI: %s", stripped[:200])
        return TextEvent(content=stripped + "\n")

    if not isinstance(record, dict):
        logger.debug("Dropping non-object JSON line: %s", stripped[:200])
        return None

    return translate_event(record)


def translate_event(event: dict[str, Any]) -> ChatEvent | None:
    """Map one decoded CLI record to a chat event (or nothing)."""
    event_type = event.get("type")

    match event_type:
        case "system":
            # Init event — session id, tool list, model. Nothing to show.
            return None

        case "assistant":
            return _translate_assistant(event)

        case "result":
            return _translate_result(event)

        case "content_block_start":
            block = _as_dict(event.get("content_block"))
            match block.get("type"):
                case "thinking":
                    return ThinkingEvent(content="")
                case "tool_use":
                    return ToolUseStartEvent(
                        id=str(block.get("id", "")),
                        tool=str(block.get("name", "")),
                        input={},
                    )
            return None

        case "content_block_delta":
            delta = _as_dict(event.get("delta"))
            match delta.get("type"):
                case "text_delta":
                    return TextEvent(content=_as_str(delta.get("text")))
                case "thinking_delta":
                    return ThinkingEvent(content=_as_str(delta.get("thinking")))
            # input_json_delta and friends are not reconstructed.
            return None

        case "content_block_stop" | "message_stop" | "message_delta":
            return None

        case "error":
            error = _as_dict(event.get("error"))
            message = error.get("message") or event.get("message") or "Unknown error"
            code = error.get("type")
            return ErrorEvent(
                content=str(message),
                code=str(code) if code else None,
            )

        case _:
            logger.debug("Unknown CLI event type: %s", event_type)
            return None


def _translate_assistant(event: dict[str, Any]) -> ChatEvent:
    """First text or thinking block wins; otherwise anchor a new message."""
    message = _as_dict(event.get("message"))
    content = message.get("content")
    if isinstance(content, list):
        for block in content:
            if not isinstance(block, dict):
                continue
            block_type = block.get("type")
            if block_type == "text":
                text = block.get("text")
                if isinstance(text, str) and text:
                    return TextEvent(content=text)
            elif block_type == "thinking":
                thinking = block.get("thinking")
                if isinstance(thinking, str) and thinking:
                    return ThinkingEvent(content=thinking)

    message_id = message.get("id")
    if not isinstance(message_id, str) or not message_id:
        message_id = str(uuid.uuid4())
    return MessageStartEvent(id=message_id)


def _translate_result(event: dict[str, Any]) -> ChatEvent | None:
    tool_use_id = event.get("tool_use_id")
    if not tool_use_id:
        # Final aggregated text: already streamed via assistant/delta events.
        return None

    is_error = bool(event.get("is_error"))
    error = event.get("error") if is_error else None
    return ToolUseEndEvent(
        id=str(tool_use_id),
        status="error" if is_error else "success",
        error=str(error) if error is not None else None,
    )


def _as_dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""
