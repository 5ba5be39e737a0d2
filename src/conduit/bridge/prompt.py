"""Flatten conversation history and a new message into one CLI prompt."""

from __future__ import annotations

from collections.abc import Sequence

from conduit.constants import HISTORY_LIMIT
from conduit.events.models import ConversationTurn

_PREAMBLE = "Previous conversation:"

_ROLE_LABELS = {"user": "Human", "assistant": "Assistant"}


def compose_prompt(
    message: str,
    history: Sequence[ConversationTurn] | None = None,
    limit: int = HISTORY_LIMIT,
) -> str:
    """Build the text piped to the CLI's stdin.

    Only the most recent *limit* turns are kept; older context is dropped.
    """
    if not history:
        return message

    recent = list(history)[-limit:] if limit > 0 else []
    history_text = "\n\n".join(
        f"{_ROLE_LABELS.get(turn.role, 'Assistant')}: {turn.content}"
        for turn in recent
    )
    return f"{_PREAMBLE}\n{history_text}\n\nHuman: {message}"
