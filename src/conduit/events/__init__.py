"""Chat event models — the bridge's public wire vocabulary."""

from conduit.events.models import (
    ChatEvent,
    ChatRequest,
    CliStatus,
    ConversationTurn,
    DoneEvent,
    ErrorEvent,
    MessageStartEvent,
    TextEvent,
    ThinkingEvent,
    ToolUseEndEvent,
    ToolUseStartEvent,
    encode_event,
)

__all__ = [
    "ChatEvent",
    "ChatRequest",
    "CliStatus",
    "ConversationTurn",
    "DoneEvent",
    "ErrorEvent",
    "MessageStartEvent",
    "TextEvent",
    "ThinkingEvent",
    "ToolUseEndEvent",
    "ToolUseStartEvent",
    "encode_event",
]
