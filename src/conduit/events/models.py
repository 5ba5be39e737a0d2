"""Pydantic v2 models for the chat wire format."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag


class _ChatEventBase(BaseModel):
    """Common config shared by every outbound chat event."""

    model_config = ConfigDict(extra="forbid")


class MessageStartEvent(_ChatEventBase):
    """Anchors a new assistant message before any content arrives."""

    type: Literal["message_start"] = "message_start"
    id: str = Field(description="Message identifier (from the CLI or generated)")


class TextEvent(_ChatEventBase):
    """Incremental assistant text."""

    type: Literal["text"] = "text"
    content: str = Field(description="Text delta")


class ThinkingEvent(_ChatEventBase):
    """Incremental reasoning text, rendered apart from the answer."""

    type: Literal["thinking"] = "thinking"
    content: str = Field(description="Thinking delta (empty opens a segment)")


class ToolUseStartEvent(_ChatEventBase):
    """Emitted when the assistant starts a tool call."""

    type: Literal["tool_use_start"] = "tool_use_start"
    id: str = Field(description="Tool-use identifier")
    tool: str = Field(description="Tool name")
    input: dict[str, Any] = Field(
        default_factory=dict,
        description="Tool arguments (streamed input is not reconstructed)",
    )


class ToolUseEndEvent(_ChatEventBase):
    """Emitted when a tool call returns."""

    type: Literal["tool_use_end"] = "tool_use_end"
    id: str = Field(description="Tool-use identifier")
    status: Literal["success", "error"] = Field(description="Outcome of the call")
    error: str | None = Field(default=None, description="Error text when failed")


class ErrorEvent(_ChatEventBase):
    """A failure surfaced to the client."""

    type: Literal["error"] = "error"
    content: str = Field(description="Human-readable error message")
    code: str | None = Field(default=None, description="Machine-readable code")


class DoneEvent(_ChatEventBase):
    """Terminal marker — exactly one per stream, always last."""

    type: Literal["done"] = "done"


def _event_discriminator(v: Any) -> str:
    """Extract the discriminator value from raw data or a model instance."""
    if isinstance(v, dict):
        return str(v.get("type", ""))
    return str(getattr(v, "type", ""))


ChatEvent = Annotated[
    Annotated[MessageStartEvent, Tag("message_start")]
    | Annotated[TextEvent, Tag("text")]
    | Annotated[ThinkingEvent, Tag("thinking")]
    | Annotated[ToolUseStartEvent, Tag("tool_use_start")]
    | Annotated[ToolUseEndEvent, Tag("tool_use_end")]
    | Annotated[ErrorEvent, Tag("error")]
    | Annotated[DoneEvent, Tag("done")],
    Discriminator(_event_discriminator),
]
"""Discriminated union of all outbound chat events."""


# ------------------------------------------------------------------ #
# Inbound request / status payloads
# ------------------------------------------------------------------ #


class ConversationTurn(BaseModel):
    """One prior exchange in the chat session, oldest first."""

    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Body of a streaming chat request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: str = Field(description="New user message")
    workspace_path: str | None = Field(
        default=None,
        alias="workspacePath",
        description="Working directory for the CLI process",
    )
    conversation_history: list[ConversationTurn] = Field(
        default_factory=list,
        alias="conversationHistory",
        description="Prior turns, oldest first",
    )


class CliStatus(BaseModel):
    """Result of the one-shot CLI reachability probe."""

    connected: bool
    version: str | None = None
    error: str | None = None


def encode_event(event: BaseModel) -> str:
    """Serialize *event* as compact JSON, omitting unset optional fields."""
    return event.model_dump_json(exclude_none=True)
