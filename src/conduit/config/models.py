"""Pydantic v2 models for conduit.yaml configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from conduit.constants import (
    DEFAULT_AUTH_PHRASES,
    DEFAULT_FALLBACK_PATH,
    DEFAULT_SEARCH_PATHS,
    HISTORY_LIMIT,
)


class CLIConfig(BaseModel):
    """How the Claude CLI is found and supervised."""

    model_config = ConfigDict(extra="forbid")

    search_paths: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SEARCH_PATHS),
        description="Install locations probed in order (CLAUDE_CLI_PATH wins)",
    )
    fallback_path: str = Field(
        default=DEFAULT_FALLBACK_PATH,
        description="Path used when no search location exists",
    )
    status_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds before the status probe gives up",
    )
    kill_grace: float = Field(
        default=3.0,
        gt=0,
        description="Seconds between SIGTERM and SIGKILL",
    )
    auth_phrases: list[str] = Field(
        default_factory=lambda: list(DEFAULT_AUTH_PHRASES),
        description="stderr phrases that mean the CLI is not logged in",
    )


class ChatConfig(BaseModel):
    """Prompt and working-directory settings."""

    model_config = ConfigDict(extra="forbid")

    history_limit: int = Field(
        default=HISTORY_LIMIT,
        ge=1,
        description="Most recent turns included in the prompt",
    )
    workspace: str | None = Field(
        default=None,
        description="Default working directory (current directory if unset)",
    )


class ServerConfig(BaseModel):
    """HTTP transport settings."""

    model_config = ConfigDict(extra="forbid")

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=3001, ge=1, le=65535, description="Bind port")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API",
    )

    @field_validator("host")
    @classmethod
    def _host_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "host must not be empty"
            raise ValueError(msg)
        return value


class Settings(BaseModel):
    """Top-level conduit.yaml configuration."""

    model_config = ConfigDict(extra="forbid")

    cli: CLIConfig = Field(default_factory=CLIConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
