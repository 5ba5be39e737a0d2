"""Shared constants for the conduit bridge."""

from __future__ import annotations

#: Environment variable that overrides executable discovery.
CLI_PATH_ENV = "CLAUDE_CLI_PATH"

#: Common install locations probed in order when no override is set.
DEFAULT_SEARCH_PATHS = (
    "/opt/homebrew/bin/claude",
    "/usr/local/bin/claude",
    "/usr/bin/claude",
    "~/.local/bin/claude",
)

#: Returned when nothing in the search list exists.
DEFAULT_FALLBACK_PATH = "/opt/homebrew/bin/claude"

#: Maximum conversation turns folded into a prompt.
HISTORY_LIMIT = 20

#: Stable machine-readable error codes carried by ``ErrorEvent.code``.
SPAWN_ERROR = "SPAWN_ERROR"
AUTH_ERROR = "AUTH_ERROR"
PROCESS_EXIT = "PROCESS_EXIT"
INTERNAL_ERROR = "INTERNAL_ERROR"

#: stderr phrases (matched case-insensitively) that mean the CLI is not logged in.
DEFAULT_AUTH_PHRASES = (
    "not logged in",
    "authentication",
    "invalid api key",
    "please run /login",
)
