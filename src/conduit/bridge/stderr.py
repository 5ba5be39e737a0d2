"""Side-channel detection of CLI authentication failures on stderr."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from conduit.constants import AUTH_ERROR, DEFAULT_AUTH_PHRASES
from conduit.events.models import ErrorEvent

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGE = (
    'Claude CLI is not authenticated. Run "claude login" in your terminal.'
)


class AuthErrorDetector:
    """Scans stderr chunks and reports an auth failure at most once.

    Also accumulates the full stderr text so the pipeline can use it as
    the message for a non-zero exit.
    """

    def __init__(self, phrases: Iterable[str] = DEFAULT_AUTH_PHRASES) -> None:
        self._phrases = tuple(p.lower() for p in phrases if p)
        self._chunks: list[str] = []
        self._tail = ""
        self._reported = False

    @property
    def reported(self) -> bool:
        return self._reported

    @property
    def text(self) -> str:
        """Everything seen on stderr so far."""
        return "".join(self._chunks)

    def scan(self, chunk: str) -> ErrorEvent | None:
        """Inspect *chunk*; return an ``AUTH_ERROR`` event on the first match."""
        self._chunks.append(chunk)
        if self._reported or not self._phrases:
            return None

        # Keep a short tail so a phrase split across chunks still matches.
        window = (self._tail + chunk).lower()
        longest = max(len(p) for p in self._phrases)
        self._tail = window[-longest:]

        for phrase in self._phrases:
            if phrase in window:
                self._reported = True
                logger.warning("CLI reported an authentication problem: %s", phrase)
                return ErrorEvent(content=AUTH_ERROR_MESSAGE, code=AUTH_ERROR)
        return None
