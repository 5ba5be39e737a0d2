"""Line-buffered reader — turns arbitrary stdout chunks into complete lines."""

from __future__ import annotations

import codecs


class LineBuffer:
    """Accumulates raw chunks and yields newline-terminated lines.

    Holds at most one partial line between calls.  Bytes are decoded
    incrementally, so a UTF-8 sequence split across two chunks is
    reassembled instead of being replaced.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """The partial line carried over to the next chunk."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Add *chunk* and return the complete, stripped, non-empty lines."""
        self._buffer += self._decoder.decode(chunk)
        *complete, self._buffer = self._buffer.split("\n")
        return [line for line in (raw.strip() for raw in complete) if line]

    def flush(self) -> str | None:
        """Return the trailing unterminated line, if any, and reset."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        tail = tail.strip()
        return tail or None
