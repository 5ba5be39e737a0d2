"""Output channel — the push stream between a pipeline and its client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from conduit.events.models import ChatEvent, DoneEvent

logger = logging.getLogger(__name__)


class OutputChannel:
    """Single-consumer event stream with idempotent completion.

    * ``push()`` after ``finish()`` is a silent no-op, so late writes from
      the stdout or stderr readers never fail.
    * ``finish()`` enqueues exactly one ``DoneEvent``, behind everything
      already pushed, and can be called any number of times.
    * ``cancel()`` is the transport's hook for a client disconnect: it
      runs the registered callbacks once and finishes the stream.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ChatEvent] = asyncio.Queue()
        self._finished = False
        self._cancelled = False
        self._cancel_callbacks: list[Callable[[], object]] = []

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def push(self, event: ChatEvent) -> None:
        """Enqueue *event* unless the stream is already finished."""
        if isinstance(event, DoneEvent):
            self.finish()
            return
        if self._finished:
            logger.debug("Dropping %s event pushed after finish", event.type)
            return
        self._queue.put_nowait(event)

    def finish(self) -> None:
        """Close the stream with a single ``DoneEvent``."""
        if self._finished:
            return
        self._finished = True
        self._queue.put_nowait(DoneEvent())

    def on_cancel(self, callback: Callable[[], object]) -> None:
        """Register *callback* for client cancellation.

        If the channel was already cancelled the callback runs at once.
        """
        if self._cancelled:
            self._run_callback(callback)
            return
        self._cancel_callbacks.append(callback)

    def cancel(self) -> None:
        """Client went away: fire cancel callbacks once, then finish."""
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._cancel_callbacks = self._cancel_callbacks, []
        for callback in callbacks:
            self._run_callback(callback)
        self.finish()

    async def get(self) -> ChatEvent:
        """Wait for the next event."""
        return await self._queue.get()

    async def __aiter__(self) -> AsyncIterator[ChatEvent]:
        while True:
            event = await self._queue.get()
            yield event
            if isinstance(event, DoneEvent):
                return

    @staticmethod
    def _run_callback(callback: Callable[[], object]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Cancel callback %r failed", callback)
