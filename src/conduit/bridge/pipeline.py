"""Chat pipeline — one CLI subprocess streamed into one output channel."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import logging
import os

from conduit.bridge.channel import OutputChannel
from conduit.bridge.helpers import format_stderr_preview
from conduit.bridge.locator import locate_executable
from conduit.bridge.process import ProcessHandle, spawn
from conduit.bridge.prompt import compose_prompt
from conduit.bridge.reader import LineBuffer
from conduit.bridge.stderr import AuthErrorDetector
from conduit.bridge.translator import translate_line
from conduit.config.models import Settings
from conduit.constants import INTERNAL_ERROR, PROCESS_EXIT, SPAWN_ERROR
from conduit.events.models import ChatRequest, ErrorEvent

logger = logging.getLogger(__name__)

#: Bytes requested per read from the child's stdout/stderr.
_CHUNK_SIZE = 65_536

#: Maximum stderr characters carried in a non-zero exit error.
_MAX_STDERR_CHARS = 2048

#: Strong references to running pipeline tasks so they are not collected.
_background_tasks: set[asyncio.Task[None]] = set()


class ChatPipeline:
    """Runs a single chat request end to end.

    Owns exactly one ``ProcessHandle`` — nothing here is shared between
    requests.  Every path through ``run()`` (spawn failure, non-zero
    exit, client cancellation, unexpected errors) ends with the channel
    finished and the process reaped.
    """

    def __init__(
        self,
        request: ChatRequest,
        settings: Settings | None = None,
    ) -> None:
        self._request = request
        self._settings = settings if settings is not None else Settings()
        self.channel = OutputChannel()
        self._handle: ProcessHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._kill_timer: asyncio.TimerHandle | None = None

    @property
    def handle(self) -> ProcessHandle | None:
        """The live process handle, once spawned."""
        return self._handle

    @property
    def workspace(self) -> str:
        return (
            self._request.workspace_path
            or self._settings.chat.workspace
            or os.getcwd()
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> OutputChannel:
        """Schedule ``run()`` in the background and return the channel."""
        if self._task is None:
            task = asyncio.create_task(self.run())
            _background_tasks.add(task)
            task.add_done_callback(_background_tasks.discard)
            self._task = task
        return self.channel

    def cancel(self) -> None:
        """Client disconnected — stop the process and finish the stream."""
        self.channel.cancel()

    async def wait_closed(self) -> None:
        """Wait until the background run has reaped its process."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def run(self) -> None:
        """Drive the subprocess and push its events until it exits."""
        try:
            await self._run()
        except asyncio.CancelledError:
            self.channel.finish()
            raise
        except Exception as exc:
            logger.exception("Chat pipeline failed")
            self.channel.push(
                ErrorEvent(content=f"Claude CLI bridge error: {exc}", code=INTERNAL_ERROR)
            )
        finally:
            if self._kill_timer is not None:
                self._kill_timer.cancel()
            if self._handle is not None:
                await self._handle.aclose(self._settings.cli.kill_grace)
            self.channel.finish()

    async def _run(self) -> None:
        cli = self._settings.cli
        prompt = compose_prompt(
            self._request.message,
            self._request.conversation_history,
            limit=self._settings.chat.history_limit,
        )
        executable = locate_executable(
            search_paths=cli.search_paths,
            fallback=cli.fallback_path,
        )

        if self.channel.cancelled:
            return

        try:
            handle = await spawn(
                prompt,
                self.workspace,
                executable=executable,
                on_started=self._attach,
            )
        except OSError as exc:
            logger.error("Failed to spawn Claude CLI at %s: %s", executable, exc)
            self.channel.push(
                ErrorEvent(content=f"Failed to run Claude CLI: {exc}", code=SPAWN_ERROR)
            )
            return

        detector = AuthErrorDetector(cli.auth_phrases)
        stderr_task = asyncio.create_task(self._pump_stderr(handle, detector))
        try:
            await self._pump_stdout(handle)
            await stderr_task
        finally:
            if not stderr_task.done():
                stderr_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await stderr_task

        returncode = await handle.wait()
        self._classify_exit(returncode, handle, detector)

    # ------------------------------------------------------------------ #
    # Stream pumps
    # ------------------------------------------------------------------ #

    async def _pump_stdout(self, handle: ProcessHandle) -> None:
        stdout = handle.stdout
        if stdout is None:
            return

        lines = LineBuffer()
        while True:
            chunk = await stdout.read(_CHUNK_SIZE)
            if not chunk:
                break
            for line in lines.feed(chunk):
                self._emit_line(line)

        tail = lines.flush()
        if tail is not None:
            self._emit_line(tail)

    async def _pump_stderr(
        self, handle: ProcessHandle, detector: AuthErrorDetector
    ) -> None:
        stderr = handle.stderr
        if stderr is None:
            return

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stderr.read(_CHUNK_SIZE)
            if not chunk:
                break
            text = decoder.decode(chunk)
            if not text:
                continue
            logger.debug("pid %s stderr: %s", handle.pid, text.rstrip())
            event = detector.scan(text)
            if event is not None:
                self.channel.push(event)

    def _emit_line(self, line: str) -> None:
        event = translate_line(line)
        if event is not None:
            self.channel.push(event)

    # ------------------------------------------------------------------ #
    # Exit handling
    # ------------------------------------------------------------------ #

    def _classify_exit(
        self,
        returncode: int,
        handle: ProcessHandle,
        detector: AuthErrorDetector,
    ) -> None:
        if returncode == 0:
            logger.info("pid %s: CLI exited cleanly", handle.pid)
            return

        if handle.terminated or self.channel.cancelled:
            logger.info("pid %s: CLI stopped after cancel (code %s)", handle.pid, returncode)
            return

        stderr_text = detector.text.strip()
        logger.error(
            "pid %s: CLI exited with code %s. Stderr:\n  %s",
            handle.pid,
            returncode,
            format_stderr_preview(stderr_text),
        )
        message = (
            stderr_text[:_MAX_STDERR_CHARS]
            if stderr_text
            else f"Claude CLI exited with code {returncode}"
        )
        self.channel.push(ErrorEvent(content=message, code=PROCESS_EXIT))

    def _attach(self, handle: ProcessHandle) -> None:
        # Runs before the prompt is written; a cancel already seen fires now.
        self._handle = handle
        self.channel.on_cancel(self._on_client_cancel)

    def _on_client_cancel(self) -> None:
        handle = self._handle
        if handle is None or not handle.terminate():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._kill_timer = loop.call_later(self._settings.cli.kill_grace, handle.kill)
