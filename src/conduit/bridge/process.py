"""Process lifecycle — spawn the CLI and guarantee it is stopped exactly once."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

#: Seconds to wait after SIGTERM before SIGKILL.
_SIGTERM_WAIT = 3.0

#: StreamReader buffer limit for the child's pipes (1 MB).
_STREAM_LIMIT = 1_048_576

#: Directories prepended to PATH so the CLI can find node and friends.
_EXTRA_PATH_DIRS = ("/opt/homebrew/bin", "/usr/local/bin", "/usr/bin", "/bin")


def build_command(executable: str, workspace: str) -> list[str]:
    """Arguments for a non-interactive, streaming, JSON-lines CLI run."""
    return [
        executable,
        "--print",
        "--output-format",
        "stream-json",
        "--verbose",
        "--add-dir",
        workspace,
        "--dangerously-skip-permissions",
    ]


def build_environment(base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Inherited environment plus ``NO_COLOR``, ``HOME`` and a widened ``PATH``."""
    env = dict(os.environ if base is None else base)
    home = env.get("HOME") or str(Path.home())
    extra = [*_EXTRA_PATH_DIRS, f"{home}/.local/bin"]
    current = env.get("PATH", "")
    env["PATH"] = os.pathsep.join([*extra, current]) if current else os.pathsep.join(extra)
    env["HOME"] = home
    env["NO_COLOR"] = "1"
    return env


class ProcessHandle:
    """Exclusive owner of one CLI subprocess for the duration of a request.

    ``terminate()`` and ``kill()`` are idempotent and safe to call from
    any actor — the pipeline, the channel's cancel hook, or error
    handling — once the process has exited they do nothing.
    """

    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        self._proc = proc
        self._terminated = False
        self._killed = False
        self._closed = False

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def stdout(self) -> asyncio.StreamReader | None:
        return self._proc.stdout

    @property
    def stderr(self) -> asyncio.StreamReader | None:
        return self._proc.stderr

    @property
    def terminated(self) -> bool:
        """True once we asked the process to stop (as opposed to it exiting)."""
        return self._terminated

    async def send_input(self, text: str) -> None:
        """Write *text* to stdin and close it so the CLI sees EOF."""
        stdin = self._proc.stdin
        if stdin is None:
            return
        try:
            stdin.write(text.encode())
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            logger.warning("pid %s: could not write prompt to stdin: %s", self.pid, exc)
        finally:
            with contextlib.suppress(OSError, RuntimeError):
                stdin.close()

    def terminate(self) -> bool:
        """Send SIGTERM once.  Returns True only for the call that sent it."""
        if self._terminated or self._proc.returncode is not None:
            return False
        self._terminated = True
        logger.info("pid %s: terminating CLI process", self.pid)
        with contextlib.suppress(ProcessLookupError):
            self._proc.terminate()
        return True

    def kill(self) -> bool:
        """Send SIGKILL once.  Returns True only for the call that sent it."""
        if self._killed or self._proc.returncode is not None:
            return False
        self._killed = True
        self._terminated = True
        logger.warning("pid %s: killing CLI process", self.pid)
        with contextlib.suppress(ProcessLookupError):
            self._proc.kill()
        return True

    async def wait(self) -> int:
        return await self._proc.wait()

    async def aclose(self, grace: float = _SIGTERM_WAIT) -> None:
        """Make sure the process is gone: SIGTERM, wait *grace*, then SIGKILL."""
        if self._closed:
            return
        self._closed = True
        if self._proc.returncode is None:
            self.terminate()
            try:
                await asyncio.wait_for(self._proc.wait(), timeout=grace)
            except TimeoutError:
                self.kill()
                await self._proc.wait()


async def spawn(
    prompt: str,
    workspace: str,
    *,
    executable: str,
    env: Mapping[str, str] | None = None,
    on_started: Callable[[ProcessHandle], None] | None = None,
) -> ProcessHandle:
    """Start the CLI in *workspace* and pipe *prompt* to its stdin.

    *on_started* receives the handle as soon as the process exists, before
    the prompt is written, so the caller can stop it while the write is
    still blocked on a full pipe.  If anything goes wrong after the
    process was created it is killed before the error propagates.

    Raises ``OSError`` (including ``FileNotFoundError`` and
    ``PermissionError``) when the executable cannot be started.
    """
    cmd_args = build_command(executable, workspace)
    proc = await asyncio.create_subprocess_exec(
        *cmd_args,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        limit=_STREAM_LIMIT,
        cwd=workspace,
        env=build_environment(env),
        start_new_session=True,
    )
    handle = ProcessHandle(proc)
    logger.info("Spawned CLI %s (pid %s) in %s", executable, handle.pid, workspace)
    try:
        if on_started is not None:
            on_started(handle)
        await handle.send_input(prompt)
    except BaseException:
        handle.kill()
        raise
    return handle
