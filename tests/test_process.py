"""Tests for the CLI process lifecycle manager."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conduit.bridge.process import (
    ProcessHandle,
    build_command,
    build_environment,
    spawn,
)

# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _make_mock_process(returncode: int | None = None) -> MagicMock:
    """Create a mock subprocess whose ``wait()`` sets ``returncode``."""
    proc = MagicMock()
    proc.pid = 1234
    proc.returncode = returncode

    stdin = MagicMock()
    stdin.write = MagicMock()
    stdin.drain = AsyncMock()
    stdin.close = MagicMock()
    proc.stdin = stdin

    async def _wait() -> int:
        proc.returncode = 0 if proc.returncode is None else proc.returncode
        return proc.returncode

    proc.wait = AsyncMock(side_effect=_wait)
    proc.terminate = MagicMock()
    proc.kill = MagicMock()
    return proc


# ------------------------------------------------------------------ #
# Command and environment
# ------------------------------------------------------------------ #


class TestBuildCommand:
    def test_streaming_non_interactive_flags(self) -> None:
        args = build_command("/usr/bin/claude", "/work")
        assert args[0] == "/usr/bin/claude"
        assert "--print" in args
        assert args[args.index("--output-format") + 1] == "stream-json"
        assert "--verbose" in args
        assert args[args.index("--add-dir") + 1] == "/work"
        assert "--dangerously-skip-permissions" in args


class TestBuildEnvironment:
    def test_merges_into_inherited(self) -> None:
        env = build_environment({"HOME": "/home/dev", "PATH": "/custom", "FOO": "bar"})
        assert env["FOO"] == "bar"
        assert env["NO_COLOR"] == "1"
        assert env["HOME"] == "/home/dev"
        parts = env["PATH"].split(os.pathsep)
        assert parts[0] == "/opt/homebrew/bin"
        assert "/home/dev/.local/bin" in parts
        assert parts[-1] == "/custom"

    def test_missing_home_uses_user_home(self) -> None:
        env = build_environment({"PATH": "/bin"})
        assert env["HOME"] == str(Path.home())

    def test_missing_path(self) -> None:
        env = build_environment({"HOME": "/h"})
        assert env["PATH"].split(os.pathsep)[-1] == "/h/.local/bin"

    def test_does_not_mutate_base(self) -> None:
        base = {"HOME": "/h", "PATH": "/bin"}
        build_environment(base)
        assert base == {"HOME": "/h", "PATH": "/bin"}

    def test_defaults_to_os_environ(self, monkeypatch) -> None:
        monkeypatch.setenv("CONDUIT_MARKER", "yes")
        assert build_environment()["CONDUIT_MARKER"] == "yes"


# ------------------------------------------------------------------ #
# ProcessHandle
# ------------------------------------------------------------------ #


class TestTerminate:
    def test_terminate_is_idempotent(self) -> None:
        proc = _make_mock_process()
        handle = ProcessHandle(proc)

        assert handle.terminate() is True
        assert handle.terminate() is False
        assert handle.terminate() is False

        proc.terminate.assert_called_once_with()
        assert handle.terminated

    def test_terminate_after_exit_is_noop(self) -> None:
        proc = _make_mock_process(returncode=0)
        handle = ProcessHandle(proc)

        assert handle.terminate() is False
        proc.terminate.assert_not_called()
        assert not handle.terminated

    def test_terminate_tolerates_vanished_process(self) -> None:
        proc = _make_mock_process()
        proc.terminate.side_effect = ProcessLookupError
        handle = ProcessHandle(proc)
        assert handle.terminate() is True

    def test_kill_is_idempotent(self) -> None:
        proc = _make_mock_process()
        handle = ProcessHandle(proc)
        assert handle.kill() is True
        assert handle.kill() is False
        proc.kill.assert_called_once_with()

    def test_kill_after_terminate(self) -> None:
        proc = _make_mock_process()
        handle = ProcessHandle(proc)
        handle.terminate()
        assert handle.kill() is True
        proc.terminate.assert_called_once_with()
        proc.kill.assert_called_once_with()


class TestAclose:
    async def test_running_process_is_terminated(self) -> None:
        proc = _make_mock_process()
        handle = ProcessHandle(proc)

        await handle.aclose(grace=1.0)

        proc.terminate.assert_called_once_with()
        proc.kill.assert_not_called()

    async def test_escalates_to_kill(self) -> None:
        proc = _make_mock_process()
        killed = asyncio.Event()

        async def _wait() -> int:
            await killed.wait()
            proc.returncode = -9
            return -9

        proc.wait = AsyncMock(side_effect=_wait)
        proc.kill = MagicMock(side_effect=killed.set)
        handle = ProcessHandle(proc)

        await asyncio.wait_for(handle.aclose(grace=0.01), timeout=2.0)

        proc.terminate.assert_called_once_with()
        proc.kill.assert_called_once_with()

    async def test_exited_process_is_left_alone(self) -> None:
        proc = _make_mock_process(returncode=1)
        handle = ProcessHandle(proc)

        await handle.aclose()
        await handle.aclose()

        proc.terminate.assert_not_called()
        proc.kill.assert_not_called()


class TestSendInput:
    async def test_writes_and_closes_stdin(self) -> None:
        proc = _make_mock_process()
        handle = ProcessHandle(proc)

        await handle.send_input("hello")

        proc.stdin.write.assert_called_once_with(b"hello")
        proc.stdin.drain.assert_awaited_once()
        proc.stdin.close.assert_called_once_with()

    async def test_broken_pipe_is_not_fatal(self) -> None:
        proc = _make_mock_process()
        proc.stdin.drain = AsyncMock(side_effect=BrokenPipeError)
        handle = ProcessHandle(proc)

        await handle.send_input("hello")

        proc.stdin.close.assert_called_once_with()


# ------------------------------------------------------------------ #
# spawn
# ------------------------------------------------------------------ #


class TestSpawn:
    async def test_spawn_arguments(self, tmp_path: Path) -> None:
        proc = _make_mock_process()

        with patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec:
            handle = await spawn("the prompt", str(tmp_path), executable="/x/claude")

        assert handle.pid == 1234
        args = mock_exec.call_args[0]
        kwargs = mock_exec.call_args[1]
        assert args[0] == "/x/claude"
        assert "stream-json" in args
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["stdin"] == asyncio.subprocess.PIPE
        assert kwargs["stdout"] == asyncio.subprocess.PIPE
        assert kwargs["stderr"] == asyncio.subprocess.PIPE
        assert kwargs["start_new_session"] is True
        assert kwargs["env"]["NO_COLOR"] == "1"
        proc.stdin.write.assert_called_once_with(b"the prompt")

    async def test_prompt_is_not_shell_escaped(self, tmp_path: Path) -> None:
        proc = _make_mock_process()
        prompt = "it's $HOME `rm -rf` \"quoted\""

        with patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec:
            await spawn(prompt, str(tmp_path), executable="claude")

        assert prompt not in mock_exec.call_args[0]
        proc.stdin.write.assert_called_once_with(prompt.encode())

    async def test_on_started_runs_before_prompt_is_written(self, tmp_path: Path) -> None:
        proc = _make_mock_process()
        seen: list[int] = []

        def _started(handle: ProcessHandle) -> None:
            seen.append(handle.pid)
            proc.stdin.write.assert_not_called()

        with patch("asyncio.create_subprocess_exec", return_value=proc):
            handle = await spawn("p", str(tmp_path), executable="claude", on_started=_started)

        assert seen == [handle.pid]
        proc.stdin.write.assert_called_once_with(b"p")

    async def test_failed_write_kills_process(self, tmp_path: Path) -> None:
        proc = _make_mock_process()
        proc.stdin.drain = AsyncMock(side_effect=RuntimeError("pipe in a bad state"))

        with patch("asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(RuntimeError, match="bad state"):
                await spawn("p", str(tmp_path), executable="claude")

        proc.kill.assert_called_once_with()

    async def test_cancelled_write_kills_process(self, tmp_path: Path) -> None:
        proc = _make_mock_process()
        blocked = asyncio.Event()
        proc.stdin.drain = AsyncMock(side_effect=blocked.wait)

        with patch("asyncio.create_subprocess_exec", return_value=proc):
            task = asyncio.create_task(spawn("p", str(tmp_path), executable="claude"))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        proc.kill.assert_called_once_with()
