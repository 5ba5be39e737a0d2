"""Tests for Claude CLI executable discovery."""

from __future__ import annotations

from pathlib import Path

from conduit.bridge.locator import locate_executable
from conduit.constants import DEFAULT_FALLBACK_PATH


class TestLocateExecutable:
    def test_env_override_is_verbatim(self, tmp_path: Path) -> None:
        existing = tmp_path / "claude"
        existing.touch()
        path = locate_executable(
            env={"CLAUDE_CLI_PATH": "/does/not/exist/claude"},
            search_paths=[str(existing)],
        )
        assert path == "/does/not/exist/claude"

    def test_empty_override_is_ignored(self, tmp_path: Path) -> None:
        existing = tmp_path / "claude"
        existing.touch()
        path = locate_executable(env={"CLAUDE_CLI_PATH": ""}, search_paths=[str(existing)])
        assert path == str(existing)

    def test_first_existing_search_path(self, tmp_path: Path) -> None:
        second = tmp_path / "b" / "claude"
        third = tmp_path / "c" / "claude"
        for p in (second, third):
            p.parent.mkdir()
            p.touch()
        path = locate_executable(
            env={},
            search_paths=[str(tmp_path / "a" / "claude"), str(second), str(third)],
        )
        assert path == str(second)

    def test_fallback_when_nothing_exists(self, tmp_path: Path) -> None:
        path = locate_executable(
            env={},
            search_paths=[str(tmp_path / "missing")],
            fallback="/fallback/claude",
        )
        assert path == "/fallback/claude"

    def test_default_fallback(self, tmp_path: Path) -> None:
        path = locate_executable(env={}, search_paths=[str(tmp_path / "missing")])
        assert path == DEFAULT_FALLBACK_PATH

    def test_expands_home(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        target = tmp_path / ".local" / "bin" / "claude"
        target.parent.mkdir(parents=True)
        target.touch()
        path = locate_executable(env={}, search_paths=["~/.local/bin/claude"])
        assert path == str(target)

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("CLAUDE_CLI_PATH", "/custom/claude")
        assert locate_executable() == "/custom/claude"
