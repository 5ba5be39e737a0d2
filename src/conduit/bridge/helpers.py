"""Shared helper functions for the bridge."""

from __future__ import annotations

import re

_VERSION_RE = re.compile(r"\d+\.\d+\.\d+(?:[-+.][0-9A-Za-z.-]+)?")


def format_stderr_preview(stderr_text: str, max_lines: int = 5) -> str:
    """Extract and format the last N non-empty lines from stderr output."""
    lines = [line for line in stderr_text.split("\n") if line.strip()]
    last = lines[-max_lines:] if len(lines) > max_lines else lines
    return "\n  ".join(last)


def parse_version(output: str) -> str:
    """Pull ``X.Y.Z`` out of ``--version`` output, e.g. ``1.0.3 (Claude Code)``."""
    match = _VERSION_RE.search(output)
    if match:
        return match.group(0)
    return output.strip() or "unknown"
