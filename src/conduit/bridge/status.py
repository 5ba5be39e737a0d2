"""One-shot reachability probe for the Claude CLI."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from conduit.bridge.helpers import format_stderr_preview, parse_version
from conduit.bridge.locator import locate_executable
from conduit.bridge.process import build_environment
from conduit.events.models import CliStatus

logger = logging.getLogger(__name__)

#: Seconds before the probe gives up on ``--version``.
DEFAULT_STATUS_TIMEOUT = 10.0


async def probe_status(
    executable: str | None = None,
    timeout: float = DEFAULT_STATUS_TIMEOUT,
) -> CliStatus:
    """Run ``<cli> --version`` and report whether the CLI is usable.

    Never raises: every failure becomes ``connected=False`` with a
    message.
    """
    path = executable or locate_executable()

    try:
        proc = await asyncio.create_subprocess_exec(
            path,
            "--version",
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=build_environment(),
            start_new_session=True,
        )
    except OSError as exc:
        logger.warning("Status probe could not run %s: %s", path, exc)
        return CliStatus(
            connected=False,
            error=(
                f"Failed to execute Claude CLI at {path}: {exc}. "
                "Make sure Claude CLI is installed."
            ),
        )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            proc.communicate(), timeout=timeout
        )
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        logger.warning("Status probe timed out after %ss", timeout)
        return CliStatus(connected=False, error="Claude CLI check timed out")

    if proc.returncode != 0:
        stderr_text = stderr_bytes.decode(errors="replace").strip()
        logger.warning(
            "Status probe exited with code %s: %s",
            proc.returncode,
            format_stderr_preview(stderr_text),
        )
        return CliStatus(
            connected=False,
            error=stderr_text
            or (
                f"Claude CLI exited with code {proc.returncode}. "
                "Make sure you're logged in with 'claude login'."
            ),
        )

    version = parse_version(stdout_bytes.decode(errors="replace"))
    return CliStatus(connected=True, version=version)
