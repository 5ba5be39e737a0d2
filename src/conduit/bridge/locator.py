"""Resolve the path of the Claude CLI executable."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from conduit.constants import CLI_PATH_ENV, DEFAULT_FALLBACK_PATH, DEFAULT_SEARCH_PATHS

logger = logging.getLogger(__name__)


def locate_executable(
    env: Mapping[str, str] | None = None,
    search_paths: Iterable[str] = DEFAULT_SEARCH_PATHS,
    fallback: str = DEFAULT_FALLBACK_PATH,
) -> str:
    """Return the path to the CLI.

    Resolution order: the ``CLAUDE_CLI_PATH`` override (returned verbatim,
    not checked), then the first existing entry of *search_paths*, then
    *fallback*.  Never raises — a bad path only shows up when the spawn
    fails.
    """
    environ = os.environ if env is None else env
    override = environ.get(CLI_PATH_ENV)
    if override:
        logger.debug("Using CLI path from %s: %s", CLI_PATH_ENV, override)
        return override

    for candidate in search_paths:
        path = Path(candidate).expanduser()
        try:
            found = path.exists()
        except OSError:
            found = False
        if found:
            logger.debug("Found CLI at %s", path)
            return str(path)

    logger.debug("CLI not found in search paths, defaulting to %s", fallback)
    return fallback
