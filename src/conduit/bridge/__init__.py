"""Streaming bridge between the Claude CLI and chat clients."""

from conduit.bridge.channel import OutputChannel
from conduit.bridge.locator import locate_executable
from conduit.bridge.pipeline import ChatPipeline
from conduit.bridge.process import ProcessHandle, build_command, build_environment, spawn
from conduit.bridge.prompt import compose_prompt
from conduit.bridge.reader import LineBuffer
from conduit.bridge.status import probe_status
from conduit.bridge.stderr import AuthErrorDetector
from conduit.bridge.translator import translate_event, translate_line

__all__ = [
    "AuthErrorDetector",
    "ChatPipeline",
    "LineBuffer",
    "OutputChannel",
    "ProcessHandle",
    "build_command",
    "build_environment",
    "compose_prompt",
    "locate_executable",
    "probe_status",
    "spawn",
    "translate_event",
    "translate_line",
]
