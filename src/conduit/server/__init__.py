"""HTTP transport for the chat bridge."""

from conduit.server.app import create_app, sse_events

__all__ = ["create_app", "sse_events"]
