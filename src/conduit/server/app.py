"""FastAPI app exposing the chat bridge as Server-Sent Events."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from conduit import __version__
from conduit.bridge.locator import locate_executable
from conduit.bridge.pipeline import ChatPipeline
from conduit.bridge.status import probe_status
from conduit.config.models import Settings
from conduit.events.models import ChatRequest, CliStatus, encode_event

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API app bound to *settings*."""
    settings = settings if settings is not None else Settings()

    app = FastAPI(title="conduit", version=__version__)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/ide/chat/status", response_model=CliStatus)
    async def chat_status(request: Request) -> CliStatus:
        cfg: Settings = request.app.state.settings
        executable = locate_executable(
            search_paths=cfg.cli.search_paths,
            fallback=cfg.cli.fallback_path,
        )
        return await probe_status(executable, timeout=cfg.cli.status_timeout)

    @app.post("/api/ide/chat/stream", response_model=None)
    async def chat_stream(
        body: ChatRequest, request: Request
    ) -> StreamingResponse | JSONResponse:
        if not body.message.strip():
            return JSONResponse({"error": "Message is required"}, status_code=400)

        if body.workspace_path and not Path(body.workspace_path).is_dir():
            return JSONResponse(
                {"error": f"Workspace path does not exist: {body.workspace_path}"},
                status_code=400,
            )

        pipeline = ChatPipeline(body, request.app.state.settings)
        pipeline.start()
        return StreamingResponse(
            sse_events(pipeline),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    return app


async def sse_events(pipeline: ChatPipeline) -> AsyncIterator[str]:
    """Frame the pipeline's events as ``data: <json>`` SSE messages.

    When the response is torn down early (client disconnect) the
    generator is closed and the pipeline is cancelled.
    """
    completed = False
    try:
        async for event in pipeline.channel:
            yield f"data: {encode_event(event)}\n\n"
        completed = True
    finally:
        if not completed:
            logger.info("Client disconnected, cancelling chat stream")
            pipeline.cancel()
