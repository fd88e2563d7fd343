"""
dufs-mcp HTTP transport
-----------------------
Stateless request/response JSON-RPC over HTTP, plus a minimal SSE endpoint
that announces the connection for clients that expect one.

Endpoints:
- POST /message: one JSON-RPC message in, one response out
- OPTIONS /message: CORS preflight, answered by CORSMiddleware
- GET /sse: ``connection`` event, then held open until the client leaves
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse

from dufs_mcp.version import __version__

from .dispatcher import Dispatcher
from .envelope import EnvelopeDecodeError, decode_message

logger = logging.getLogger("DufsMcp.mcp.http")

CORS_ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
CORS_ALLOWED_HEADERS = ["Content-Type"]
SSE_POLL_INTERVAL_SECONDS = 1.0


async def _sse_events(request: Any, poll_interval: float = SSE_POLL_INTERVAL_SECONDS) -> AsyncIterator[str]:
    payload = json.dumps({"type": "connection", "status": "connected"}, separators=(",", ":"))
    yield f"data: {payload}\n\n"
    while not await request.is_disconnected():
        await asyncio.sleep(poll_interval)
    logger.debug("SSE client disconnected")


def create_app(dispatcher: Dispatcher) -> FastAPI:
    app = FastAPI(
        title="dufs MCP Server",
        description="MCP tools for the dufs file server",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
    )

    @app.post("/message")
    async def message_endpoint(request: Request):
        body = await request.body()
        try:
            message = decode_message(body)
        except EnvelopeDecodeError as exc:
            logger.warning("Rejected HTTP message: %s", exc.reason)
            return PlainTextResponse(f"Invalid JSON: {exc.reason}", status_code=400)

        response = await asyncio.to_thread(dispatcher.handle_message, message)
        if message.is_notification:
            return Response(status_code=202)
        return JSONResponse(response)

    @app.get("/sse")
    async def sse_endpoint(request: Request):
        return StreamingResponse(
            _sse_events(request),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return app
