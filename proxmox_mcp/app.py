"""
HTTP surface of the gateway.

    GET  /health   liveness check
    GET  /sse      open the event stream (installs the session)
    POST /message  one client→server JSON-RPC message for that session

Only one stream is served at a time; see proxmox_mcp.manager.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.routing import Route

from proxmox_mcp import SERVICE_NAME, __version__
from proxmox_mcp.config import Settings
from proxmox_mcp.errors import GatewayError, InvalidRequestError, NoActiveSessionError, ParseError
from proxmox_mcp.manager import SessionManager
from proxmox_mcp.server import ProtocolDispatcher, ToolRegistry
from proxmox_mcp.tools import build_registry
from proxmox_mcp.transport import DEFAULT_PING_INTERVAL, JsonRpcResponse, SseTransport
from proxmox_mcp.upstream import ProxmoxClient

logger = logging.getLogger(__name__)

MESSAGE_PATH = "/message"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _rejected(error: GatewayError) -> JSONResponse:
    """400 carrying a JSON-RPC error object for a message that never reached a session."""
    logger.warning(f"Rejected message: {error}")
    return JSONResponse(JsonRpcResponse(None, error=error.to_error()).to_dict(), status_code=400)


def create_app(
    settings: Settings | None = None,
    *,
    client: ProxmoxClient | None = None,
    manager: SessionManager | None = None,
    registry: ToolRegistry | None = None,
    ping_interval: float = DEFAULT_PING_INTERVAL,
) -> Starlette:
    """
    Build the Starlette application.

    Args:
        settings: Gateway settings (defaults to Settings()).
        client: Upstream client; built from settings when omitted.
        manager: Session manager; a fresh one when omitted.
        registry: Tool registry; the Proxmox tools bound to client when omitted.
        ping_interval: Seconds between keep-alive comments on idle streams.
    """
    settings = settings or Settings()
    owns_client = client is None
    client = client or ProxmoxClient.from_settings(settings)
    registry = registry or build_registry(client)
    manager = manager or SessionManager()
    dispatcher = ProtocolDispatcher(registry, SERVICE_NAME, __version__)
    workers: set[asyncio.Task] = set()

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "ok",
            "service": SERVICE_NAME,
            "time": datetime.now(timezone.utc).isoformat(),
            "session_active": manager.active is not None,
        })

    async def sse(request: Request) -> StreamingResponse:
        logger.info("SSE client connected")
        transport = SseTransport(MESSAGE_PATH, ping_interval=ping_interval)
        session = manager.open(transport)

        worker = asyncio.create_task(session.serve(dispatcher))
        workers.add(worker)
        worker.add_done_callback(workers.discard)

        async def stream():
            try:
                async for frame in transport.events():
                    yield frame
            finally:
                logger.info("SSE client disconnected")
                manager.close(session)

        return StreamingResponse(stream(), media_type="text/event-stream", headers=SSE_HEADERS)

    async def message(request: Request) -> JSONResponse | PlainTextResponse:
        try:
            session = manager.require(request.query_params.get("sessionId"))
        except NoActiveSessionError as e:
            return JSONResponse({"error": str(e)}, status_code=404)

        try:
            payload = await request.json()
        except ValueError as e:
            return _rejected(ParseError(f"Invalid JSON: {e}"))

        if session is None:
            logger.info("Dropping message for a superseded session")
            return PlainTextResponse("Accepted", status_code=202)

        if not isinstance(payload, dict):
            return _rejected(InvalidRequestError("Message must be a JSON object"))

        session.deliver(payload)
        return PlainTextResponse("Accepted", status_code=202)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        yield
        if manager.active is not None:
            manager.close(manager.active)
        if owns_client:
            await client.aclose()

    app = Starlette(
        routes=[
            Route("/health", endpoint=health, methods=["GET"]),
            Route("/sse", endpoint=sse, methods=["GET"]),
            Route(MESSAGE_PATH, endpoint=message, methods=["POST"]),
        ],
        middleware=[
            Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"]),
        ],
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.manager = manager
    app.state.dispatcher = dispatcher
    return app
