"""
HexStorm Game Server - FastAPI Application
Authoritative engine for the two-player hex flood-fill game, served over WebSockets
"""

import asyncio
import contextlib
import logging
import os
import uuid
from typing import Optional

from fastapi import FastAPI, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from . import __version__
from .config import ServerConfig
from .connections import ConnectionManager
from .gateway import BroadcastGateway
from .protocol import encode_server_message
from .session import GameSession

# Configure logging
logging.basicConfig(
    level=os.getenv("HEXSTORM_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def _drain_outbox(
    websocket: WebSocket,
    outbox: "asyncio.Queue[BaseModel]",
    connection_id: str,
    gateway: BroadcastGateway,
) -> None:
    """Forward queued server messages to the socket in FIFO order.

    If the socket can no longer be written to, the connection is detached so
    nothing else is queued for it.
    """
    try:
        while True:
            message = await outbox.get()
            await websocket.send_json(encode_server_message(message))
    except (WebSocketDisconnect, RuntimeError) as exc:
        logger.debug("Writer for %s stopped: %r", connection_id, exc)
        gateway.detach(connection_id)


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """Build the FastAPI app holding one game session on ``app.state``."""
    config = config or ServerConfig.from_env()

    app = FastAPI(
        title="HexStorm Game Server",
        description="Authoritative server for the HexStorm hex flood-fill game",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    gateway = BroadcastGateway()
    session = GameSession(config.session, gateway)
    manager = ConnectionManager(
        session,
        gateway,
        report_rejected_moves=config.session.report_rejected_moves,
    )
    app.state.config = config
    app.state.gateway = gateway
    app.state.session = session
    app.state.connections = manager

    @app.get("/health")
    async def health_check():
        """Health check for container orchestration"""
        return {"status": "healthy"}

    @app.get("/state")
    async def game_state(request: Request):
        """Read-only snapshot of the current game, same shape as the gameState event."""
        current: GameSession = request.app.state.session
        return current.state.to_snapshot().model_dump(mode="json", by_alias=True)

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint"""
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    @app.websocket("/ws")
    async def game_socket(websocket: WebSocket):
        """One persistent channel per client.

        Engine handlers run synchronously on the event loop and only enqueue
        outbound messages; a per-connection writer task drains the queue.
        """
        manager: ConnectionManager = websocket.app.state.connections
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        outbox: "asyncio.Queue[BaseModel]" = asyncio.Queue()
        writer = asyncio.create_task(
            _drain_outbox(websocket, outbox, connection_id, websocket.app.state.gateway)
        )
        manager.connect(connection_id, outbox.put_nowait)
        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    break
                raw = frame.get("text")
                if raw is None:
                    raw = frame.get("bytes") or b""
                manager.handle_message(connection_id, raw)
        finally:
            manager.disconnect(connection_id)
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer

    if os.path.isdir(config.static_dir):
        # Mounted last so the API routes above take precedence.
        app.mount("/", StaticFiles(directory=config.static_dir, html=True), name="static")
    else:
        @app.get("/")
        async def root():
            """Service banner when no static client is bundled"""
            return {
                "service": "HexStorm Game Server",
                "status": "running",
                "version": __version__,
            }

    logger.info(
        "HexStorm app created (radius=%d, static_dir=%s)",
        config.session.board_radius,
        config.static_dir,
    )
    return app


def __getattr__(name: str):
    # `uvicorn hexstorm.main:app` builds the env-configured app on first access;
    # importing create_app alone never starts a session.
    if name == "app":
        app = create_app()
        globals()["app"] = app
        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
