"""FastAPI app: websocket event transport, informational endpoints and idle sweep."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .codes import generate_connection_id
from .config import BackendSettings, load_settings
from .errors import InvalidPayload
from .handlers import Outbound, SessionHandlers
from .registry import RoomRegistry
from .schemas import EventEnvelope

logger = logging.getLogger(__name__)


class ConnectionHub:
    """Tracks open websockets by connection id and delivers outbound messages."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}

    def __len__(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = generate_connection_id()
        self._connections[connection_id] = websocket
        logger.info("User connected: %s", connection_id)
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)

    async def send(self, connection_id: str, message: dict[str, Any]) -> None:
        websocket = self._connections.get(connection_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message)
        except (RuntimeError, WebSocketDisconnect):
            self.disconnect(connection_id)

    async def deliver(self, outbound: Iterable[Outbound]) -> None:
        for item in outbound:
            message = item.to_message()
            for connection_id in item.recipients:
                await self.send(connection_id, message)


async def sweep_forever(registry: RoomRegistry, interval: float, retention: timedelta) -> None:
    while True:
        await asyncio.sleep(interval)
        removed = registry.sweep(now=datetime.now(timezone.utc), retention=retention)
        if removed:
            logger.info("Idle sweep removed %d room(s)", len(removed))


def create_app(settings: BackendSettings | None = None, handlers: SessionHandlers | None = None) -> FastAPI:
    app_settings = settings if settings is not None else load_settings()
    session = handlers if handlers is not None else SessionHandlers()
    hub = ConnectionHub()

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(
            sweep_forever(
                registry=session.registry,
                interval=app_settings.sweep_interval_seconds,
                retention=timedelta(seconds=app_settings.room_retention_seconds),
            )
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(title="Scrum Poker API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(app_settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.state.settings = app_settings
    app.state.session = session
    app.state.hub = hub

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "rooms": session.registry.room_count,
            "users": len(session.presence),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/room/{code}")
    def room_info(code: str) -> dict[str, Any]:
        room = session.registry.get(code)
        if room is None:
            raise HTTPException(status_code=404, detail="Room not found")
        return room.info()

    @app.websocket("/ws")
    async def events_ws(websocket: WebSocket) -> None:
        connection_id = await hub.connect(websocket)
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    envelope = EventEnvelope.model_validate_json(raw)
                except ValidationError:
                    error = InvalidPayload("Messages must be JSON objects with an 'event' name")
                    await hub.send(connection_id, {"event": "error", "data": error.to_payload()})
                    continue
                await hub.deliver(session.handle(connection_id, envelope.event, envelope.data))
        except WebSocketDisconnect:
            pass
        finally:
            outbound = session.disconnect(connection_id)
            hub.disconnect(connection_id)
            await hub.deliver(outbound)

    return app


app = create_app()
