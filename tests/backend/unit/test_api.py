import asyncio
import contextlib
import time
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from scrumpoker.backend.api import create_app, sweep_forever
from scrumpoker.backend.config import BackendSettings
from scrumpoker.backend.handlers import SessionHandlers
from scrumpoker.backend.models import Participant
from scrumpoker.backend.registry import RoomRegistry

SETTINGS = BackendSettings(
    host="127.0.0.1",
    port=3000,
    room_retention_seconds=86400,
    sweep_interval_seconds=3600,
    allowed_origins=("http://localhost:5173",),
    log_level="INFO",
)


def _client(session: SessionHandlers | None = None) -> TestClient:
    return TestClient(create_app(settings=SETTINGS, handlers=session))


def _send(websocket, event: str, data: dict | None = None) -> None:
    websocket.send_json({"event": event, "data": data or {}})


def test_health_reports_room_and_user_counts() -> None:
    client = _client()

    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["rooms"] == 0
    assert body["users"] == 0
    assert body["timestamp"]


def test_room_lookup_returns_404_for_unknown_code() -> None:
    client = _client()

    response = client.get("/room/ZZZZZ")

    assert response.status_code == 404
    assert response.json()["detail"] == "Room not found"


def test_room_lookup_is_case_insensitive() -> None:
    session = SessionHandlers(registry=RoomRegistry(code_factory=lambda existing: "AB12C"))
    session.handle("c1", "join", {"name": "Ana"})
    session.handle("c1", "createRoom", {})
    client = _client(session)

    response = client.get("/room/ab12c")

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "AB12C"
    assert body["userCount"] == 1
    assert body["phase"] == "voting"


def test_websocket_join_and_create_room() -> None:
    client = _client()

    with client.websocket_connect("/ws") as websocket:
        _send(websocket, "join", {"name": "Ana"})
        joined = websocket.receive_json()
        _send(websocket, "createRoom")
        created = websocket.receive_json()

    assert joined["event"] == "joined"
    assert joined["data"]["user"]["name"] == "Ana"
    assert created["event"] == "roomCreated"
    assert created["data"]["room"]["hostId"] == joined["data"]["user"]["id"]


def test_websocket_reports_malformed_messages() -> None:
    client = _client()

    with client.websocket_connect("/ws") as websocket:
        websocket.send_text("not json")
        malformed = websocket.receive_json()
        _send(websocket, "createRoom")
        unknown_user = websocket.receive_json()

    assert malformed["event"] == "error"
    assert malformed["data"]["code"] == "INVALID_PAYLOAD"
    assert unknown_user["event"] == "error"
    assert unknown_user["data"]["code"] == "USER_UNKNOWN"


def test_websocket_round_is_broadcast_to_room() -> None:
    client = _client()

    with client, client.websocket_connect("/ws") as ws_host:
        _send(ws_host, "join", {"name": "Host"})
        ws_host.receive_json()
        _send(ws_host, "createRoom")
        code = ws_host.receive_json()["data"]["room"]["code"]

        with client.websocket_connect("/ws") as ws_guest:
            _send(ws_guest, "join", {"name": "Guest"})
            ws_guest.receive_json()
            _send(ws_guest, "joinRoom", {"roomCode": code})
            assert ws_guest.receive_json()["event"] == "roomJoined"
            assert ws_host.receive_json()["event"] == "userJoined"

            _send(ws_guest, "selectCard", {"roomCode": code, "card": 8})
            host_view = ws_host.receive_json()
            ws_guest.receive_json()
            assert host_view["event"] == "cardSelected"
            assert list(host_view["data"]["room"]["selections"].values()) == ["selected"]

            _send(ws_host, "selectCard", {"roomCode": code, "card": 5})
            ws_host.receive_json()
            ws_guest.receive_json()

            _send(ws_host, "revealCards", {"roomCode": code})
            revealed = ws_guest.receive_json()
            ws_host.receive_json()
            assert revealed["event"] == "cardsRevealed"
            assert revealed["data"]["results"]["average"] == 6.5

        left = ws_host.receive_json()

    assert left["event"] == "userLeft"
    assert len(left["data"]["room"]["users"]) == 1


def _expired_empty_room(registry: RoomRegistry) -> str:
    host = Participant(participant_id="c1", name="Ana", connection_id="c1")
    room = registry.create(host, now=datetime.now(timezone.utc) - timedelta(hours=2))
    room.remove_participant("c1")
    return room.code


def test_sweep_forever_removes_expired_empty_rooms() -> None:
    registry = RoomRegistry()
    code = _expired_empty_room(registry)
    live = registry.create(Participant(participant_id="c2", name="Bob", connection_id="c2"))

    async def run_briefly() -> None:
        task = asyncio.create_task(sweep_forever(registry, interval=0.01, retention=timedelta(hours=1)))
        for _ in range(100):
            await asyncio.sleep(0.01)
            if registry.get(code) is None:
                break
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    asyncio.run(run_briefly())

    assert registry.get(code) is None
    assert registry.get(live.code) is live


def test_lifespan_runs_sweep_with_configured_retention() -> None:
    session = SessionHandlers()
    code = _expired_empty_room(session.registry)
    settings = replace(SETTINGS, sweep_interval_seconds=0.01, room_retention_seconds=3600)

    with TestClient(create_app(settings=settings, handlers=session)) as client:
        status = 200
        for _ in range(100):
            status = client.get(f"/room/{code}").status_code
            if status == 404:
                break
            time.sleep(0.01)

    assert status == 404
    assert session.registry.room_count == 0
