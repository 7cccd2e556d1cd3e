"""Session event handlers.

Each inbound event is handled synchronously against the registry and the
presence reconciler and produces a list of ``Outbound`` messages whose
recipients are resolved before the handler returns. Rejected events leave
room state untouched and produce a single ``error`` reply to the sender.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from .errors import InvalidPayload, NotHost, NotPermitted, RoomNotFound, ScrumPokerError, SelfKick, TargetNotMember
from .models import Identity
from .presence import PresenceReconciler
from .registry import RoomRegistry
from .room import Room
from .schemas import (
    CreateRoomRequest,
    JoinRequest,
    KickUserRequest,
    RoomRequest,
    SelectCardRequest,
    TransferHostRequest,
    UpdateSettingsRequest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outbound:
    event: str
    data: dict[str, Any]
    recipients: tuple[str, ...]

    def to_message(self) -> dict[str, Any]:
        return {"event": self.event, "data": self.data}


def _reply(connection_id: str, event: str, data: dict[str, Any]) -> Outbound:
    return Outbound(event=event, data=data, recipients=(connection_id,))


def _to_room(room: Room, event: str, data: dict[str, Any], exclude: str | None = None) -> Outbound:
    return Outbound(event=event, data=data, recipients=room.connection_ids(exclude=exclude))


class SessionHandlers:
    def __init__(self, registry: RoomRegistry | None = None, presence: PresenceReconciler | None = None) -> None:
        self.registry = registry if registry is not None else RoomRegistry()
        self.presence = presence if presence is not None else PresenceReconciler()
        self._routes: dict[str, tuple[type[BaseModel], Callable[[str, Any], list[Outbound]]]] = {
            "join": (JoinRequest, self.join),
            "createRoom": (CreateRoomRequest, self.create_room),
            "joinRoom": (RoomRequest, self.join_room),
            "selectCard": (SelectCardRequest, self.select_card),
            "revealCards": (RoomRequest, self.reveal_cards),
            "resetGame": (RoomRequest, self.reset_game),
            "leaveRoom": (RoomRequest, self.leave_room),
            "transferHost": (TransferHostRequest, self.transfer_host),
            "kickUser": (KickUserRequest, self.kick_user),
            "updateRoomSettings": (UpdateSettingsRequest, self.update_room_settings),
        }

    @property
    def events(self) -> tuple[str, ...]:
        return tuple(self._routes)

    def handle(self, connection_id: str, event: str, payload: dict[str, Any] | None = None) -> list[Outbound]:
        """Dispatch one inbound event and return the messages to send."""
        try:
            route = self._routes.get(event)
            if route is None:
                raise InvalidPayload(f"Unknown event: {event}")
            request_model, handler = route
            try:
                request = request_model.model_validate(payload or {})
            except ValidationError as exc:
                raise InvalidPayload(f"Invalid payload for {event}: {exc.error_count()} error(s)") from exc
            return handler(connection_id, request)
        except ScrumPokerError as exc:
            logger.warning("Rejected %s from %s: %s", event, connection_id, exc)
            return [_reply(connection_id, "error", exc.to_payload())]

    def _member_room(self, code: str, identity: Identity) -> Room:
        room = self.registry.require(code)
        if not room.has_member(identity.participant_id):
            raise RoomNotFound(room.code)
        return room

    def _require_host(self, room: Room, identity: Identity, action: str) -> None:
        if not room.is_host(identity.participant_id):
            raise NotHost(action)

    # -------------------- Events -------------------- #

    def join(self, connection_id: str, request: JoinRequest) -> list[Outbound]:
        identity = self.presence.register(connection_id, request.name)
        return [_reply(connection_id, "joined", {"user": self._user_payload(identity, connection_id)})]

    def create_room(self, connection_id: str, request: CreateRoomRequest) -> list[Outbound]:
        participant = self.presence.participant_for(connection_id)
        room = self.registry.create(participant)
        return [_reply(connection_id, "roomCreated", {"room": room.snapshot(), "user": participant.to_dict()})]

    def join_room(self, connection_id: str, request: RoomRequest) -> list[Outbound]:
        self.presence.resolve(connection_id)
        room = self.registry.require(request.code)
        participant, reconnected = self.presence.reconcile(connection_id, room)
        if not reconnected:
            room.add_participant(participant)
        logger.info("User %s joined room %s", participant.name, room.code)

        snapshot = room.snapshot()
        user = participant.to_dict()
        return [
            _reply(connection_id, "roomJoined", {"room": snapshot, "user": user}),
            _to_room(room, "userJoined", {"user": user, "room": snapshot}, exclude=connection_id),
        ]

    def select_card(self, connection_id: str, request: SelectCardRequest) -> list[Outbound]:
        identity = self.presence.resolve(connection_id)
        room = self._member_room(request.code, identity)
        room.select_card(identity.participant_id, request.card)
        return [_to_room(room, "cardSelected", {"userId": identity.participant_id, "room": room.snapshot()})]

    def reveal_cards(self, connection_id: str, request: RoomRequest) -> list[Outbound]:
        identity = self.presence.resolve(connection_id)
        room = self._member_room(request.code, identity)
        if not room.can_reveal(identity.participant_id):
            raise NotPermitted()
        room.reveal()
        results = room.compute_results()
        return [
            _to_room(
                room,
                "cardsRevealed",
                {"room": room.snapshot(), "results": results.to_dict() if results is not None else None},
            )
        ]

    def reset_game(self, connection_id: str, request: RoomRequest) -> list[Outbound]:
        identity = self.presence.resolve(connection_id)
        room = self._member_room(request.code, identity)
        room.reset()
        logger.info("Game reset in room %s", room.code)
        return [_to_room(room, "gameReset", {"room": room.snapshot()})]

    def leave_room(self, connection_id: str, request: RoomRequest) -> list[Outbound]:
        identity = self.presence.resolve(connection_id)
        room = self._member_room(request.code, identity)
        room.remove_participant(identity.participant_id)
        logger.info("User %s left room %s", identity.name, room.code)
        # An emptied room stays registered until the idle sweep removes it.
        return [
            _to_room(room, "userLeft", {"userId": identity.participant_id, "room": room.snapshot()}),
            _reply(connection_id, "leftRoom", {"success": True}),
        ]

    def transfer_host(self, connection_id: str, request: TransferHostRequest) -> list[Outbound]:
        identity = self.presence.resolve(connection_id)
        room = self._member_room(request.code, identity)
        self._require_host(room, identity, "transfer ownership")
        if not room.transfer_host(request.new_host_id):
            raise TargetNotMember(request.new_host_id)
        logger.info("Host transferred to user %s in room %s", request.new_host_id, room.code)
        return [_to_room(room, "hostTransferred", {"newHostId": request.new_host_id, "room": room.snapshot()})]

    def kick_user(self, connection_id: str, request: KickUserRequest) -> list[Outbound]:
        identity = self.presence.resolve(connection_id)
        room = self._member_room(request.code, identity)
        self._require_host(room, identity, "kick users")
        if request.user_id == identity.participant_id:
            raise SelfKick()
        kicked = room.remove_participant(request.user_id)
        if kicked is None:
            raise TargetNotMember(request.user_id)
        logger.info("User %s was kicked from room %s", request.user_id, room.code)
        return [
            _reply(kicked.connection_id, "kicked", {"roomCode": room.code}),
            _to_room(room, "userKicked", {"userId": request.user_id, "room": room.snapshot()}, exclude=connection_id),
        ]

    def update_room_settings(self, connection_id: str, request: UpdateSettingsRequest) -> list[Outbound]:
        identity = self.presence.resolve(connection_id)
        room = self._member_room(request.code, identity)
        self._require_host(room, identity, "update room settings")
        changes = request.settings.model_dump(exclude_none=True)
        room.update_settings(**changes)
        logger.info("Room settings updated in %s: %s", room.code, changes)
        return [_to_room(room, "roomSettingsUpdated", {"settings": room.settings.to_dict(), "room": room.snapshot()})]

    def disconnect(self, connection_id: str) -> list[Outbound]:
        """Drop the connection from every room it is attached to."""
        identity = self.presence.release(connection_id)
        if identity is not None:
            logger.info("User %s disconnected", identity.name)

        outbound: list[Outbound] = []
        for room in self.registry.rooms_with_connection(connection_id):
            member = room.member_for_connection(connection_id)
            if member is None:
                continue
            room.remove_participant(member.participant_id)
            logger.info("User %s removed from room %s due to disconnect", member.name, room.code)
            if room.is_empty:
                self.registry.delete(room.code)
                continue
            outbound.append(_to_room(room, "userLeft", {"userId": member.participant_id, "room": room.snapshot()}))
        return outbound

    @staticmethod
    def _user_payload(identity: Identity, connection_id: str) -> dict[str, Any]:
        return {"id": identity.participant_id, "name": identity.name, "connectionId": connection_id}
