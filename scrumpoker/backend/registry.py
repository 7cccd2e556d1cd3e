"""In-memory registry owning every live room."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .codes import generate_room_code, normalize_room_code
from .errors import RoomNotFound
from .models import Participant
from .room import Room

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=24)


@dataclass
class RoomRegistry:
    code_factory: Callable[[set[str]], str] = generate_room_code
    _rooms: dict[str, Room] = field(default_factory=dict, init=False, repr=False)

    def create(self, host: Participant, now: datetime | None = None) -> Room:
        """Create a room with ``host`` as creator, host and first member."""
        code = self.code_factory(set(self._rooms))
        room = Room(code=code, creator=host, created_at=now)
        room.add_participant(host)
        self._rooms[code] = room
        logger.info("User %s created room %s", host.name, code)
        return room

    def get(self, code: str) -> Room | None:
        return self._rooms.get(normalize_room_code(code))

    def require(self, code: str) -> Room:
        room = self.get(code)
        if room is None:
            raise RoomNotFound(normalize_room_code(code))
        return room

    def delete(self, code: str) -> Room | None:
        room = self._rooms.pop(normalize_room_code(code), None)
        if room is not None:
            logger.info("Room %s deleted", room.code)
        return room

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_room_code(code) in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def participant_count(self) -> int:
        return sum(room.member_count for room in self._rooms.values())

    def rooms_with_member(self, participant_id: str) -> list[Room]:
        return [room for room in self._rooms.values() if room.has_member(participant_id)]

    def rooms_with_connection(self, connection_id: str) -> list[Room]:
        return [room for room in self._rooms.values() if room.member_for_connection(connection_id) is not None]

    def sweep(self, now: datetime | None = None, retention: timedelta = DEFAULT_RETENTION) -> list[str]:
        """Remove empty rooms older than ``retention`` and return their codes."""
        current = now if now is not None else datetime.now(timezone.utc)
        expired = [
            code
            for code, room in list(self._rooms.items())
            if room.is_empty and current - room.created_at > retention
        ]
        for code in expired:
            self._rooms.pop(code, None)
            logger.info("Cleaned up inactive room: %s", code)
        return expired
