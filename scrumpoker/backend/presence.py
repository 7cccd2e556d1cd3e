"""Connection to participant bookkeeping, including rejoin-by-name."""

from __future__ import annotations

import logging

from .errors import UnknownConnection
from .models import Identity, Participant
from .room import Room

logger = logging.getLogger(__name__)


class PresenceReconciler:
    """Maps transport connections to logical participants.

    Reconnection is name based: joining a room that already has a member
    with exactly the same display name takes over that member. Two people
    using the same name in one room therefore end up as one participant.
    """

    def __init__(self) -> None:
        self._identities: dict[str, Identity] = {}

    def __len__(self) -> int:
        return len(self._identities)

    def register(self, connection_id: str, name: str) -> Identity:
        identity = Identity(participant_id=connection_id, name=name)
        self._identities[connection_id] = identity
        logger.info("User %s joined with connection %s", name, connection_id)
        return identity

    def lookup(self, connection_id: str) -> Identity | None:
        return self._identities.get(connection_id)

    def resolve(self, connection_id: str) -> Identity:
        identity = self._identities.get(connection_id)
        if identity is None:
            raise UnknownConnection(connection_id)
        return identity

    def participant_for(self, connection_id: str) -> Participant:
        identity = self.resolve(connection_id)
        return Participant(
            participant_id=identity.participant_id,
            name=identity.name,
            connection_id=connection_id,
        )

    def reconcile(self, connection_id: str, room: Room) -> tuple[Participant, bool]:
        """Return the participant this connection joins ``room`` as.

        The boolean is True when an existing member was re-attached to the
        connection instead of a new participant being created.
        """
        identity = self.resolve(connection_id)
        existing = room.find_member_by_name(identity.name)
        if existing is None:
            return self.participant_for(connection_id), False

        existing.connection_id = connection_id
        self._identities[connection_id] = existing.identity
        if existing.participant_id != identity.participant_id:
            logger.info(
                "Connection %s reattached to participant %s in room %s",
                connection_id,
                existing.participant_id,
                room.code,
            )
        return existing, True

    def release(self, connection_id: str) -> Identity | None:
        return self._identities.pop(connection_id, None)
