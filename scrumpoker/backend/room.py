"""Room state machine: membership, voting rounds, host authority and results."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .cards import Card, is_numeric, is_valid
from .errors import InvalidCard
from .models import Participant, Phase, RoomSettings, UserSelection, VoteResults

logger = logging.getLogger(__name__)

SELECTED_MARKER = "selected"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _round_half_away_from_zero(value: Decimal, places: str = "0.01") -> float:
    return float(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


class Room:
    """One voting session addressed by a short code.

    The host id is never reassigned implicitly: when the host leaves it keeps
    pointing at the departed participant until ``transfer_host`` is called.
    """

    def __init__(self, code: str, creator: Participant, created_at: datetime | None = None) -> None:
        self.code = code
        self.creator_id = creator.participant_id
        self.host_id = creator.participant_id
        self.settings = RoomSettings()
        self.phase = Phase.VOTING
        self.revealed_at: datetime | None = None
        self.created_at = created_at if created_at is not None else _utc_now()
        self._members: dict[str, Participant] = {}
        self._selections: dict[str, Card] = {}

    # -------------------- Membership -------------------- #

    @property
    def members(self) -> list[Participant]:
        return list(self._members.values())

    @property
    def member_count(self) -> int:
        return len(self._members)

    @property
    def is_empty(self) -> bool:
        return not self._members

    def has_member(self, participant_id: str) -> bool:
        return participant_id in self._members

    def get_member(self, participant_id: str) -> Participant | None:
        return self._members.get(participant_id)

    def find_member_by_name(self, name: str) -> Participant | None:
        for member in self._members.values():
            if member.name == name:
                return member
        return None

    def member_for_connection(self, connection_id: str) -> Participant | None:
        for member in self._members.values():
            if member.connection_id == connection_id:
                return member
        return None

    def connection_ids(self, exclude: str | None = None) -> tuple[str, ...]:
        return tuple(
            member.connection_id for member in self._members.values() if member.connection_id != exclude
        )

    def add_participant(self, participant: Participant) -> None:
        existing = self._members.get(participant.participant_id)
        if existing is not None:
            existing.name = participant.name
            existing.connection_id = participant.connection_id
            return
        self._members[participant.participant_id] = participant

    def remove_participant(self, participant_id: str) -> Participant | None:
        self._selections.pop(participant_id, None)
        return self._members.pop(participant_id, None)

    def is_host(self, participant_id: str) -> bool:
        return self.host_id == participant_id

    def transfer_host(self, new_host_id: str) -> bool:
        if new_host_id not in self._members:
            return False
        self.host_id = new_host_id
        return True

    def update_settings(self, **changes: Any) -> None:
        self.settings.merge(**changes)

    # -------------------- Voting round -------------------- #

    @property
    def selection_count(self) -> int:
        return len(self._selections)

    def has_selected(self, participant_id: str) -> bool:
        return participant_id in self._selections

    def select_card(self, participant_id: str, card: Card) -> bool:
        """Record ``card`` for the participant; returns False when ignored."""
        if not is_valid(card):
            raise InvalidCard(card)
        if self.phase is not Phase.VOTING or participant_id not in self._members:
            return False
        self._selections[participant_id] = card
        return True

    def can_reveal(self, requester_id: str) -> bool:
        if self.settings.only_host_can_reveal and requester_id != self.host_id:
            return False
        if self.settings.allow_reveal_with_missing_votes:
            return True
        return len(self._selections) == len(self._members)

    def reveal(self, now: datetime | None = None) -> None:
        self.phase = Phase.REVEALED
        self.revealed_at = now if now is not None else _utc_now()
        logger.info("Cards revealed in room %s", self.code)

    def reset(self) -> None:
        self.phase = Phase.VOTING
        self._selections.clear()
        self.revealed_at = None

    def compute_results(self) -> VoteResults | None:
        if self.phase is not Phase.REVEALED:
            return None

        selections: list[UserSelection] = []
        counts: Counter[Card] = Counter()
        numeric_values: list[int] = []
        for participant_id, card in self._selections.items():
            member = self._members.get(participant_id)
            if member is None:
                continue
            selections.append(UserSelection(name=member.name, card=card))
            counts[card] += 1
            if is_numeric(card):
                numeric_values.append(int(card))

        # most_common keeps first-encountered order among equal counts
        most_selected = counts.most_common(1)[0][0] if counts else None
        average = 0.0
        if numeric_values:
            average = _round_half_away_from_zero(Decimal(sum(numeric_values)) / Decimal(len(numeric_values)))

        return VoteResults(
            user_selections=sorted(selections, key=lambda item: item.name),
            most_selected=most_selected,
            average=average,
            total_votes=len(selections),
        )

    # -------------------- Projections -------------------- #

    def _visible_card(self, participant_id: str) -> Card | None:
        if participant_id not in self._selections:
            return None
        if self.phase is Phase.REVEALED:
            return self._selections[participant_id]
        return SELECTED_MARKER

    def snapshot(self) -> dict[str, Any]:
        """Client facing room state; card values stay hidden until reveal."""
        users = [
            {
                "id": member.participant_id,
                "name": member.name,
                "isHost": member.participant_id == self.host_id,
                "hasSelected": member.participant_id in self._selections,
                "selectedCard": self._visible_card(member.participant_id),
            }
            for member in self._members.values()
        ]
        return {
            "code": self.code,
            "users": users,
            "phase": self.phase.value,
            "selections": {pid: self._visible_card(pid) for pid in self._selections},
            "revealedAt": _isoformat(self.revealed_at),
            "hostId": self.host_id,
            "creatorId": self.creator_id,
            "settings": self.settings.to_dict(),
            "createdAt": _isoformat(self.created_at),
        }

    def info(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "userCount": len(self._members),
            "phase": self.phase.value,
            "createdAt": _isoformat(self.created_at),
        }
