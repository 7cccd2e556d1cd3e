"""Domain models shared by rooms, the registry and the event handlers."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any

from .cards import Card


class Phase(str, Enum):
    VOTING = "voting"
    REVEALED = "revealed"


@dataclass(frozen=True)
class Identity:
    """Logical participant a connection speaks for."""

    participant_id: str
    name: str


@dataclass
class Participant:
    participant_id: str
    name: str
    connection_id: str

    @property
    def identity(self) -> Identity:
        return Identity(participant_id=self.participant_id, name=self.name)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.participant_id, "name": self.name}


@dataclass
class RoomSettings:
    only_host_can_reveal: bool = True
    allow_reveal_with_missing_votes: bool = False

    def merge(self, **changes: Any) -> None:
        """Apply a partial update; fields not given keep their value."""
        known = {item.name for item in fields(self)}
        for key, value in changes.items():
            if key in known and value is not None:
                setattr(self, key, bool(value))

    def to_dict(self) -> dict[str, bool]:
        return {
            "onlyHostCanReveal": self.only_host_can_reveal,
            "allowRevealWithMissingVotes": self.allow_reveal_with_missing_votes,
        }


@dataclass(frozen=True)
class UserSelection:
    name: str
    card: Card


@dataclass(frozen=True)
class VoteResults:
    user_selections: list[UserSelection] = field(default_factory=list)
    most_selected: Card | None = None
    average: float = 0.0
    total_votes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "userSelections": [{"user": item.name, "card": item.card} for item in self.user_selections],
            "mostSelected": self.most_selected,
            "average": self.average,
            "totalVotes": self.total_votes,
        }
