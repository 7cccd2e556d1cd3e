"""Domain errors raised by room logic and reported back to the sender.

Every error carries a stable ``code`` so clients can branch on it, and a
human readable message shown in the UI.
"""

from __future__ import annotations

from typing import Any


class ScrumPokerError(Exception):
    """Base class for all recoverable session errors."""

    code = "ERROR"

    def to_payload(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class UnknownConnection(ScrumPokerError):
    code = "USER_UNKNOWN"

    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id
        super().__init__("User not found. Please refresh and try again.")


class RoomNotFound(ScrumPokerError):
    code = "ROOM_NOT_FOUND"

    def __init__(self, room_code: str) -> None:
        self.room_code = room_code
        super().__init__(f"Room {room_code} not found. Please check the room code.")


class InvalidCard(ScrumPokerError):
    code = "INVALID_CARD"

    def __init__(self, card: Any) -> None:
        self.card = card
        super().__init__("Invalid card selected.")


class NotPermitted(ScrumPokerError):
    code = "NOT_PERMITTED"

    def __init__(self) -> None:
        super().__init__("You do not have permission to reveal cards or not all users have voted.")


class NotHost(ScrumPokerError):
    code = "NOT_HOST"

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Only the host can {action}.")


class SelfKick(ScrumPokerError):
    code = "SELF_KICK"

    def __init__(self) -> None:
        super().__init__("You cannot kick yourself.")


class TargetNotMember(ScrumPokerError):
    code = "TARGET_NOT_MEMBER"

    def __init__(self, participant_id: str) -> None:
        self.participant_id = participant_id
        super().__init__(f"User {participant_id} is not in this room.")


class InvalidPayload(ScrumPokerError):
    code = "INVALID_PAYLOAD"


class CapacityExhausted(ScrumPokerError):
    code = "CAPACITY_EXHAUSTED"

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Could not allocate a free room code after {attempts} attempts")
