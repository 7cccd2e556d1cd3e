"""Backend package for the scrum poker server."""

from .cards import CARD_CATALOG, is_numeric, is_valid
from .codes import generate_connection_id, generate_room_code
from .config import BackendSettings, load_settings
from .handlers import Outbound, SessionHandlers
from .models import Identity, Participant, Phase, RoomSettings, VoteResults
from .presence import PresenceReconciler
from .registry import RoomRegistry
from .room import Room

__all__ = [
    "BackendSettings",
    "CARD_CATALOG",
    "generate_connection_id",
    "generate_room_code",
    "Identity",
    "is_numeric",
    "is_valid",
    "load_settings",
    "Outbound",
    "Participant",
    "Phase",
    "PresenceReconciler",
    "Room",
    "RoomRegistry",
    "RoomSettings",
    "SessionHandlers",
    "VoteResults",
]
