import pytest

from scrumpoker.backend.errors import UnknownConnection
from scrumpoker.backend.models import Participant
from scrumpoker.backend.presence import PresenceReconciler
from scrumpoker.backend.room import Room


def _room_with(participant: Participant) -> Room:
    room = Room(code="ROOM1", creator=participant)
    room.add_participant(participant)
    return room


def test_register_issues_identity_keyed_by_connection() -> None:
    presence = PresenceReconciler()

    identity = presence.register("conn-1", "Ana")

    assert identity.participant_id == "conn-1"
    assert identity.name == "Ana"
    assert presence.resolve("conn-1") == identity
    assert len(presence) == 1


def test_resolve_unknown_connection_raises() -> None:
    presence = PresenceReconciler()

    with pytest.raises(UnknownConnection):
        presence.resolve("never-joined")


def test_reconcile_creates_fresh_participant_for_new_name() -> None:
    presence = PresenceReconciler()
    presence.register("conn-1", "Ana")
    presence.register("conn-2", "Bob")
    room = _room_with(presence.participant_for("conn-1"))

    participant, reconnected = presence.reconcile("conn-2", room)

    assert reconnected is False
    assert participant.participant_id == "conn-2"
    assert participant.connection_id == "conn-2"


def test_reconcile_reattaches_member_with_same_name() -> None:
    presence = PresenceReconciler()
    presence.register("conn-1", "Ana")
    room = _room_with(presence.participant_for("conn-1"))
    presence.register("conn-2", "Ana")

    participant, reconnected = presence.reconcile("conn-2", room)

    assert reconnected is True
    assert participant.participant_id == "conn-1"
    assert room.get_member("conn-1").connection_id == "conn-2"
    assert presence.resolve("conn-2").participant_id == "conn-1"
    assert room.member_count == 1


def test_release_forgets_connection() -> None:
    presence = PresenceReconciler()
    presence.register("conn-1", "Ana")

    released = presence.release("conn-1")

    assert released is not None
    assert presence.lookup("conn-1") is None
    assert presence.release("conn-1") is None
