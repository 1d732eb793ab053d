import pytest

from conftest import PLAYERS, fill_room, play_clues
from impostor.game.errors import (
    AlreadyJoined,
    CharacterLocked,
    CharacterTaken,
    GameInProgress,
    InvalidCharacter,
    RoomFull,
    RoomNotFound,
)


def test_join_unknown_room(service):
    with pytest.raises(RoomNotFound):
        service.join_room("NOPE", "sid-a", "A", "Lion")


def test_first_joiner_hosts_and_roster_is_broadcast(service, gateway):
    room = fill_room(service, 2)

    assert room.host_id == "sid-a"
    roster = gateway.last("room:roster")
    assert roster["host"] == "sid-a"
    assert roster["players"] == [
        {"id": "sid-a", "name": "A", "character": "Lion"},
        {"id": "sid-b", "name": "B", "character": "Wolf"},
    ]


def test_join_returns_assigned_character(service):
    room = service.create_room()
    assert service.join_room(room.code, "sid-a", "A", "Tiger") == "Tiger"


def test_room_full_at_seven(service):
    room = fill_room(service, 7)
    sid, name, character = PLAYERS[7]
    with pytest.raises(RoomFull):
        service.join_room(room.code, sid, name, character)
    assert len(room.players) == 7


def test_invalid_character(service, lobby):
    with pytest.raises(InvalidCharacter):
        service.join_room(lobby.code, "sid-d", "D", "Dragon")


def test_character_taken_by_another_name(service, lobby):
    with pytest.raises(CharacterTaken):
        service.join_room(lobby.code, "sid-d", "D", "Lion")
    assert "sid-d" not in lobby.players


def test_cannot_join_mid_game(service, started):
    with pytest.raises(GameInProgress):
        service.join_room(started.code, "sid-d", "D", "Fox")

    # Rejoining under an existing name is blocked too.
    with pytest.raises(GameInProgress):
        service.join_room(started.code, "sid-a2", "A", "Lion")


def test_rejoin_same_name_replaces_slot_and_keeps_host(service, lobby, gateway):
    service.join_room(lobby.code, "sid-a2", "A", "Lion")

    assert "sid-a" not in lobby.players
    assert lobby.players["sid-a2"].name == "A"
    assert lobby.players["sid-a2"].character == "Lion"
    assert lobby.host_id == "sid-a2"
    assert len(lobby.players) == 3
    assert gateway.last("room:roster")["host"] == "sid-a2"


def test_rejoin_with_other_character_is_locked(service, lobby):
    with pytest.raises(CharacterLocked) as exc:
        service.join_room(lobby.code, "sid-b2", "B", "Tiger")

    assert exc.value.character == "Wolf"
    assert "sid-b" in lobby.players
    assert "sid-b2" not in lobby.players


def test_rejoin_during_reveal_keeps_role(service, started):
    play_clues(service, started)
    for sid in list(started.players):
        service.cast_vote(started.code, sid, "A")
    assert started.phase == "reveal"

    impostor_id = started.impostor_id()
    impostor = started.players[impostor_id]
    service.join_room(started.code, "sid-new", impostor.name, impostor.character)

    assert started.impostor_id() == "sid-new"
    assert sum(p.role == "impostor" for p in started.players.values()) == 1


def test_new_player_may_join_during_reveal(service, started):
    play_clues(service, started)
    for sid in list(started.players):
        service.cast_vote(started.code, sid, "B")

    service.join_room(started.code, "sid-d", "D", "Fox")
    assert started.players["sid-d"].role is None


def test_same_connection_joining_twice(service, lobby):
    assert service.join_room(lobby.code, "sid-a", "A", "Lion") == "Lion"
    assert len(lobby.players) == 3

    with pytest.raises(AlreadyJoined):
        service.join_room(lobby.code, "sid-a", "Z", "Tiger")


def test_check_characters(service, lobby):
    result = service.check_characters(lobby.code)
    assert sorted(result["taken"]) == ["Lion", "Owl", "Wolf"]
    assert "Tiger" in result["available"]

    unknown = service.check_characters("NOPE")
    assert unknown["taken"] == []
    assert len(unknown["available"]) == 20
