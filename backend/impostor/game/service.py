from __future__ import annotations

import logging
import random
from functools import partial
from typing import Protocol

from ..config import Config
from .errors import (
    AlreadyJoined,
    AlreadyVoted,
    CharacterLocked,
    CharacterTaken,
    GameInProgress,
    InvalidCharacter,
    NotHost,
    NotInRoom,
    NotYourTurn,
    RoomFull,
    RoomNotFound,
    TooFewPlayers,
    UnknownPlayer,
    WrongPhase,
)
from .models import CLUE_EMPTY, CLUE_TIMED_OUT, Player, Room
from .registry import RoomRegistry
from .scheduler import Scheduler, TimerHandle
from .words import CHARACTERS, is_valid_character, pick_secret, random_choice

logger = logging.getLogger(__name__)

JOINABLE_PHASES = ("lobby", "reveal")
ACTIVE_PHASES = ("clue", "voting")


class Gateway(Protocol):
    def broadcast(self, room_code: str, event: str, payload: dict) -> None: ...

    def send_to(self, player_id: str, event: str, payload: dict) -> None: ...


def tally_votes(votes: dict[str, str]) -> dict[str, int]:
    """Counts per voted name, keyed in the order names first received a vote."""
    tally: dict[str, int] = {}
    for name in votes.values():
        tally[name] = tally.get(name, 0) + 1
    return tally


def pick_suspect(room: Room, tally: dict[str, int]) -> str:
    """Name with the most votes.

    Ties go to the earliest-joined player still in the room; names of players
    who have left rank after that, in the order they first received a vote.
    """
    top = max(tally.values())
    tied = [name for name, count in tally.items() if count == top]
    order = list(tally)

    def rank(name: str) -> tuple[int, int]:
        p = room.find_by_name(name)
        if p is not None:
            return 0, p.joined_seq
        return 1, order.index(name)

    return min(tied, key=rank)


class GameService:
    def __init__(
        self,
        registry: RoomRegistry,
        gateway: Gateway,
        scheduler: Scheduler,
        rng: random.Random | None = None,
        clue_time_sec: int | None = None,
        min_players: int | None = None,
        max_players: int | None = None,
        empty_room_ttl_sec: int | None = None,
    ):
        self.registry = registry
        self.gateway = gateway
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.clue_time_sec = clue_time_sec or Config.CLUE_TIME_SECONDS
        self.min_players = min_players or Config.MIN_PLAYERS
        self.max_players = max_players or Config.MAX_PLAYERS
        self.empty_room_ttl_sec = Config.EMPTY_ROOM_TTL_SEC if empty_room_ttl_sec is None else empty_room_ttl_sec

    # ------------------------------------------------------------------
    # Lookup / broadcast helpers
    # ------------------------------------------------------------------

    def _room(self, code: str) -> Room:
        room = self.registry.get(code)
        if room is None:
            raise RoomNotFound()
        return room

    def _broadcast(self, room: Room, event: str, payload: dict) -> None:
        try:
            self.gateway.broadcast(room.code, event, payload)
        except Exception:
            logger.warning("broadcast %s to room %s failed", event, room.code, exc_info=True)

    def _send(self, player_id: str, event: str, payload: dict) -> None:
        try:
            self.gateway.send_to(player_id, event, payload)
        except Exception:
            logger.warning("send %s to %s failed", event, player_id, exc_info=True)

    def _roster(self, room: Room) -> dict:
        return {
            "roomCode": room.code,
            "players": [
                {"id": pid, "name": p.name, "character": p.character}
                for pid, p in room.players.items()
            ],
            "host": room.host_id,
        }

    def _clues(self, room: Room) -> dict:
        return {
            "roomCode": room.code,
            "clues": [
                {"name": p.name, "clue": p.clue, "character": p.character}
                for p in room.players.values()
            ],
        }

    def _broadcast_roster(self, room: Room) -> None:
        self._broadcast(room, "room:roster", self._roster(room))

    # ------------------------------------------------------------------
    # Room lifecycle
    # ------------------------------------------------------------------

    def create_room(self, creator_id: str | None = None) -> Room:
        room = self.registry.create(created_by=creator_id)
        if self.empty_room_ttl_sec > 0:
            room.idle_timer = self.scheduler.start(partial(self._on_idle, room.code), self.empty_room_ttl_sec)
        return room

    def _on_idle(self, code: str) -> None:
        room = self.registry.get(code)
        if room is None:
            return
        with room.lock:
            if room.idle_timer is not None:
                room.idle_timer.cancel()
                room.idle_timer = None
            if self.registry.destroy_if_empty(code):
                logger.info("room %s expired without players", code)

    def has_player(self, code: str, player_id: str) -> bool:
        room = self.registry.get(code)
        if room is None:
            return False
        with room.lock:
            return player_id in room.players

    def check_characters(self, code: str) -> dict:
        room = self.registry.get(code)
        if room is None:
            return {"available": list(CHARACTERS), "taken": []}
        with room.lock:
            return {
                "available": list(CHARACTERS),
                "taken": [p.character for p in room.players.values()],
            }

    def join_room(self, code: str, player_id: str, name: str, character: str) -> str:
        """Adds (or re-seats) a player and returns the character they hold."""
        room = self._room(code)
        with room.lock:
            # The room may have been torn down while we waited for its lock.
            if self.registry.get(code) is not room:
                raise RoomNotFound()
            if room.phase not in JOINABLE_PHASES:
                raise GameInProgress()

            current = room.players.get(player_id)
            if current is not None:
                if current.name == name and current.character == character:
                    self._broadcast_roster(room)
                    return character
                raise AlreadyJoined()

            if len(room.players) >= self.max_players:
                raise RoomFull()
            if not is_valid_character(character):
                raise InvalidCharacter()

            stale = room.find_by_name(name)
            if stale is not None:
                if stale.character != character:
                    raise CharacterLocked(stale.character)

                del room.players[stale.id]
                room.players[player_id] = Player(
                    id=player_id,
                    name=stale.name,
                    character=stale.character,
                    joined_seq=stale.joined_seq,
                    role=stale.role,
                    clue=stale.clue,
                )
                if room.host_id == stale.id:
                    room.host_id = player_id
                logger.info("room %s: %s rejoined (%s -> %s)", code, name, stale.id, player_id)
            else:
                if any(p.character == character for p in room.players.values()):
                    raise CharacterTaken()
                room.players[player_id] = Player(
                    id=player_id,
                    name=name,
                    character=character,
                    joined_seq=room.next_join_seq(),
                )
                logger.info("room %s: %s joined as %s", code, name, character)

            if room.host_id is None or room.host_id not in room.players:
                room.host_id = player_id

            if room.idle_timer is not None:
                room.idle_timer.cancel()
                room.idle_timer = None

            self._broadcast_roster(room)
            return character

    # ------------------------------------------------------------------
    # Game flow
    # ------------------------------------------------------------------

    def start_game(self, code: str, player_id: str) -> None:
        room = self._room(code)
        with room.lock:
            if player_id != room.host_id:
                raise NotHost()
            if room.phase not in JOINABLE_PHASES:
                raise GameInProgress()

            player_ids = list(room.players)
            if len(player_ids) < self.min_players:
                raise TooFewPlayers(self.min_players)

            impostor_id = random_choice(player_ids, self.rng)
            for pid, p in room.players.items():
                p.role = "impostor" if pid == impostor_id else "investigator"
                p.clue = None

            room.category, room.secret = pick_secret(self.rng)
            room.votes = {}
            room.last_reveal = None
            room.game_count += 1
            room.phase = "clue"
            logger.info("room %s: game %d started with %d players", code, room.game_count, len(player_ids))

            for pid, p in room.players.items():
                payload = {"roomCode": code, "role": p.role, "category": room.category}
                if p.role == "investigator":
                    payload["secret"] = room.secret
                self._send(pid, "game:started", payload)

            self._start_next_turn(room)

    def _cancel_timer(self, room: Room) -> None:
        if room.timer is not None:
            room.timer.cancel()
            room.timer = None

    def _start_next_turn(self, room: Room) -> None:
        self._cancel_timer(room)

        if not room.players:
            room.current_player_id = None
            self.registry.destroy_if_empty(room.code)
            return

        remaining = [pid for pid, p in room.players.items() if p.clue is None]
        if not remaining:
            room.phase = "voting"
            room.current_player_id = None
            room.time_remaining = 0
            room.votes = {}
            self._broadcast(room, "game:phase", {"roomCode": room.code, "phase": "voting"})
            return

        room.phase = "clue"
        room.current_player_id = random_choice(remaining, self.rng)
        room.time_remaining = self.clue_time_sec
        self._broadcast(
            room,
            "turn:update",
            {
                "roomCode": room.code,
                "currentPlayerId": room.current_player_id,
                "currentPlayerName": room.players[room.current_player_id].name,
                "timeRemaining": room.time_remaining,
                "cluesRemaining": len(remaining),
            },
        )

        handle: TimerHandle | None = None

        def tick() -> None:
            self._on_tick(room.code, handle)

        handle = self.scheduler.start(tick, 1)
        room.timer = handle

    def _on_tick(self, code: str, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        room = self.registry.get(code)
        if room is None:
            handle.cancel()
            return

        with room.lock:
            if handle.cancelled or room.timer is not handle or room.phase != "clue":
                return

            room.time_remaining -= 1
            self._broadcast(room, "turn:tick", {"roomCode": code, "timeRemaining": room.time_remaining})
            if room.time_remaining > 0:
                return

            current = room.players.get(room.current_player_id) if room.current_player_id else None
            if current is not None and current.clue is None:
                current.clue = CLUE_TIMED_OUT
                logger.debug("room %s: %s timed out", code, current.name)
                self._broadcast(room, "clues:update", self._clues(room))

            self._start_next_turn(room)

    def submit_clue(self, code: str, player_id: str, text: str, max_length: int | None = None) -> str:
        room = self._room(code)
        with room.lock:
            if room.phase != "clue":
                raise WrongPhase()
            if player_id != room.current_player_id or player_id not in room.players:
                raise NotYourTurn()

            clue = (text or "").strip()[: max_length or Config.MAX_CLUE_LENGTH] or CLUE_EMPTY
            room.players[player_id].clue = clue
            self._broadcast(room, "clues:update", self._clues(room))

            self._start_next_turn(room)
            return clue

    def cast_vote(self, code: str, player_id: str, voted_name: str) -> bool:
        """Records a vote. Returns False (and does nothing) outside the voting phase."""
        room = self._room(code)
        with room.lock:
            if room.phase != "voting":
                return False
            if player_id not in room.players:
                raise NotInRoom()
            if player_id in room.votes:
                raise AlreadyVoted()
            if room.find_by_name(voted_name) is None:
                raise UnknownPlayer()

            room.votes[player_id] = voted_name
            self._broadcast(
                room,
                "vote:progress",
                {"roomCode": code, "totalVotes": len(room.votes), "totalPlayers": len(room.players)},
            )
            self._resolve_votes_if_complete(room)
            return True

    def _resolve_votes_if_complete(self, room: Room) -> None:
        if not room.players or len(room.votes) < len(room.players):
            return

        tally = tally_votes(room.votes)
        chosen = pick_suspect(room, tally)
        chosen_player = room.find_by_name(chosen)
        impostor_id = room.impostor_id()
        impostor = room.players.get(impostor_id) if impostor_id else None

        payload = {
            "roomCode": room.code,
            "chosen": chosen,
            "isImpostor": chosen_player is not None and chosen_player.id == impostor_id,
            "impostorName": impostor.name if impostor else None,
            "secret": room.secret,
            "category": room.category,
            "tally": tally,
            "voteResults": [
                {"voter": room.players[voter].name, "voted": name}
                for voter, name in room.votes.items()
                if voter in room.players
            ],
            "ranAway": False,
        }

        room.phase = "reveal"
        room.current_player_id = None
        room.votes = {}
        room.last_reveal = payload
        logger.info("room %s: reveal, chosen=%s impostor_caught=%s", room.code, chosen, payload["isImpostor"])
        self._broadcast(room, "game:reveal", payload)

    def chat_message(self, code: str, player_id: str, text: str, max_length: int | None = None) -> bool:
        room = self.registry.get(code)
        if room is None:
            return False
        with room.lock:
            player = room.players.get(player_id)
            if room.phase != "voting" or player is None:
                return False
            message = (text or "").strip()[: max_length or Config.MAX_CHAT_LENGTH]
            if not message:
                return False
            self._broadcast(
                room,
                "chat:message",
                {"roomCode": code, "name": player.name, "message": message, "character": player.character},
            )
            return True

    # ------------------------------------------------------------------
    # Departure
    # ------------------------------------------------------------------

    def disconnect(self, player_id: str) -> list[str]:
        """Removes ``player_id`` from every room it is in. Returns the room codes touched."""
        touched = []
        for room in self.registry.rooms_with(player_id):
            with room.lock:
                if self._leave_locked(room, player_id):
                    touched.append(room.code)
        return touched

    def _leave_locked(self, room: Room, player_id: str) -> bool:
        player = room.players.get(player_id)
        if player is None:
            return False

        was_host = room.host_id == player_id
        was_impostor = player.role == "impostor"
        was_current = room.current_player_id == player_id

        del room.players[player_id]
        room.votes.pop(player_id, None)

        if was_impostor and room.phase in ACTIVE_PHASES:
            self._impostor_fled(room, player)

        if was_host or not room.players:
            room.host_id = next(iter(room.players), None)
            if room.host_id:
                logger.info("room %s: host moved to %s", room.code, room.host_id)

        if was_current and room.phase == "clue":
            self._start_next_turn(room)
        elif room.phase == "voting":
            self._resolve_votes_if_complete(room)

        self._broadcast_roster(room)
        self.registry.destroy_if_empty(room.code)
        return True

    def _impostor_fled(self, room: Room, impostor: Player) -> None:
        self._cancel_timer(room)

        payload = {
            "roomCode": room.code,
            "chosen": impostor.name,
            "isImpostor": False,
            "impostorName": impostor.name,
            "secret": room.secret,
            "category": room.category,
            "tally": {},
            "voteResults": [],
            "ranAway": True,
        }

        room.phase = "reveal"
        room.current_player_id = None
        room.time_remaining = 0
        room.votes = {}
        room.last_reveal = payload
        for p in room.players.values():
            p.role = None
            p.clue = None

        logger.info("room %s: impostor %s fled", room.code, impostor.name)
        self._broadcast(room, "game:reveal", payload)

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    def public_state(self, code: str) -> dict:
        room = self._room(code)
        with room.lock:
            current = room.players.get(room.current_player_id) if room.current_player_id else None
            return {
                "code": room.code,
                "phase": room.phase,
                "host": room.host_id,
                "players": self._roster(room)["players"],
                "category": room.category if room.phase != "lobby" else None,
                "currentPlayerId": room.current_player_id,
                "currentPlayerName": current.name if current else None,
                "timeRemaining": room.time_remaining if room.phase == "clue" else None,
                "clues": [
                    {"name": p.name, "clue": p.clue}
                    for p in room.players.values()
                    if p.clue is not None
                ],
                "totalVotes": len(room.votes),
                "gamesPlayed": room.game_count,
                "lastReveal": room.last_reveal,
            }
