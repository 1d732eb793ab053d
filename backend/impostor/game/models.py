from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .scheduler import TimerHandle


Phase = Literal["lobby", "clue", "voting", "reveal"]
Role = Literal["impostor", "investigator"]

# User-visible clue values; shown to clients verbatim.
CLUE_TIMED_OUT = "(Timed Out)"
CLUE_EMPTY = "(empty)"


@dataclass
class Player:
    id: str
    name: str
    character: str
    joined_seq: int = 0
    role: Role | None = None
    # None until the player submits (or times out) this round.
    clue: str | None = None


@dataclass
class Room:
    code: str
    created_by: str | None = None
    created_at_ms: int = 0
    phase: Phase = "lobby"
    players: dict[str, Player] = field(default_factory=dict)
    host_id: str | None = None
    category: str | None = None
    secret: str | None = None
    current_player_id: str | None = None
    time_remaining: int = 0
    votes: dict[str, str] = field(default_factory=dict)
    game_count: int = 0
    last_reveal: dict | None = None
    join_counter: int = 0
    timer: TimerHandle | None = field(default=None, repr=False, compare=False)
    idle_timer: TimerHandle | None = field(default=None, repr=False, compare=False)
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    def impostor_id(self) -> str | None:
        for pid, p in self.players.items():
            if p.role == "impostor":
                return pid
        return None

    def find_by_name(self, name: str) -> Player | None:
        for p in self.players.values():
            if p.name == name:
                return p
        return None

    def next_join_seq(self) -> int:
        self.join_counter += 1
        return self.join_counter
