from __future__ import annotations

import logging
import secrets
import time
from threading import RLock
from typing import Callable

from ..config import Config
from .models import Room

logger = logging.getLogger(__name__)

# No 0/O or 1/I so codes survive being read aloud.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_code(length: int | None = None) -> str:
    n = length or Config.ROOM_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(n))


class RoomRegistry:
    def __init__(self, code_factory: Callable[[], str] | None = None):
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._code_factory = code_factory or generate_code

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def create(self, created_by: str | None = None) -> Room:
        with self._lock:
            code = self._code_factory()
            while code in self._rooms:
                code = self._code_factory()

            room = Room(code=code, created_by=created_by, created_at_ms=now_ms())
            self._rooms[code] = room
            logger.info("room %s created", code)
            return room

    def get(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get(code)

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def rooms_with(self, player_id: str) -> list[Room]:
        with self._lock:
            return [r for r in self._rooms.values() if player_id in r.players]

    def destroy_if_empty(self, code: str) -> bool:
        with self._lock:
            room = self._rooms.get(code)
            if room is None or room.players:
                return False

            if room.timer is not None:
                room.timer.cancel()
                room.timer = None
            if room.idle_timer is not None:
                room.idle_timer.cancel()
                room.idle_timer = None

            del self._rooms[code]
            logger.info("room %s destroyed", code)
            return True
