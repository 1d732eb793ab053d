import itertools
import random

import pytest

from impostor.game.registry import RoomRegistry
from impostor.game.scheduler import TimerHandle
from impostor.game.service import GameService


class RecordingGateway:
    def __init__(self):
        self.broadcasts = []
        self.direct = []

    def broadcast(self, room_code, event, payload):
        self.broadcasts.append((room_code, event, payload))

    def send_to(self, player_id, event, payload):
        self.direct.append((player_id, event, payload))

    def events(self, event):
        return [p for _, e, p in self.broadcasts if e == event]

    def last(self, event):
        found = self.events(event)
        return found[-1] if found else None

    def sent_to(self, player_id, event):
        return [p for pid, e, p in self.direct if pid == player_id and e == event]

    def clear(self):
        self.broadcasts.clear()
        self.direct.clear()


class ManualScheduler:
    """Timers only fire when a test calls tick()."""

    def __init__(self):
        self.timers = []

    def start(self, callback, interval_sec):
        handle = TimerHandle()
        self.timers.append((handle, callback, interval_sec))
        return handle

    def live(self, interval_sec=None):
        return [
            (h, cb, i)
            for h, cb, i in self.timers
            if not h.cancelled and (interval_sec is None or i == interval_sec)
        ]

    def tick(self, times=1, interval_sec=1):
        for _ in range(times):
            for handle, callback, _ in self.live(interval_sec):
                if not handle.cancelled:
                    callback()


PLAYERS = [
    ("sid-a", "A", "Lion"),
    ("sid-b", "B", "Wolf"),
    ("sid-c", "C", "Owl"),
    ("sid-d", "D", "Fox"),
    ("sid-e", "E", "Bear"),
    ("sid-f", "F", "Cat"),
    ("sid-g", "G", "Dog"),
    ("sid-h", "H", "Panda"),
]


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def registry():
    counter = itertools.count(1)
    return RoomRegistry(code_factory=lambda: f"ROOM{next(counter)}")


@pytest.fixture
def service(registry, gateway, scheduler):
    return GameService(
        registry=registry,
        gateway=gateway,
        scheduler=scheduler,
        rng=random.Random(1234),
        clue_time_sec=30,
        min_players=3,
        max_players=7,
        empty_room_ttl_sec=0,
    )


def fill_room(service, count=3):
    room = service.create_room(creator_id=PLAYERS[0][0])
    for sid, name, character in PLAYERS[:count]:
        service.join_room(room.code, sid, name, character)
    return room


def play_clues(service, room, text="clue"):
    while room.phase == "clue":
        service.submit_clue(room.code, room.current_player_id, text)


@pytest.fixture
def lobby(service):
    return fill_room(service, 3)


@pytest.fixture
def started(service, lobby):
    service.start_game(lobby.code, "sid-a")
    return lobby
