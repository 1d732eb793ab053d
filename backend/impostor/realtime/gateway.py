from __future__ import annotations

import logging
from typing import Callable

from flask_socketio import SocketIO

from ..game.scheduler import TimerHandle

logger = logging.getLogger(__name__)


class SocketIOGateway:
    """Fire-and-forget delivery to a Socket.IO room or a single sid."""

    def __init__(self, socketio: SocketIO):
        self.socketio = socketio

    def broadcast(self, room_code: str, event: str, payload: dict) -> None:
        self.socketio.emit(event, payload, to=room_code)

    def send_to(self, player_id: str, event: str, payload: dict) -> None:
        self.socketio.emit(event, payload, to=player_id)


class SocketIOScheduler:
    """Runs repeating timers as Socket.IO background tasks."""

    def __init__(self, socketio: SocketIO):
        self.socketio = socketio

    def start(self, callback: Callable[[], None], interval_sec: float) -> TimerHandle:
        handle = TimerHandle()

        def _runner() -> None:
            while True:
                self.socketio.sleep(interval_sec)
                if handle.cancelled:
                    break
                try:
                    callback()
                except Exception:
                    logger.exception("timer callback failed")
                    handle.cancel()
                    break

        self.socketio.start_background_task(_runner)
        return handle
