from __future__ import annotations

from typing import Callable, Protocol


class TimerHandle:
    """Cancellable handle for a repeating timer."""

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler(Protocol):
    def start(self, callback: Callable[[], None], interval_sec: float) -> TimerHandle:
        """Call ``callback`` every ``interval_sec`` until the handle is cancelled."""
        ...
