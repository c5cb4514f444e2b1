"""
Timer scheduling for the display model.
"""

import threading
from typing import Callable


class TimerHandle:
    """Handle for a scheduled callback."""

    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class Scheduler:
    """Runs callbacks after a delay. Subclasses decide on which thread."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class ThreadingScheduler(Scheduler):
    """Scheduler backed by daemon threading.Timer instances."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return TimerHandle(timer)
