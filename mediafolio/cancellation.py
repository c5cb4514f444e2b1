"""
CancellationToken - lets late callbacks and pipeline stages notice teardown.
"""

import threading
from functools import wraps
from typing import Callable

from .errors import Cancelled


class CancellationToken:
    """
    One-way flag shared by an owner and the work it started.

    Callbacks wrapped with guard() become no-ops once the token is
    cancelled.
    """

    def __init__(self):
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled("Operation was cancelled")

    def guard(self, callback: Callable) -> Callable:
        """Wrap callback so it does nothing after cancellation."""
        @wraps(callback)
        def wrapper(*args, **kwargs):
            if self._event.is_set():
                return None
            return callback(*args, **kwargs)
        return wrapper
