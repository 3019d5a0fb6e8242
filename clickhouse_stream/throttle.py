"""
Bound on simultaneous in-flight requests of one connection.
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class Throttle:
    """
    Counting gate shared by every throttled call of a connection.

    A ceiling of 0 disables the limit. acquire() blocks while the number of
    in-flight requests is at or above the ceiling; release() decrements the
    count and wakes waiters. No fairness between waiters is promised.
    """

    def __init__(self, ceiling: int = 0):
        self._ceiling = max(0, ceiling)
        self._count = 0
        self._cond = threading.Condition()

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def in_flight(self) -> int:
        return self._count

    def set_ceiling(self, ceiling: int) -> None:
        """Change the ceiling; waiters re-check against the new value."""
        with self._cond:
            self._ceiling = max(0, ceiling)
            self._cond.notify_all()

    def _has_room(self) -> bool:
        return self._ceiling == 0 or self._count < self._ceiling

    def acquire(self) -> None:
        """Take a slot, blocking until one is free."""
        with self._cond:
            self._cond.wait_for(self._has_room)
            self._count += 1

    def release(self) -> None:
        """Give a slot back."""
        with self._cond:
            if self._count == 0:
                raise RuntimeError("throttle released more times than acquired")
            self._count -= 1
            self._cond.notify()

    @contextmanager
    def slot(self) -> Iterator[None]:
        """Hold a slot for the duration of the block."""
        self.acquire()
        try:
            yield
        finally:
            self.release()
