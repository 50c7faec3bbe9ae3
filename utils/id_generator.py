"""Identifier generation for expense records."""
import threading
from datetime import datetime


class TimestampIdGenerator:
    """
    Hands out integer ids based on the creation instant in milliseconds.

    Two records created within the same millisecond would collide on a plain
    timestamp, so an id that does not exceed the last one issued is bumped to
    ``last + 1``. Ids are therefore unique and strictly increasing for the
    lifetime of the generator.
    """

    def __init__(self) -> None:
        self._last_id = 0
        self._lock = threading.Lock()

    def next_id(self, moment: datetime) -> int:
        candidate = int(moment.timestamp() * 1000)
        with self._lock:
            if candidate <= self._last_id:
                candidate = self._last_id + 1
            self._last_id = candidate
            return candidate

    @property
    def last_id(self) -> int:
        return self._last_id
