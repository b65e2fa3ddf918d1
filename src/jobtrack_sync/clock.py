"""
clock.py - Time and identifier providers.

Both are injected so tests and tools can pin time and ids.
"""

import threading
import time
from abc import ABC, abstractmethod

from jobtrack_sync.utils.uuid7 import uuid7_str


class Clock(ABC):
    """Source of wall-clock milliseconds."""

    @abstractmethod
    def now_ms(self) -> int:
        pass


class SystemClock(Clock):
    """
    Wall clock that never runs backwards within one process.

    If the system clock steps back, the last value is repeated
    until real time catches up.
    """

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time() * 1000))
            return self._last


class FixedClock(Clock):
    """Manually driven clock for tests and replay tools."""

    def __init__(self, start_ms: int = 0):
        self._now = start_ms

    def now_ms(self) -> int:
        return self._now

    def set(self, value_ms: int) -> None:
        self._now = value_ms

    def advance(self, delta_ms: int = 1) -> int:
        self._now += delta_ms
        return self._now


class IdGenerator(ABC):
    """Source of globally unique record ids."""

    @abstractmethod
    def generate(self) -> str:
        pass


class UuidGenerator(IdGenerator):
    def generate(self) -> str:
        return uuid7_str()
