"""
observable.py - Push-based change notification.

Provides:
- ChangeNotifier: per-table invalidation fan-out for live queries
- ObservableValue: a current value with callback and async-stream observers

observe() streams are conflating: a burst of changes wakes a waiting
stream once and it reads the latest state. stream() queues every change.
"""

import asyncio
import logging
import threading
from typing import Any, AsyncIterator, Callable, Generic, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


class Signal:
    """
    Wake-up flag bound to the event loop that created it.

    fire() may be called from any thread.
    """

    def __init__(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._event = asyncio.Event()

    def clear(self) -> None:
        self._event.clear()

    async def wait(self) -> None:
        await self._event.wait()

    def fire(self) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._event.set()
        elif not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._event.set)


class ChangeNotifier:
    """Routes table-change notifications to live query subscriptions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, set[Signal]] = {}

    def subscribe(self, tables: Iterable[str]) -> Signal:
        """Must be called from inside a running event loop."""
        signal = Signal()
        with self._lock:
            for table in tables:
                self._subscribers.setdefault(table, set()).add(signal)
        return signal

    def unsubscribe(self, signal: Signal) -> None:
        with self._lock:
            for signals in self._subscribers.values():
                signals.discard(signal)

    def notify(self, *tables: str) -> None:
        with self._lock:
            targets = set()
            for table in tables:
                targets.update(self._subscribers.get(table, ()))
        for signal in targets:
            signal.fire()

    def subscriber_count(self, table: str) -> int:
        with self._lock:
            return len(self._subscribers.get(table, ()))


class ObservableValue(Generic[T]):
    """
    Holds one value and publishes every change.

    observe() skips equal consecutive values; stream() does not.
    """

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[T], None]] = []
        self._signals: set[Signal] = set()

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value
            callbacks = list(self._callbacks)
            signals = list(self._signals)
        for callback in callbacks:
            try:
                callback(value)
            except Exception as exc:
                logger.error("Observer callback failed: %s", exc)
        for signal in signals:
            signal.fire()

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback; returns a function that removes it."""
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    async def observe(self) -> AsyncIterator[T]:
        """Emit the current value, then every distinct later value."""
        signal = Signal()
        with self._lock:
            self._signals.add(signal)
        try:
            last = _UNSET
            while True:
                signal.clear()
                current = self._value
                if last is _UNSET or current != last:
                    last = current
                    yield current
                await signal.wait()
        finally:
            with self._lock:
                self._signals.discard(signal)

    async def stream(self) -> AsyncIterator[T]:
        """
        Emit the current value, then every later set() in order.

        Unlike observe(), nothing is merged or dropped: setting the same
        value twice, or flipping away and back, is seen as separate events.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()

        def deliver(value: T) -> None:
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                queue.put_nowait(value)
            elif not loop.is_closed():
                loop.call_soon_threadsafe(queue.put_nowait, value)

        with self._lock:
            queue.put_nowait(self._value)
            self._callbacks.append(deliver)
        try:
            while True:
                yield await queue.get()
        finally:
            with self._lock:
                if deliver in self._callbacks:
                    self._callbacks.remove(deliver)
