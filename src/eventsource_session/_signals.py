"""
Observable channels used by a session to publish state, data and errors.

`EventChannel` forwards only values published after a subscriber joined;
`StateCell` additionally retains its current value and replays it to every
new subscriber before any later transition.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by `subscribe`; disposing it stops delivery."""

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe: Callable[[], None] | None = unsubscribe

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def dispose(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *args: Any) -> None:
        self.dispose()


class EventChannel(Generic[T]):
    """
    Fan-out of values to callbacks, without history.

    Delivery is synchronous and serialized per channel: a value reaches every
    subscriber, in subscription order, before the next value is delivered.
    Channels that share `lock` with their owner are serialized with it too.
    """

    def __init__(self, name: str, *, lock: threading.RLock | None = None) -> None:
        self.name = name
        self._lock = lock if lock is not None else threading.RLock()
        self._ids = itertools.count()
        self._subscribers: dict[int, Callable[[T], None]] = {}

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        with self._lock:
            return self._register(callback)

    def publish(self, value: T) -> None:
        with self._lock:
            self._deliver(value)

    def _register(self, callback: Callable[[T], None]) -> Subscription:
        key = next(self._ids)
        self._subscribers[key] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(key, None)

        return Subscription(unsubscribe)

    def _deliver(self, value: T) -> None:
        # Snapshot so callbacks may subscribe or dispose while being notified.
        for callback in list(self._subscribers.values()):
            self._notify(callback, value)

    def _notify(self, callback: Callable[[T], None], value: T) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("Subscriber of %r channel failed on %r", self.name, value)


class StateCell(EventChannel[T]):
    """A channel with a current value that is replayed to new subscribers."""

    def __init__(self, name: str, initial: T, *, lock: threading.RLock | None = None) -> None:
        super().__init__(name, lock=lock)
        self._value = initial

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        with self._lock:
            subscription = self._register(callback)
            self._notify(callback, self._value)
            return subscription

    def set(self, value: T) -> None:
        """Store `value` and notify subscribers, even if it did not change."""
        with self._lock:
            self._value = value
            self._deliver(value)

    def publish(self, value: T) -> None:
        self.set(value)
