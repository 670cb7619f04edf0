"""Watchers and the dispatcher that fans storage events out to them."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from .errors import InvalidKeyError


class EventType(str, Enum):
    """Kinds of change a watcher is told about."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class Event:
    """A change of one object."""

    type: EventType
    obj: Any


_CLOSED = object()


class Watcher:
    """Receives events until it is stopped."""

    def __init__(self) -> None:
        self._events: queue.Queue = queue.Queue()
        self._lock = threading.Lock()
        self.stopped = False

    def stop(self) -> None:
        """Stop receiving events; pending reads then return None."""
        with self._lock:
            if self.stopped:
                return
            self.stopped = True
            self._events.put(_CLOSED)

    def notify(self, event: Event) -> bool:
        """Queue an event; return False if the watcher is stopped."""
        with self._lock:
            if self.stopped:
                return False
            self._events.put(event)
            return True

    def get(self, timeout: float | None = None) -> Event | None:
        """Return the next event, or None on timeout or once stopped."""
        try:
            item = self._events.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            self._events.put(_CLOSED)
            return None
        return item

    def __iter__(self) -> Iterator[Event]:
        while (event := self.get()) is not None:
            yield event

    def __enter__(self) -> Watcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def extract_keys_to_notify(key: str) -> list[str]:
    """Return the root, every ancestor key and the key itself."""
    if not key.startswith("/"):
        raise InvalidKeyError(key)
    keys = ["/"]
    keys.extend(key[:i] for i, char in enumerate(key) if char == "/" and i > 0)
    if not key.endswith("/"):
        keys.append(key)
    return keys


class WatchDispatcher:
    """Dispatches events to watchers registered on a key or its ancestors."""

    def __init__(self) -> None:
        self._watchers: dict[str, list[Watcher]] = {}
        self._lock = threading.Lock()

    def register(self, key: str, watcher: Watcher) -> None:
        """Register a watcher for a key."""
        with self._lock:
            self._watchers.setdefault(key, []).append(watcher)

    def added(self, key: str, obj: Any) -> None:
        """Dispatch an added event."""
        self._notify(key, EventType.ADDED, obj)

    def deleted(self, key: str, obj: Any) -> None:
        """Dispatch a deleted event."""
        self._notify(key, EventType.DELETED, obj)

    def modified(self, key: str, obj: Any) -> None:
        """Dispatch a modified event."""
        self._notify(key, EventType.MODIFIED, obj)

    def _notify(self, key: str, event_type: EventType, obj: Any) -> None:
        try:
            keys = extract_keys_to_notify(key)
        except InvalidKeyError:
            return
        event = Event(event_type, obj)
        with self._lock:
            targets = [w for k in keys for w in self._watchers.get(k, ())]
        for watcher in targets:
            watcher.notify(event)