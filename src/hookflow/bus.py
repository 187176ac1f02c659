"""Event bus seam used by the executor, plus an in-process implementation."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import threading
from collections import deque
from typing import Any, Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Callback = Callable[[str, Any], Any]


@runtime_checkable
class EventBus(Protocol):
    """Anything the executor can publish to.

    ``emit`` may return None or an awaitable; the executor never waits on it.
    """

    def emit(self, topic: str, payload: Any) -> Any:
        ...


class InMemoryEventBus:
    """In-process pub/sub with per-topic history.

    Subscribers register with glob-style topic patterns. A failing subscriber
    is logged and skipped; it never affects the publisher or other
    subscribers.
    """

    def __init__(self, maxlen: int = 1_000) -> None:
        self._maxlen = maxlen
        self._history: dict[str, deque[Any]] = {}
        self._subscribers: list[tuple[str, Callback]] = []
        self._lock = threading.Lock()

    # -- publish --

    async def emit(self, topic: str, payload: Any) -> None:
        self._store(topic, payload)
        await self._notify(topic, payload)

    # -- subscribe --

    def subscribe(self, topic_pattern: str, callback: Callback) -> None:
        """Subscribe to topics matching *topic_pattern* (fnmatch glob)."""
        with self._lock:
            self._subscribers.append((topic_pattern, callback))

    def unsubscribe(self, callback: Callback) -> None:
        with self._lock:
            self._subscribers = [
                (p, cb) for p, cb in self._subscribers if cb is not callback
            ]

    # -- query --

    def history(self, topic: str) -> list[Any]:
        """Return a copy of the payloads published on *topic*."""
        with self._lock:
            buf = self._history.get(topic)
            return list(buf) if buf else []

    def topics(self) -> list[str]:
        with self._lock:
            return list(self._history.keys())

    def clear(self) -> None:
        with self._lock:
            self._history.clear()

    # -- internals --

    def _store(self, topic: str, payload: Any) -> None:
        with self._lock:
            buf = self._history.get(topic)
            if buf is None:
                buf = deque(maxlen=self._maxlen)
                self._history[topic] = buf
            buf.append(payload)

    async def _notify(self, topic: str, payload: Any) -> None:
        with self._lock:
            subs = list(self._subscribers)
        for pattern, cb in subs:
            if fnmatch.fnmatch(topic, pattern):
                try:
                    result = cb(topic, payload)
                    if asyncio.iscoroutine(result):
                        await result
                except Exception:
                    logger.exception("Subscriber error for topic=%s", topic)
