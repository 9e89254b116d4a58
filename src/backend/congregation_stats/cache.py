from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidationChannel:
    """
    Fan-out hook for "congregation data changed" notifications.

    Writers call ``publish``; caches register with ``subscribe``.
    """

    def __init__(self) -> None:
        self._subscribers: List[Callable[[str], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[str], None]) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def publish(self, reason: str = "data changed") -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(reason)


class SnapshotCache(Generic[T]):
    """
    Single-entry TTL cache that computes once and shares the result.

    Concurrent misses wait for the one in-flight computation instead of
    recomputing. Failed computations are not cached, and neither is a result
    whose computation overlapped an invalidation.
    """

    def __init__(
        self,
        compute: Callable[[], T],
        ttl_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
        invalidation: Optional[InvalidationChannel] = None,
    ):
        self.compute = compute
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entry: Optional[Tuple[float, T]] = None
        self._generation = 0
        self._lock = threading.Lock()
        self._generation_lock = threading.Lock()
        if invalidation is not None:
            invalidation.subscribe(self._on_invalidate)

    def get(self) -> T:
        cached = self._fresh_entry()
        if cached is not None:
            logger.debug("Snapshot cache hit")
            return cached

        with self._lock:
            cached = self._fresh_entry()
            if cached is not None:
                return cached
            logger.info("Recomputing dashboard snapshot")
            generation = self._generation
            value = self.compute()
            with self._generation_lock:
                if generation == self._generation:
                    self._entry = (self.clock(), value)
                else:
                    logger.info("Snapshot invalidated during recompute, not caching it")
            return value

    def invalidate(self) -> None:
        with self._generation_lock:
            self._generation += 1
            self._entry = None

    def _on_invalidate(self, reason: str) -> None:
        logger.info("Dashboard snapshot invalidated: %s", reason)
        self.invalidate()

    def _fresh_entry(self) -> Optional[T]:
        entry = self._entry
        if entry is None:
            return None
        stored_at, value = entry
        if self.clock() - stored_at >= self.ttl_seconds:
            return None
        return value
