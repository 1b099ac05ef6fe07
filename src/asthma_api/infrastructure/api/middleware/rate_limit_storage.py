"""In-memory storage for authentication attempt counters.

This module provides the storage interface the auth rate limiter writes
through, and a thread-safe in-memory implementation owned by a single
application instance.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class AttemptRecord:
    """Attempts seen from one client within the current window."""

    count: int
    last_attempt: float


# Receives the current record (None when absent) and returns the record to
# store (None to delete) together with a result for the caller.
RecordUpdater = Callable[[AttemptRecord | None], tuple[AttemptRecord | None, T]]


class RateLimitStore(ABC):
    """Keyed storage for attempt records."""

    @abstractmethod
    def update(self, key: str, updater: RecordUpdater[T]) -> T:
        """Atomically read, transform and write the record for ``key``.

        Args:
            key: Client key (usually the remote address).
            updater: Function computing the new record from the old one.

        Returns:
            Whatever the updater returned alongside the new record.
        """

    @abstractmethod
    def get(self, key: str) -> AttemptRecord | None:
        """Return the record for ``key`` without modifying it."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all records."""


class InMemoryRateLimitStore(RateLimitStore):
    """Thread-safe in-memory storage for attempt records.

    Records are lost on restart. Entries untouched for ``stale_after``
    seconds are purged every ``cleanup_interval`` seconds.
    """

    def __init__(
        self,
        stale_after: float = 3600,
        cleanup_interval: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize storage.

        Args:
            stale_after: Age in seconds after which a record may be purged.
            cleanup_interval: Interval in seconds between purges.
            clock: Monotonic time source.
        """
        self._storage: Dict[str, AttemptRecord] = {}
        self._lock = Lock()
        self._clock = clock
        self._stale_after = stale_after
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = clock()

    def update(self, key: str, updater: RecordUpdater[T]) -> T:
        with self._lock:
            now = self._clock()
            if now - self._last_cleanup > self._cleanup_interval:
                self._cleanup_stale(now)

            record, result = updater(self._storage.get(key))
            if record is None:
                self._storage.pop(key, None)
            else:
                self._storage[key] = record
            return result

    def get(self, key: str) -> AttemptRecord | None:
        with self._lock:
            return self._storage.get(key)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)

    def _cleanup_stale(self, now: float) -> None:
        """Remove entries that haven't been updated for a while."""
        to_delete = [
            k for k, v in self._storage.items() if now - v.last_attempt > self._stale_after
        ]
        for k in to_delete:
            del self._storage[k]
        self._last_cleanup = now
