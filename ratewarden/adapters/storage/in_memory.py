"""In-memory counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Expiry is lazy: an entry past its deadline is dropped on next access, and
  every write that creates a key sweeps all expired entries.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from ratewarden.adapters.storage.base import AbstractCounterStore


@dataclass
class _CounterEntry:
    count: int
    expires_at: float | None = None


class InMemoryCounterStore(AbstractCounterStore):
    """Dictionary-backed counter store with TTL support.

    Important:
        State lives in this process only. Limiters in different processes (or
        different Uvicorn/Gunicorn workers) will not see each other's counts.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, _CounterEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired_locked()
            return len(self._entries)

    def _live_entry_locked(self, key: str) -> _CounterEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _evict_expired_locked(self) -> None:
        now = self._clock()
        expired = [
            k
            for k, entry in self._entries.items()
            if entry.expires_at is not None and entry.expires_at <= now
        ]
        for key in expired:
            del self._entries[key]

    async def increment(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                self._evict_expired_locked()
                entry = _CounterEntry(count=0)
                self._entries[key] = entry
            entry.count += 1
            return entry.count

    async def reset(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def get(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry_locked(key)
            return entry.count if entry else 0

    async def set_ttl(self, key: str, ttl_seconds: float) -> None:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None:
                # Expiry on a missing key is a no-op, as with Redis PEXPIRE
                return
            entry.expires_at = self._clock() + ttl_seconds

    async def ttl(self, key: str) -> float:
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None or entry.expires_at is None:
                return 0.0
            return entry.expires_at - self._clock()

    def clear(self) -> None:
        """Drop every counter."""

        with self._lock:
            self._entries.clear()
