"""Shared limiter contract.

Every algorithm wraps one counter store and one parameter source and exposes
the same three operations:

- ``allow(key)``: admit or deny one unit of work for ``key``.
- ``quota(key)``: read-only snapshot of the key's usage and limits.
- ``next_allowed(key)``: seconds until the key's window/bucket resets.

Calls through one instance are serialized by an ``asyncio.Lock``. Errors from
the store or parameter source are raised unchanged: an exception from
``allow`` means nothing was admitted, and callers should deny the request.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, ClassVar, TypeVar

from ratewarden.adapters.params.base import AbstractParameterSource
from ratewarden.adapters.storage.base import AbstractCounterStore
from ratewarden.core.logging import hash_key

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Quota:
    """Usage snapshot for a key.

    Attributes:
        count: Units recorded for the key in its current window/bucket.
        max_requests: Steady-state ceiling per interval.
        burst_limit: Extra admissions tolerated above max_requests.
    """

    count: int
    max_requests: int
    burst_limit: int

    @property
    def limit(self) -> int:
        """Hard ceiling: max_requests plus burst_limit."""
        return self.max_requests + self.burst_limit

    @property
    def remaining(self) -> int:
        """Units left before the ceiling is reached (never negative)."""
        return max(0, self.limit - self.count)


async def _with_timeout(awaitable: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout)


def _require_key(key: str) -> None:
    if not key:
        raise ValueError("key must be a non-empty string")


class AbstractRateLimiter(ABC):
    """Base class for rate limiting algorithms.

    Subclasses implement :meth:`_allow` (called with the instance lock held)
    and may override :meth:`_current_count` and :meth:`_reset_in` when their
    per-key state does not live under the plain key.
    """

    algorithm: ClassVar[str]

    def __init__(self, store: AbstractCounterStore, params: AbstractParameterSource) -> None:
        self._store = store
        self._params = params
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"{type(self).__name__}(store={self._store!r}, params={self._params!r})"

    async def __aenter__(self) -> "AbstractRateLimiter":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def allow(self, key: str, *, timeout: float | None = None) -> bool:
        """Decide whether one unit of work for ``key`` may proceed.

        Args:
            key: Rate limit key (e.g., API key, client IP, route).
            timeout: Optional deadline in seconds covering the lock wait and
                every collaborator call.

        Returns:
            True if admitted, False if denied.

        Raises:
            ValueError: If key is empty.
            TimeoutError: If the deadline elapses first.
            Exception: Any store or parameter source error, unchanged.
        """
        _require_key(key)

        try:
            allowed = await _with_timeout(self._guarded_allow(key), timeout)
        except Exception as exc:
            logger.warning(
                "rate_limit.error",
                extra={
                    "algorithm": self.algorithm,
                    "key_hash": hash_key(key),
                    "error_type": type(exc).__name__,
                },
            )
            raise

        if allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={"algorithm": self.algorithm, "key_hash": hash_key(key)},
            )
        else:
            logger.info(
                "rate_limit.denied",
                extra={"algorithm": self.algorithm, "key_hash": hash_key(key)},
            )
        return allowed

    async def quota(self, key: str, *, timeout: float | None = None) -> Quota:
        """Return the key's current usage without mutating any state.

        Args:
            key: Rate limit key.
            timeout: Optional deadline in seconds.

        Returns:
            Quota snapshot for the key.
        """
        _require_key(key)
        return await _with_timeout(self._guarded_quota(key), timeout)

    async def next_allowed(self, key: str, *, timeout: float | None = None) -> float:
        """Estimate the wait before the key's window/bucket resets.

        Args:
            key: Rate limit key.
            timeout: Optional deadline in seconds.

        Returns:
            Seconds until reset; 0 or less when nothing is pending.
        """
        _require_key(key)
        return await _with_timeout(self._reset_in(key), timeout)

    def stop(self) -> None:
        """Stop background work owned by this instance. Safe to call repeatedly."""

    async def aclose(self) -> None:
        """Stop background work and wait for it to wind down."""

        self.stop()
        tasks = self._background_tasks()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _background_tasks(self) -> list[asyncio.Task]:
        return []

    async def _guarded_allow(self, key: str) -> bool:
        async with self._lock:
            return await self._allow(key)

    async def _guarded_quota(self, key: str) -> Quota:
        # Hold the lock so the count and limits come from one consistent view
        async with self._lock:
            count = await self._current_count(key)
            max_requests = await self._params.max_requests()
            burst_limit = await self._params.burst_limit()
        return Quota(count=count, max_requests=max_requests, burst_limit=burst_limit)

    async def _read_limits(self) -> tuple[int, float, int]:
        """Read (max_requests, interval, burst_limit) from the parameter source."""

        max_requests = await self._params.max_requests()
        interval = await self._params.interval()
        burst_limit = await self._params.burst_limit()
        return max_requests, interval, burst_limit

    async def _increment_window(self, key: str, ttl_seconds: float) -> int:
        """Count one unit under ``key``, opening its expiry on the first unit."""

        count = await self._store.increment(key)
        if count == 1:
            await self._store.set_ttl(key, ttl_seconds)
        return count

    async def _current_count(self, key: str) -> int:
        return await self._store.get(key)

    async def _reset_in(self, key: str) -> float:
        return await self._store.ttl(key)

    @abstractmethod
    async def _allow(self, key: str) -> bool:
        """Algorithm-specific admission decision. Called with the lock held."""
        raise NotImplementedError
