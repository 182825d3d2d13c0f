"""Leaky-bucket rate limiter.

Each admitted request adds one unit to the key's bucket. The bucket drains in
two ways:

- every admission schedules a deferred leak that empties the bucket
  ``interval`` seconds later;
- the store expires the counter ``interval`` seconds after the first unit,
  which is the durable fallback if a leak never fires (e.g., shutdown).

Leaks run as background tasks owned by the limiter. They never block the
caller, take the same lock as ``allow``, and are cancelled by ``stop()``.
"""

from __future__ import annotations

import asyncio
import logging

from ratewarden.adapters.params.base import AbstractParameterSource
from ratewarden.adapters.storage.base import AbstractCounterStore
from ratewarden.core.logging import hash_key
from ratewarden.limiters.base import AbstractRateLimiter

logger = logging.getLogger(__name__)


class LeakyBucketLimiter(AbstractRateLimiter):
    """Bucket-per-key limiter with deferred leak tasks."""

    algorithm = "leaky_bucket"

    def __init__(self, store: AbstractCounterStore, params: AbstractParameterSource) -> None:
        super().__init__(store, params)
        self._leaks: set[asyncio.Task] = set()
        self._stopped = False

    @property
    def pending_leaks(self) -> int:
        """Number of scheduled leaks that have not fired yet."""
        return sum(1 for task in self._leaks if not task.done())

    async def _allow(self, key: str) -> bool:
        max_requests, interval, burst_limit = await self._read_limits()
        count = await self._increment_window(key, interval)
        if count > max_requests + burst_limit:
            return False

        if not self._stopped:
            self._schedule_leak(key, interval)
        return True

    def _schedule_leak(self, key: str, delay: float) -> None:
        task = asyncio.get_running_loop().create_task(
            self._leak(key, delay),
            name=f"ratewarden-leak-{hash_key(key)}",
        )
        self._leaks.add(task)
        task.add_done_callback(self._leaks.discard)

    async def _leak(self, key: str, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            async with self._lock:
                await self._store.reset(key)
        except Exception as exc:
            # Best effort: the counter's TTL still resets the bucket
            logger.warning(
                "rate_limit.leak_failed",
                extra={
                    "algorithm": self.algorithm,
                    "key_hash": hash_key(key),
                    "error_type": type(exc).__name__,
                },
            )
            return

        logger.debug(
            "rate_limit.leaked",
            extra={"algorithm": self.algorithm, "key_hash": hash_key(key)},
        )

    def stop(self) -> None:
        """Cancel pending leaks and schedule no new ones. Idempotent."""

        self._stopped = True
        for task in list(self._leaks):
            task.cancel()

    def _background_tasks(self) -> list[asyncio.Task]:
        return list(self._leaks)
