"""Token-bucket rate limiter with per-key burst overflow.

Two kinds of state are involved:

- A token balance, global to the limiter instance and owned by the parameter
  source. A background task refills it by one token per elapsed interval, up
  to ``max_requests``.
- A per-key overflow counter in the counter store, used only once the balance
  is exhausted. A key is denied when its overflow exceeds ``burst_limit``
  within one interval.

The steady rate is thus policed across all keys while burst abuse is still
attributed to individual keys.

Refill arithmetic works from absolute timestamps: ``last_refill`` advances by
whole intervals only, so polling more often than the interval adds nothing
and no fractional time is lost.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Callable

from ratewarden.adapters.params.base import AbstractParameterSource
from ratewarden.adapters.storage.base import AbstractCounterStore
from ratewarden.core.logging import hash_key
from ratewarden.limiters.base import AbstractRateLimiter

logger = logging.getLogger(__name__)

# Sleep used between refill attempts when the interval itself can't be read
_ERROR_BACKOFF_SECONDS = 1.0


class TokenBucketLimiter(AbstractRateLimiter):
    """Global token balance with per-key overflow tracking.

    The refill task starts at construction when an event loop is running;
    otherwise it starts on the first ``allow`` (or an explicit ``start()``).
    Call ``stop()`` (or ``await aclose()``) to halt it.
    """

    algorithm = "token_bucket"

    def __init__(
        self,
        store: AbstractCounterStore,
        params: AbstractParameterSource,
        *,
        poll_interval: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store for per-key overflow counters.
            params: Parameter source owning the token balance.
            poll_interval: Refill polling cadence in seconds; defaults to the
                configured interval and is capped at it, so the
                bucket is polled at least once per interval.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If poll_interval is not positive.
        """
        if poll_interval is not None and poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")

        super().__init__(store, params)
        self._poll_interval = poll_interval
        self._clock = clock
        self._refill_task: asyncio.Task | None = None
        self._stopped = False

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Built outside a loop; the first async call starts the refill task
            return
        self.start()

    @property
    def running(self) -> bool:
        """Whether the background refill task is active."""
        return self._refill_task is not None and not self._refill_task.done()

    def start(self) -> None:
        """Start the background refill task.

        No-op when already started or after ``stop()``. Must be called from
        within a running event loop.
        """
        if self._stopped or self._refill_task is not None:
            return
        self._refill_task = asyncio.get_running_loop().create_task(
            self._refill_loop(),
            name="ratewarden-token-refill",
        )

    def stop(self) -> None:
        """Halt the refill cadence. Idempotent; the limiter cannot be restarted."""

        self._stopped = True
        if self._refill_task is not None:
            self._refill_task.cancel()

    def _background_tasks(self) -> list[asyncio.Task]:
        return [self._refill_task] if self._refill_task is not None else []

    async def refill(self) -> int:
        """Credit tokens for every whole interval elapsed since the last refill.

        Returns:
            Number of tokens actually added to the balance.
        """
        async with self._lock:
            return await self._refill_locked()

    async def _refill_locked(self) -> int:
        interval = await self._params.interval()
        last_refill = await self._params.last_refill()
        intervals_elapsed = math.floor((self._clock() - last_refill) / interval)
        if intervals_elapsed <= 0:
            return 0

        tokens = await self._params.tokens()
        max_requests = await self._params.max_requests()
        refilled = min(max_requests, tokens + intervals_elapsed)
        await self._params.set_tokens(refilled)
        await self._params.set_last_refill(last_refill + intervals_elapsed * interval)

        added = max(0, refilled - tokens)
        if added:
            logger.debug(
                "rate_limit.refilled",
                extra={
                    "algorithm": self.algorithm,
                    "tokens_added": added,
                    "tokens": refilled,
                },
            )
        return added

    async def _refill_loop(self) -> None:
        poll = self._poll_interval
        while True:
            try:
                interval = await self._params.interval()
                poll = interval if self._poll_interval is None else min(self._poll_interval, interval)
                await asyncio.sleep(poll)
                async with self._lock:
                    await self._refill_locked()
            except Exception as exc:
                logger.warning(
                    "rate_limit.refill_failed",
                    extra={
                        "algorithm": self.algorithm,
                        "error_type": type(exc).__name__,
                    },
                )
                await asyncio.sleep(poll or _ERROR_BACKOFF_SECONDS)

    async def _allow(self, key: str) -> bool:
        self.start()

        tokens = await self._params.tokens()
        if tokens > 0:
            await self._params.set_tokens(tokens - 1)
            return True

        burst_limit = await self._params.burst_limit()
        interval = await self._params.interval()
        overflow = await self._increment_window(key, interval)
        logger.debug(
            "rate_limit.overflow",
            extra={
                "algorithm": self.algorithm,
                "key_hash": hash_key(key),
                "overflow": overflow,
                "burst_limit": burst_limit,
            },
        )
        return overflow <= burst_limit
