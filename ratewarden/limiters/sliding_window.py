"""Sliding-window (weighted counter) rate limiter.

Time is cut into epoch-aligned windows of ``interval`` seconds. The store
keeps one counter per key and window, under ``"{key}:{window_index}"``, each
living for two intervals so the previous window's closing count is still
readable while the next window runs.

A request is admitted when::

    current + 1 + previous * (1 - elapsed_fraction) <= max_requests + burst_limit

where ``current`` is the admitted count of the current window before this
request and ``elapsed_fraction`` is how far ``now`` is into the current window.
Traffic from the previous window therefore fades out linearly instead of
vanishing at the boundary, which damps the fixed-window rollover burst.

Only admitted requests are counted, so a denied flood does not weigh on the
next window. The check and the increment are serialized per instance; two
instances sharing a store may overshoot by the number of concurrent callers.
"""

from __future__ import annotations

import math
import time
from typing import Callable

from ratewarden.adapters.params.base import AbstractParameterSource
from ratewarden.adapters.storage.base import AbstractCounterStore
from ratewarden.limiters.base import AbstractRateLimiter


class SlidingWindowLimiter(AbstractRateLimiter):
    """Weighted two-window counter limiter."""

    algorithm = "sliding_window"

    def __init__(
        self,
        store: AbstractCounterStore,
        params: AbstractParameterSource,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store holding per-window counters.
            params: Parameter source for limits.
            clock: Time source function returning UNIX time in seconds.
        """
        super().__init__(store, params)
        self._clock = clock

    @staticmethod
    def _window_key(key: str, index: int) -> str:
        return f"{key}:{index}"

    @staticmethod
    def _window_position(now: float, interval: float) -> tuple[int, float]:
        """Return (window_index, elapsed_fraction) for ``now``."""

        index = math.floor(now / interval)
        elapsed = (now - index * interval) / interval
        return index, min(max(elapsed, 0.0), 1.0)

    async def _allow(self, key: str) -> bool:
        max_requests, interval, burst_limit = await self._read_limits()
        index, elapsed_fraction = self._window_position(self._clock(), interval)

        current_key = self._window_key(key, index)
        previous = await self._store.get(self._window_key(key, index - 1))
        current = await self._store.get(current_key)

        estimated = current + 1 + previous * (1.0 - elapsed_fraction)
        if estimated > max_requests + burst_limit:
            return False

        await self._increment_window(current_key, 2 * interval)
        return True

    async def _current_count(self, key: str) -> int:
        interval = await self._params.interval()
        index, _ = self._window_position(self._clock(), interval)
        return await self._store.get(self._window_key(key, index))

    async def _reset_in(self, key: str) -> float:
        """Seconds until the key is eligible again, or until its window ends.

        While a request would be denied, this is the earliest moment the
        weighted estimate drops back under the limit. While requests are still
        admitted, it is the time left in the current window, or 0 when the
        current window holds nothing.
        """
        max_requests, interval, burst_limit = await self._read_limits()
        limit = max_requests + burst_limit
        now = self._clock()
        index, elapsed_fraction = self._window_position(now, interval)

        previous = await self._store.get(self._window_key(key, index - 1))
        current = await self._store.get(self._window_key(key, index))
        window_end = (index + 1) * interval - now

        if current + 1 + previous * (1.0 - elapsed_fraction) <= limit:
            return window_end if current else 0.0

        if current + 1 <= limit:
            # Denied by the previous window's weight alone; it fades within this window
            eligible_fraction = 1.0 - (limit - current - 1) / previous
            return max(0.0, (eligible_fraction - elapsed_fraction) * interval)

        # The current window is full: wait for it to roll over and fade
        eligible_fraction = 1.0 - (limit - 1) / current
        return window_end + eligible_fraction * interval
