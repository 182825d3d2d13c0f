"""Fixed-window rate limiter.

A key's window opens with its first request and closes when the store
expires the counter ``interval`` seconds later. Up to
``max_requests + burst_limit`` requests are admitted per window.

A burst straddling a rollover can admit up to twice that ceiling in a short
span; this is inherent to fixed windows. See
:class:`~ratewarden.limiters.sliding_window.SlidingWindowLimiter` for a
smoother alternative.
"""

from __future__ import annotations

from ratewarden.limiters.base import AbstractRateLimiter


class FixedWindowLimiter(AbstractRateLimiter):
    """Counter-per-key limiter with TTL-driven window resets."""

    algorithm = "fixed_window"

    async def _allow(self, key: str) -> bool:
        max_requests, interval, burst_limit = await self._read_limits()
        count = await self._increment_window(key, interval)
        return count <= max_requests + burst_limit
