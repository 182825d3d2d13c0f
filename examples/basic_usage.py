"""Walk each algorithm through ten requests against one in-memory store.

Run with:
    python examples/basic_usage.py
"""

from __future__ import annotations

import asyncio
import logging

from ratewarden.adapters.params import StaticParameterSource
from ratewarden.adapters.storage import InMemoryCounterStore
from ratewarden.core.config import LogSettings
from ratewarden.core.logging import configure_logging
from ratewarden.limiters import (
    AbstractRateLimiter,
    FixedWindowLimiter,
    LeakyBucketLimiter,
    SlidingWindowLimiter,
    TokenBucketLimiter,
)

logger = logging.getLogger("ratewarden.example")


async def _exercise(limiter: AbstractRateLimiter, key: str, *, requests: int = 10) -> None:
    for attempt in range(1, requests + 1):
        try:
            allowed = await limiter.allow(key, timeout=1.0)
        except Exception as exc:
            # Unknown outcome: treat as denied
            logger.error("example.error", extra={"attempt": attempt, "error": str(exc)})
            continue
        logger.info(
            "example.decision",
            extra={
                "algorithm": limiter.algorithm,
                "attempt": attempt,
                "allowed": allowed,
            },
        )
        await asyncio.sleep(0.1)

    quota = await limiter.quota(key)
    logger.info(
        "example.quota",
        extra={
            "algorithm": limiter.algorithm,
            "count": quota.count,
            "limit": quota.limit,
            "next_allowed_s": round(await limiter.next_allowed(key), 2),
        },
    )


async def main() -> None:
    store = InMemoryCounterStore()
    # 5 requests per minute, 2 extra tolerated as burst
    params = StaticParameterSource(max_requests=5, interval=60.0, burst_limit=2)

    async with LeakyBucketLimiter(store, params) as leaky:
        await _exercise(leaky, "leakybucket_key")

    async with TokenBucketLimiter(store, params) as tokens:
        await _exercise(tokens, "tokenbucket_key")

    await _exercise(FixedWindowLimiter(store, params), "fixedwindow_key")
    await _exercise(SlidingWindowLimiter(store, params), "slidingwindow_key")


if __name__ == "__main__":
    configure_logging(LogSettings(format="json", level="INFO"))
    asyncio.run(main())
