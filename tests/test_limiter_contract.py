"""Behavior shared by every limiter algorithm."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from ratewarden.adapters.params.static import StaticParameterSource
from ratewarden.adapters.storage.in_memory import InMemoryCounterStore
from ratewarden.core.errors import StoreError
from ratewarden.limiters import (
    AbstractRateLimiter,
    FixedWindowLimiter,
    LeakyBucketLimiter,
    SlidingWindowLimiter,
    TokenBucketLimiter,
)

LIMITER_CLASSES = [
    FixedWindowLimiter,
    SlidingWindowLimiter,
    LeakyBucketLimiter,
    TokenBucketLimiter,
]


class FailingIncrementStore(InMemoryCounterStore):
    """In-memory store whose increment always fails."""

    async def increment(self, key: str) -> int:
        raise StoreError(code="store_unavailable", message="simulated increment failure")


class SlowStore(InMemoryCounterStore):
    """Store whose reads and increments hang, like an unresponsive backend."""

    async def increment(self, key: str) -> int:
        await asyncio.sleep(10)
        return await super().increment(key)

    async def get(self, key: str) -> int:
        await asyncio.sleep(10)
        return await super().get(key)


def _params() -> StaticParameterSource:
    return StaticParameterSource(max_requests=5, interval=60, burst_limit=0, tokens=0)


@pytest.mark.asyncio
@pytest.mark.parametrize("limiter_cls", LIMITER_CLASSES)
async def test_store_failure_propagates_and_admits_nothing(limiter_cls) -> None:
    async with limiter_cls(FailingIncrementStore(), _params()) as limiter:
        with pytest.raises(StoreError, match="simulated increment failure"):
            await limiter.allow("k")


@pytest.mark.asyncio
@pytest.mark.parametrize("limiter_cls", LIMITER_CLASSES)
async def test_parameter_source_failure_propagates(limiter_cls) -> None:
    params = _params()
    boom = RuntimeError("config backend down")
    for name in ("max_requests", "interval", "burst_limit", "tokens"):
        setattr(params, name, AsyncMock(side_effect=boom))
    limiter = limiter_cls(InMemoryCounterStore(), params)

    with pytest.raises(RuntimeError, match="config backend down"):
        await limiter.allow("k")
    await limiter.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize("limiter_cls", LIMITER_CLASSES)
async def test_quota_does_not_mutate_state(limiter_cls) -> None:
    store = InMemoryCounterStore()
    async with limiter_cls(store, _params()) as limiter:
        await limiter.allow("k")
        await limiter.allow("k")

        first = await limiter.quota("k")
        second = await limiter.quota("k")
        await limiter.next_allowed("k")
        third = await limiter.quota("k")

        assert first == second == third
        assert first.count == 2

        await limiter.allow("k")
        assert (await limiter.quota("k")).count == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("limiter_cls", LIMITER_CLASSES)
async def test_timeout_fails_closed(limiter_cls) -> None:
    async with limiter_cls(SlowStore(), _params()) as limiter:
        with pytest.raises(TimeoutError):
            await limiter.allow("k", timeout=0.05)


@pytest.mark.asyncio
@pytest.mark.parametrize("limiter_cls", LIMITER_CLASSES)
async def test_cancellation_propagates(limiter_cls) -> None:
    async with limiter_cls(SlowStore(), _params()) as limiter:
        task = asyncio.create_task(limiter.allow("k"))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


@pytest.mark.asyncio
@pytest.mark.parametrize("limiter_cls", LIMITER_CLASSES)
async def test_concurrent_callers_never_exceed_limit(limiter_cls) -> None:
    params = StaticParameterSource(max_requests=5, interval=60, burst_limit=0, tokens=5)
    async with limiter_cls(InMemoryCounterStore(), params) as limiter:
        results = await asyncio.gather(*(limiter.allow("k") for _ in range(20)))

    # Token bucket: 5 tokens, then overflow beyond a burst of 0 is denied
    assert sum(results) == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("limiter_cls", LIMITER_CLASSES)
async def test_empty_key_is_rejected(limiter_cls) -> None:
    async with limiter_cls(InMemoryCounterStore(), _params()) as limiter:
        with pytest.raises(ValueError):
            await limiter.allow("")
        with pytest.raises(ValueError):
            await limiter.quota("")
        with pytest.raises(ValueError):
            await limiter.next_allowed("")


@pytest.mark.parametrize("limiter_cls", LIMITER_CLASSES)
def test_limiters_share_the_contract(limiter_cls) -> None:
    assert issubclass(limiter_cls, AbstractRateLimiter)
    assert limiter_cls.algorithm in {
        "fixed_window",
        "sliding_window",
        "leaky_bucket",
        "token_bucket",
    }
