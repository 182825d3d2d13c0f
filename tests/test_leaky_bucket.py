"""Unit tests for the leaky-bucket limiter."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from ratewarden.adapters.params.static import StaticParameterSource
from ratewarden.adapters.storage.in_memory import InMemoryCounterStore
from ratewarden.core.errors import StoreError
from ratewarden.limiters.leaky_bucket import LeakyBucketLimiter


@pytest.mark.asyncio
async def test_admits_max_plus_burst_then_denies(store: InMemoryCounterStore) -> None:
    params = StaticParameterSource(max_requests=5, interval=60, burst_limit=2)

    async with LeakyBucketLimiter(store, params) as limiter:
        decisions = [await limiter.allow("test") for _ in range(8)]

    assert decisions == [True] * 7 + [False]


@pytest.mark.asyncio
async def test_without_burst_seven_calls_admit_first_five(store: InMemoryCounterStore) -> None:
    params = StaticParameterSource(max_requests=5, interval=60, burst_limit=0)

    async with LeakyBucketLimiter(store, params) as limiter:
        decisions = [await limiter.allow("test") for _ in range(7)]

    assert decisions == [True] * 5 + [False] * 2


@pytest.mark.asyncio
async def test_first_request_sets_ttl_to_interval() -> None:
    store = InMemoryCounterStore()
    params = StaticParameterSource(max_requests=5, interval=60)

    async with LeakyBucketLimiter(store, params) as limiter:
        await limiter.allow("k")

        assert await store.ttl("k") == pytest.approx(60, abs=0.5)
        wait = await limiter.next_allowed("k")
        assert 0 < wait <= 60


@pytest.mark.asyncio
async def test_only_admissions_schedule_leaks(store: InMemoryCounterStore) -> None:
    params = StaticParameterSource(max_requests=3, interval=60)

    async with LeakyBucketLimiter(store, params) as limiter:
        for _ in range(5):
            await limiter.allow("k")

        assert limiter.pending_leaks == 3


@pytest.mark.asyncio
async def test_leak_resets_bucket_after_interval() -> None:
    store = InMemoryCounterStore()
    store.reset = AsyncMock(wraps=store.reset)
    params = StaticParameterSource(max_requests=1, interval=0.05)
    limiter = LeakyBucketLimiter(store, params)

    assert await limiter.allow("k") is True
    store.reset.assert_not_awaited()

    await asyncio.sleep(0.2)

    store.reset.assert_awaited_with("k")
    assert limiter.pending_leaks == 0
    assert await limiter.allow("k") is True
    await limiter.aclose()


@pytest.mark.asyncio
async def test_allow_does_not_wait_for_leak() -> None:
    params = StaticParameterSource(max_requests=1, interval=30)
    limiter = LeakyBucketLimiter(InMemoryCounterStore(), params)

    # A 30s leak must not hold up the caller
    assert await limiter.allow("k", timeout=1.0) is True
    await limiter.aclose()


@pytest.mark.asyncio
async def test_stop_cancels_pending_leaks_and_is_idempotent(store: InMemoryCounterStore) -> None:
    store.reset = AsyncMock(wraps=store.reset)
    params = StaticParameterSource(max_requests=5, interval=60)
    limiter = LeakyBucketLimiter(store, params)

    for _ in range(3):
        await limiter.allow("k")
    assert limiter.pending_leaks == 3

    await limiter.aclose()
    limiter.stop()

    assert limiter.pending_leaks == 0
    store.reset.assert_not_awaited()

    # Still usable after stop, but no new leaks are scheduled
    assert await limiter.allow("k") is True
    assert limiter.pending_leaks == 0


@pytest.mark.asyncio
async def test_failed_leak_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    store = InMemoryCounterStore()
    store.reset = AsyncMock(
        side_effect=StoreError(code="store_unavailable", message="simulated reset failure")
    )
    params = StaticParameterSource(max_requests=1, interval=0.01)
    limiter = LeakyBucketLimiter(store, params)

    with caplog.at_level(logging.WARNING, logger="ratewarden.limiters.leaky_bucket"):
        assert await limiter.allow("k") is True
        await asyncio.sleep(0.1)

    assert "rate_limit.leak_failed" in caplog.messages
    assert limiter.pending_leaks == 0
    await limiter.aclose()
