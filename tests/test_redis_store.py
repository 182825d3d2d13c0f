"""Unit tests for the Redis counter store adapter (client mocked)."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from ratewarden.adapters.storage.redis_store import RedisCounterStore
from ratewarden.core.errors import StoreError


def _store(**client_methods) -> tuple[RedisCounterStore, AsyncMock]:
    client = AsyncMock()
    for name, value in client_methods.items():
        setattr(client, name, AsyncMock(return_value=value))
    return RedisCounterStore(client, key_prefix="rl:"), client


@pytest.mark.asyncio
async def test_increment_uses_prefixed_incr() -> None:
    store, client = _store(incr=3)

    assert await store.increment("user-1") == 3
    client.incr.assert_awaited_once_with("rl:user-1")


@pytest.mark.asyncio
async def test_get_absent_key_reads_zero() -> None:
    store, _ = _store(get=None)

    assert await store.get("k") == 0


@pytest.mark.asyncio
async def test_get_parses_string_counts() -> None:
    store, client = _store(get="7")

    assert await store.get("k") == 7
    client.get.assert_awaited_once_with("rl:k")


@pytest.mark.asyncio
async def test_set_ttl_uses_milliseconds() -> None:
    store, client = _store(pexpire=True)

    await store.set_ttl("k", 1.5)

    client.pexpire.assert_awaited_once_with("rl:k", 1500)


@pytest.mark.asyncio
@pytest.mark.parametrize("pttl, expected", [(-2, 0.0), (-1, 0.0), (2500, 2.5)])
async def test_ttl_maps_redis_sentinels(pttl: int, expected: float) -> None:
    store, _ = _store(pttl=pttl)

    assert await store.ttl("k") == expected


@pytest.mark.asyncio
async def test_reset_deletes_key() -> None:
    store, client = _store(delete=1)

    await store.reset("k")

    client.delete.assert_awaited_once_with("rl:k")


@pytest.mark.asyncio
async def test_backend_errors_become_store_errors() -> None:
    store, client = _store()
    client.incr = AsyncMock(side_effect=RedisConnectionError("connection refused"))

    with pytest.raises(StoreError) as exc_info:
        await store.increment("k")

    assert exc_info.value.code == "store_unavailable"
    assert exc_info.value.details == {"backend": "redis", "operation": "incr"}
    assert isinstance(exc_info.value.__cause__, RedisConnectionError)


@pytest.mark.asyncio
async def test_aclose_closes_client() -> None:
    store, client = _store(aclose=None)

    await store.aclose()

    client.aclose.assert_awaited_once()
