"""Redis counter store adapter.

Uses the asyncio client from redis-py. Counters are plain integer keys driven
by ``INCR`` and expired natively by Redis, so several processes (or several
limiter instances) sharing one Redis observe the same counts.
"""

from __future__ import annotations

import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ratewarden.adapters.storage.base import AbstractCounterStore
from ratewarden.core.errors import StoreError

logger = logging.getLogger(__name__)


class RedisCounterStore(AbstractCounterStore):
    """Counter store backed by a Redis server.

    Backend errors are translated into :class:`StoreError` so callers handle
    one exception type regardless of the underlying client.
    """

    def __init__(self, client: Redis, *, key_prefix: str = "ratewarden:") -> None:
        """Initialize the adapter.

        Args:
            client: Connected ``redis.asyncio.Redis`` client.
            key_prefix: Namespace prepended to every key.
        """
        self._client = client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, *, key_prefix: str = "ratewarden:", **kwargs: Any) -> "RedisCounterStore":
        """Build a store from a ``redis://`` URL.

        Args:
            url: Redis connection URL.
            key_prefix: Namespace prepended to every key.
            **kwargs: Extra options forwarded to ``Redis.from_url``.
        """
        client = Redis.from_url(url, decode_responses=True, **kwargs)
        return cls(client, key_prefix=key_prefix)

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _wrap_error(self, operation: str, exc: RedisError) -> StoreError:
        logger.warning(
            "store.redis_error",
            extra={
                "operation": operation,
                "error_type": type(exc).__name__,
            },
        )
        return StoreError(
            code="store_unavailable",
            message=f"Redis {operation} failed: {exc}",
            details={"backend": "redis", "operation": operation},
        )

    async def increment(self, key: str) -> int:
        try:
            return int(await self._client.incr(self._full_key(key)))
        except RedisError as exc:
            raise self._wrap_error("incr", exc) from exc

    async def reset(self, key: str) -> None:
        try:
            await self._client.delete(self._full_key(key))
        except RedisError as exc:
            raise self._wrap_error("delete", exc) from exc

    async def get(self, key: str) -> int:
        try:
            value = await self._client.get(self._full_key(key))
        except RedisError as exc:
            raise self._wrap_error("get", exc) from exc
        return int(value) if value is not None else 0

    async def set_ttl(self, key: str, ttl_seconds: float) -> None:
        # PEXPIRE keeps sub-second intervals intact
        ttl_ms = max(1, int(ttl_seconds * 1000))
        try:
            await self._client.pexpire(self._full_key(key), ttl_ms)
        except RedisError as exc:
            raise self._wrap_error("pexpire", exc) from exc

    async def ttl(self, key: str) -> float:
        try:
            ttl_ms = await self._client.pttl(self._full_key(key))
        except RedisError as exc:
            raise self._wrap_error("pttl", exc) from exc
        # -2: key absent, -1: no expiry
        if ttl_ms is None or ttl_ms < 0:
            return 0.0
        return ttl_ms / 1000

    async def aclose(self) -> None:
        """Close the underlying connection pool."""

        await self._client.aclose()
