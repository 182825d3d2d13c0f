"""Counter store adapters.

Limiters only depend on :class:`AbstractCounterStore`, so the in-memory store
used in tests and single-process deployments can be swapped for Redis (or
another shared backend) without touching limiter code.
"""

from ratewarden.adapters.storage.base import AbstractCounterStore
from ratewarden.adapters.storage.factory import create_counter_store
from ratewarden.adapters.storage.in_memory import InMemoryCounterStore
from ratewarden.adapters.storage.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_counter_store",
]
