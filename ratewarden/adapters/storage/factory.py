"""Factory for building counter stores from settings."""

from __future__ import annotations

from ratewarden.adapters.storage.base import AbstractCounterStore
from ratewarden.adapters.storage.in_memory import InMemoryCounterStore
from ratewarden.adapters.storage.redis_store import RedisCounterStore
from ratewarden.core.config import STORE_BACKENDS, StoreSettings, settings
from ratewarden.core.errors import ConfigurationError


def create_counter_store(store_settings: StoreSettings | None = None) -> AbstractCounterStore:
    """Instantiate the counter store named by ``StoreSettings.backend``.

    Args:
        store_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractCounterStore: Configured store instance.

    Raises:
        ConfigurationError: If the backend is unknown or under-configured.
    """
    cfg = store_settings or settings.store
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryCounterStore()

    if backend == "redis":
        if not cfg.redis_url:
            raise ConfigurationError(
                code="store_missing_redis_url",
                message="Redis backend requires RATELIMIT_STORE_REDIS_URL",
                details={"backend": backend},
            )
        return RedisCounterStore.from_url(cfg.redis_url, key_prefix=cfg.key_prefix)

    raise ConfigurationError(
        code="store_unknown_backend",
        message=(
            f"Unknown counter store backend: '{backend}'. "
            f"Supported backends: {', '.join(STORE_BACKENDS)}"
        ),
        details={"backend": backend},
    )
