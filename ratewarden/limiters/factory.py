"""Factory for building limiters from settings."""

from __future__ import annotations

from ratewarden.adapters.params.base import AbstractParameterSource
from ratewarden.adapters.params.static import StaticParameterSource
from ratewarden.adapters.storage.base import AbstractCounterStore
from ratewarden.adapters.storage.factory import create_counter_store
from ratewarden.core.config import ALGORITHMS, LimiterSettings, settings
from ratewarden.core.errors import ConfigurationError
from ratewarden.limiters.base import AbstractRateLimiter
from ratewarden.limiters.fixed_window import FixedWindowLimiter
from ratewarden.limiters.leaky_bucket import LeakyBucketLimiter
from ratewarden.limiters.sliding_window import SlidingWindowLimiter
from ratewarden.limiters.token_bucket import TokenBucketLimiter


def create_limiter(
    limiter_settings: LimiterSettings | None = None,
    *,
    store: AbstractCounterStore | None = None,
    params: AbstractParameterSource | None = None,
) -> AbstractRateLimiter:
    """Instantiate the limiter named by ``LimiterSettings.algorithm``.

    Collaborators that are not passed in are built from settings: the store
    via :func:`create_counter_store`, the parameters as a
    :class:`StaticParameterSource`.

    Args:
        limiter_settings: Optional settings; defaults to the global settings.
        store: Counter store to use instead of the configured backend.
        params: Parameter source to use instead of the static settings.

    Returns:
        AbstractRateLimiter: Configured limiter instance.

    Raises:
        ConfigurationError: If the algorithm is unknown.
    """
    cfg = limiter_settings or settings.limiter
    algorithm = cfg.algorithm.lower()

    if algorithm not in ALGORITHMS:
        raise ConfigurationError(
            code="limiter_unknown_algorithm",
            message=(
                f"Unknown rate limiting algorithm: '{algorithm}'. "
                f"Supported algorithms: {', '.join(ALGORITHMS)}"
            ),
            details={"algorithm": algorithm},
        )

    store = store or create_counter_store()
    params = params or StaticParameterSource.from_settings(cfg)

    if algorithm == "fixed_window":
        return FixedWindowLimiter(store, params)
    if algorithm == "sliding_window":
        return SlidingWindowLimiter(store, params)
    if algorithm == "leaky_bucket":
        return LeakyBucketLimiter(store, params)
    return TokenBucketLimiter(store, params, poll_interval=cfg.refill_poll_seconds)
