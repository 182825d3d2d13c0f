from __future__ import annotations

from ratewarden.api.dependencies import (
    RateLimitDependency,
    build_rate_limit_key,
    enforce_rate_limit,
    get_rate_limiter,
)

__all__ = [
    "RateLimitDependency",
    "build_rate_limit_key",
    "enforce_rate_limit",
    "get_rate_limiter",
]
