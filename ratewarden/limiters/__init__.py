"""Rate limiting algorithms.

All limiters share the :class:`AbstractRateLimiter` contract and are
interchangeable: pick one per algorithm/config pair and call
``await limiter.allow(key)`` before processing each request.
"""

from ratewarden.limiters.base import AbstractRateLimiter, Quota
from ratewarden.limiters.factory import create_limiter
from ratewarden.limiters.fixed_window import FixedWindowLimiter
from ratewarden.limiters.leaky_bucket import LeakyBucketLimiter
from ratewarden.limiters.sliding_window import SlidingWindowLimiter
from ratewarden.limiters.token_bucket import TokenBucketLimiter

__all__ = [
    "AbstractRateLimiter",
    "FixedWindowLimiter",
    "LeakyBucketLimiter",
    "Quota",
    "SlidingWindowLimiter",
    "TokenBucketLimiter",
    "create_limiter",
]
