"""Static, in-process parameter source."""

from __future__ import annotations

import threading
import time
from typing import Callable

from ratewarden.adapters.params.base import AbstractParameterSource
from ratewarden.core.config import LimiterSettings


class StaticParameterSource(AbstractParameterSource):
    """Parameter source holding fixed limits and a mutable token balance.

    Attributes are set once at construction; only the token balance and the
    last-refill timestamp change afterwards, guarded by a lock.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        interval: float,
        burst_limit: int = 0,
        tokens: int = 0,
        last_refill: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the static parameters.

        Args:
            max_requests: Steady-state ceiling per interval.
            interval: Window / refill period in seconds.
            burst_limit: Extra admissions tolerated above max_requests.
            tokens: Initial token balance (clamped to [0, max_requests]).
            last_refill: Initial refill timestamp; defaults to ``clock()``.
            clock: Time source used for the default last_refill.

        Raises:
            ValueError: If a limit is out of range.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if interval <= 0:
            raise ValueError("interval must be > 0")
        if burst_limit < 0:
            raise ValueError("burst_limit must be >= 0")

        self._max_requests = max_requests
        self._interval = float(interval)
        self._burst_limit = burst_limit
        self._lock = threading.Lock()
        self._tokens = self._clamp(tokens)
        self._last_refill = clock() if last_refill is None else last_refill

    @classmethod
    def from_settings(
        cls,
        limiter_settings: LimiterSettings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "StaticParameterSource":
        """Build a parameter source from limiter settings."""

        return cls(
            max_requests=limiter_settings.max_requests,
            interval=limiter_settings.interval_seconds,
            burst_limit=limiter_settings.burst_limit,
            tokens=limiter_settings.initial_tokens,
            clock=clock,
        )

    def _clamp(self, tokens: int) -> int:
        return max(0, min(self._max_requests, tokens))

    async def max_requests(self) -> int:
        return self._max_requests

    async def interval(self) -> float:
        return self._interval

    async def burst_limit(self) -> int:
        return self._burst_limit

    async def tokens(self) -> int:
        with self._lock:
            return self._tokens

    async def set_tokens(self, tokens: int) -> None:
        with self._lock:
            self._tokens = self._clamp(tokens)

    async def last_refill(self) -> float:
        with self._lock:
            return self._last_refill

    async def set_last_refill(self, last_refill: float) -> None:
        with self._lock:
            self._last_refill = last_refill
