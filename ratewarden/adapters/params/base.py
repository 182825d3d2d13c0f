from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractParameterSource(ABC):
	"""Interface for limiter tunables and token bucket bookkeeping.

	Limiters read every value on every call and never cache them, so an
	implementation may change limits at runtime.
	"""

	@abstractmethod
	async def max_requests(self) -> int:
		"""Steady-state ceiling of requests per interval."""
		...

	@abstractmethod
	async def interval(self) -> float:
		"""Window / refill period in seconds."""
		...

	@abstractmethod
	async def burst_limit(self) -> int:
		"""Extra admissions tolerated above ``max_requests``."""
		...

	@abstractmethod
	async def tokens(self) -> int:
		"""Current token balance (token bucket only)."""
		...

	@abstractmethod
	async def set_tokens(self, tokens: int) -> None:
		"""Store a new token balance, clamped to ``[0, max_requests]``."""
		...

	@abstractmethod
	async def last_refill(self) -> float:
		"""UNIX time in seconds of the last accounted refill (token bucket only)."""
		...

	@abstractmethod
	async def set_last_refill(self, last_refill: float) -> None:
		"""Record the refill bookkeeping timestamp."""
		...
