"""Counter store interface.

Limiters depend on this abstraction (not a concrete backend). Any backend
can be plugged in as long as it upholds two guarantees:

- ``increment`` is atomic per key.
- Once a key's TTL elapses its count reads as 0.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractCounterStore(ABC):
    """Per-key integer counters with expiry."""

    @abstractmethod
    async def increment(self, key: str) -> int:
        """Atomically add one to the key's counter.

        Args:
            key: Counter key. Created at 1 when absent.

        Returns:
            The post-increment count.
        """
        raise NotImplementedError

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Set the key's count to 0 and clear its expiry."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, key: str) -> int:
        """Read the key's count without mutating it. Absent keys read 0."""
        raise NotImplementedError

    @abstractmethod
    async def set_ttl(self, key: str, ttl_seconds: float) -> None:
        """(Re)set the key's expiry to ``ttl_seconds`` from now."""
        raise NotImplementedError

    @abstractmethod
    async def ttl(self, key: str) -> float:
        """Remaining seconds before the key expires.

        Returns:
            A positive number of seconds, or a non-positive value when the key
            is absent or has no expiry.
        """
        raise NotImplementedError
