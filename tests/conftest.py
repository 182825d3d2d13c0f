"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before anything imports the settings module.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["RATELIMIT_ENV"] = "testing"
os.environ.setdefault("RATELIMIT_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest

from ratewarden.adapters.storage.in_memory import InMemoryCounterStore


class FakeClock:
    """Deterministic clock used to test expiration and window logic."""

    def __init__(self, start: float = 6_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)
