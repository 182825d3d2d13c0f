"""Library-level exception types.

Limiters never define their own failure kinds: collaborator errors pass
through untouched. The types below are raised by the shipped collaborators
(stores, factories) so callers can handle them consistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Fields are optional so each raise site only fills what it knows.
    """

    code: str
    message: str
    hint: str
    backend: str
    algorithm: str
    operation: str
    context: NotRequired[dict[str, Any]]


@dataclass
class RateWardenError(Exception):
    """Base error for ratewarden failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigurationError(RateWardenError):
    """Raised when settings are invalid or name an unknown backend/algorithm."""


class StoreError(RateWardenError):
    """Raised when a counter store backend cannot complete an operation."""
