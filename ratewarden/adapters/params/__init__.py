"""Parameter source adapters.

A parameter source hands limiters their tunables on every call and owns the
token bucket's mutable balance, so limits can be changed at runtime without
rebuilding limiter instances.
"""

from ratewarden.adapters.params.base import AbstractParameterSource
from ratewarden.adapters.params.static import StaticParameterSource

__all__ = [
    "AbstractParameterSource",
    "StaticParameterSource",
]
