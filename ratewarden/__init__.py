"""ratewarden: pluggable asyncio rate limiters.

Limiters live in :mod:`ratewarden.limiters`, counter stores in
:mod:`ratewarden.adapters.storage`, parameter sources in
:mod:`ratewarden.adapters.params` and the FastAPI integration in
:mod:`ratewarden.api`.
"""

__version__ = "0.1.0"
