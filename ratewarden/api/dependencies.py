"""Rate limiting dependencies for FastAPI routes.

This module wires a limiter into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency callable only.
- Swap-friendly: any limiter/store combination works behind the same
  dependency.
- Fail closed: when the limiter cannot decide (store down, timeout), the
  request is refused with 503 rather than let through.

Keying strategy:
- Per API key when an X-API-Key header is present.
- Otherwise, fall back to the client IP.
"""

import logging
import math
from typing import Annotated

from fastapi import Header, HTTPException, Request, status

from ratewarden.core.config import LimiterSettings, settings
from ratewarden.core.logging import hash_key
from ratewarden.limiters.base import AbstractRateLimiter
from ratewarden.limiters.factory import create_limiter

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: LimiterSettings | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide limiter built from settings.

    The instance is cached in-module to preserve state across requests.
    If the limiter settings change (primarily in tests), the limiter is
    stopped and rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = settings.limiter.model_copy()

    if _limiter is None or _limiter_config != config:
        if _limiter is not None:
            _limiter.stop()
        _limiter = create_limiter(config)
        _limiter_config = config

    return _limiter


def build_rate_limit_key(request: Request, x_api_key: str | None) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.
        x_api_key: API key value from the X-API-Key header.

    Returns:
        str: Namespaced limiter key.
    """

    if x_api_key:
        return f"api_key:{x_api_key}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


class RateLimitDependency:
    """FastAPI dependency enforcing one limiter.

    Usage:
        limiter = FixedWindowLimiter(store, params)

        @router.get("/items", dependencies=[Depends(RateLimitDependency(limiter))])
        async def list_items():
            ...
    """

    def __init__(
        self,
        limiter: AbstractRateLimiter,
        *,
        include_headers: bool = True,
        timeout: float | None = None,
    ) -> None:
        """Initialize the dependency.

        Args:
            limiter: Limiter consulted on every request.
            include_headers: Attach X-RateLimit-* and Retry-After on 429.
            timeout: Optional deadline in seconds for each limiter call.
        """
        self.limiter = limiter
        self.include_headers = include_headers
        self.timeout = timeout

    async def __call__(
        self,
        request: Request,
        x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    ) -> None:
        """Consume one unit for the requester or raise.

        Raises:
            HTTPException: 429 when the limit is exceeded, 503 when the
                limiter fails.
        """
        await enforce_with_limiter(
            self.limiter,
            build_rate_limit_key(request, x_api_key),
            key_type="api_key" if x_api_key else "ip",
            include_headers=self.include_headers,
            timeout=self.timeout,
        )


async def enforce_with_limiter(
    limiter: AbstractRateLimiter,
    key: str,
    *,
    key_type: str,
    include_headers: bool = True,
    timeout: float | None = None,
) -> None:
    """Admit one request for ``key`` or raise the matching HTTP error.

    Args:
        limiter: Limiter to consult.
        key: Namespaced limiter key.
        key_type: Label for logs ("api_key" or "ip").
        include_headers: Attach X-RateLimit-* and Retry-After on 429.
        timeout: Optional deadline in seconds for each limiter call.

    Raises:
        HTTPException: 429 Too Many Requests or 503 Service Unavailable.
    """

    key_hash = hash_key(key)

    try:
        allowed = await limiter.allow(key, timeout=timeout)
    except Exception as exc:
        logger.error(
            "rate_limit.unavailable",
            extra={
                "key_type": key_type,
                "key_hash": key_hash,
                "algorithm": limiter.algorithm,
                "error_type": type(exc).__name__,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiter unavailable. Try again later.",
        ) from exc

    if allowed:
        return

    headers: dict[str, str] = {}
    if include_headers:
        try:
            quota = await limiter.quota(key, timeout=timeout)
            wait_seconds = await limiter.next_allowed(key, timeout=timeout)
        except Exception as exc:
            # The request is already denied; only the advisory headers are lost
            logger.warning(
                "rate_limit.headers_unavailable",
                extra={"key_hash": key_hash, "error_type": type(exc).__name__},
            )
        else:
            retry_after = max(0, math.ceil(wait_seconds))
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(quota.limit)
            headers["X-RateLimit-Remaining"] = str(quota.remaining)

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_type": key_type,
            "key_hash": key_hash,
            "algorithm": limiter.algorithm,
            "retry_after_s": headers.get("Retry-After"),
        },
    )

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers or None,
    )


async def enforce_rate_limit(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency enforcing the settings-configured limiter.

    A no-op when RATELIMIT_ENABLED is false.

    Raises:
        HTTPException: 429 when the limit is exceeded, 503 when the limiter fails.
    """

    if not settings.limiter.enabled:
        return

    await enforce_with_limiter(
        get_rate_limiter(),
        build_rate_limit_key(request, x_api_key),
        key_type="api_key" if x_api_key else "ip",
        include_headers=settings.limiter.include_headers,
    )
