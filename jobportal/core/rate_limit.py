from __future__ import annotations

from collections.abc import Callable
from typing import Any

from slowapi import Limiter
from slowapi.util import get_remote_address

from jobportal.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def rate_limit(limit: str | None = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Per-client limit for generation-backed routes; a no-op when rate limiting is disabled."""
    if settings.rate_limit_enabled:
        return limiter.limit(limit or settings.rate_limit)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        return func

    return decorator
