"""Rate limiting for the auth endpoints and the API at large."""

import logging
import os

import redis
from slowapi import Limiter
from slowapi.util import get_remote_address

from bugtracker.core.config import settings


logger = logging.getLogger(__name__)

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
AUTH_LIMIT = f"{max(settings.RATE_LIMIT_AUTH, 1)}/minute"


def _default_limits() -> list[str]:
    if settings.RATE_LIMIT_API <= 0:
        return []
    return [f"{settings.RATE_LIMIT_API}/minute"]


def _storage_uri(redis_url: str) -> str:
    """Use Redis when reachable so limits hold across workers; else per-process memory."""
    try:
        client = redis.from_url(redis_url, socket_connect_timeout=1)
        client.ping()
    except (redis.RedisError, OSError, ValueError) as exc:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", exc)
        return "memory://"
    return redis_url


def build_limiter(redis_url: str, testing: bool = False) -> Limiter:
    if testing:
        # No Redis and no throttling under test
        return Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=False)

    return Limiter(
        key_func=get_remote_address,
        storage_uri=_storage_uri(redis_url),
        default_limits=_default_limits(),
    )


limiter = build_limiter(settings.REDIS_URL, testing=IS_TESTING)
