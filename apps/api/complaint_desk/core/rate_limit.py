"""Rate limiting configuration for the complaint desk API."""

import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from complaint_desk.core.config import settings

# Redis for multi-worker support; in-memory in tests or when Redis is down
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)


def submit_limit() -> str:
    """Per-client limit for submissions and replies."""
    if IS_TESTING or settings.RATE_LIMIT_SUBMIT <= 0:
        return "1000000/minute"
    return f"{settings.RATE_LIMIT_SUBMIT}/minute"


if IS_TESTING:
    # Use in-memory storage for tests (no Redis dependency)
    limiter = Limiter(
        key_func=get_remote_address,
        storage_uri="memory://",
        default_limits=DEFAULT_LIMITS,
    )
else:
    # Try Redis, fall back to memory if connection fails
    try:
        import redis

        r = redis.from_url(REDIS_URL, socket_connect_timeout=1)
        r.ping()
        limiter = Limiter(
            key_func=get_remote_address,
            storage_uri=REDIS_URL,
            default_limits=DEFAULT_LIMITS,
        )
    except Exception as e:
        logging.warning(f"Redis unavailable for rate limiting, using in-memory: {e}")
        limiter = Limiter(
            key_func=get_remote_address,
            storage_uri="memory://",
            default_limits=DEFAULT_LIMITS,
        )
