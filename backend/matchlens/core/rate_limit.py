"""Rate limiting for the LLM-heavy and sync endpoints.

Limits are keyed by client IP. Counters live in Redis when it is configured
so that all workers share them; otherwise in process memory.
"""

import logging
import re

from slowapi import Limiter
from slowapi.util import get_remote_address

from matchlens.core.config import settings

logger = logging.getLogger(__name__)


def parse_redis_url(raw_url: str) -> str:
    """Normalize a Redis URL, unwrapping ``redis-cli --tls -u <url>`` strings."""
    if not raw_url:
        return ""

    url_match = re.search(r"(rediss?://[^\s]+)", raw_url)
    url = url_match.group(1) if url_match else raw_url

    if "--tls" in raw_url and url.startswith("redis://"):
        url = url.replace("redis://", "rediss://", 1)
    return url


def get_storage_uri() -> str:
    if settings.app_env == "test":
        return "memory://"
    return parse_redis_url(settings.redis_url) or "memory://"


STORAGE_URI = get_storage_uri()

if settings.is_production and STORAGE_URI == "memory://":
    logger.critical("REDIS_URL is not set in production! Rate limits are per-worker.")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["100/minute"],
    storage_uri=STORAGE_URI,
    # Rate limiting must not take the API down with Redis
    swallow_errors=True,
)

# Used with @limiter.limit(RATE_LIMITS["..."]) in route files
RATE_LIMITS = {
    "default": "100/minute",
    "predictions": "20/minute",  # One LLM call per request
    "agent": "20/minute",
    "workflows": "30/minute",
    "sync": "5/minute",  # Calls football-data.org
}
