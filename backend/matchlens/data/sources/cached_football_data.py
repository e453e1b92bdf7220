"""Cache-first wrapper around the football-data.org client.

Competition payloads change rarely, so they are kept in Redis for
``football_data_cache_ttl_days``. A miss goes to the API and stores the
result; failed fetches are not cached.
"""

import logging

from matchlens.core.cache import cache_delete, cached
from matchlens.core.config import settings
from matchlens.data.sources.football_data import (
    CompetitionResponse,
    FootballDataClient,
    get_football_data_client,
)

logger = logging.getLogger(__name__)

CACHE_TTL_COMPETITION = settings.football_data_cache_ttl_days * 24 * 3600


def competition_cache_key(code: str) -> str:
    return f"football:competition:{code.upper()}"


def competition_raw_cache_key(code: str) -> str:
    return f"football:competition-raw:{code.upper()}"


class CachedFootballDataClient:
    """Same interface as FootballDataClient, served from Redis first."""

    def __init__(self, inner: FootballDataClient | None = None):
        self.inner = inner or get_football_data_client()

    @cached(
        ttl=CACHE_TTL_COMPETITION,
        key_builder=lambda self, code: competition_cache_key(code),
        model=CompetitionResponse,
    )
    async def get_competition(self, code: str) -> CompetitionResponse | None:
        return await self.inner.get_competition(code)

    @cached(ttl=CACHE_TTL_COMPETITION, key_builder=lambda self, code: competition_raw_cache_key(code))
    async def get_competition_raw(self, code: str) -> str | None:
        return await self.inner.get_competition_raw(code)

    async def invalidate_competition(self, code: str) -> None:
        """Drop both cached forms of a competition."""
        await cache_delete(competition_cache_key(code))
        await cache_delete(competition_raw_cache_key(code))
        logger.info(f"Invalidated cache for competition {code.upper()}")


def get_cached_football_data_client() -> CachedFootballDataClient:
    return CachedFootballDataClient()
