"""Client for football-data.org API.

Free tier: 10 requests/minute
Documentation: https://www.football-data.org/documentation/api

Outgoing requests are throttled by a token-bucket limiter. Public methods
never raise: every failure (404, 429 after retries, auth errors, transport
or parse errors) is logged and reported as ``None``.
"""

import asyncio
import logging
from datetime import date
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from matchlens.core.config import settings
from matchlens.core.exceptions import FootballDataAPIError, RateLimitError
from matchlens.core.http_client import get_http_client

logger = logging.getLogger(__name__)


# ============== OUTGOING RATE LIMITER ==============
class AsyncRateLimiter:
    """Token bucket limiting outgoing requests to football-data.org."""

    def __init__(self, requests_per_minute: int = 8):
        self.requests_per_minute = requests_per_minute
        self.min_interval = 60.0 / requests_per_minute
        self._lock = asyncio.Lock()
        self._last_request_time: float = 0
        self._rate_limit_until: float = 0

    async def acquire(self) -> None:
        """Wait until a request can be made without exceeding the rate limit."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()

            if self._rate_limit_until > now:
                wait_time = self._rate_limit_until - now
                logger.info(f"Rate limit active, waiting {wait_time:.1f}s for reset")
                await asyncio.sleep(wait_time)
                now = loop.time()

            elapsed = now - self._last_request_time
            if elapsed < self.min_interval:
                await asyncio.sleep(self.min_interval - elapsed)

            self._last_request_time = loop.time()

    def set_rate_limit(self, reset_seconds: int) -> None:
        """Block requests until the API's rate-limit window resets."""
        self._rate_limit_until = asyncio.get_running_loop().time() + reset_seconds
        logger.warning(f"Rate limit set for {reset_seconds}s")


_rate_limiter = AsyncRateLimiter(requests_per_minute=settings.football_data_requests_per_minute)


# ============== RESPONSE MODELS ==============
class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AreaData(_ApiModel):
    """Area (country or continent) from API."""

    id: int
    name: str
    code: str | None = None
    flag: str | None = None


class WinnerData(_ApiModel):
    """Season winner team details from API."""

    id: int
    name: str
    shortName: str | None = None
    tla: str | None = None
    crest: str | None = None
    address: str | None = None
    website: str | None = None
    founded: int | None = None
    clubColors: str | None = None
    venue: str | None = None
    area: AreaData | None = None


class SeasonData(_ApiModel):
    """Competition season from API."""

    id: int
    startDate: date
    endDate: date
    currentMatchday: int | None = None
    winner: WinnerData | None = None
    stages: list[str] = []


class CompetitionResponse(_ApiModel):
    """Payload of GET /competitions/{code}."""

    id: int
    name: str
    code: str
    type: str | None = None
    emblem: str | None = None
    area: AreaData | None = None
    currentSeason: SeasonData | None = None
    seasons: list[SeasonData] = []


class FootballDataClient:
    """Client for football-data.org API."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.api_key = api_key if api_key is not None else settings.football_data_api_key
        self.base_url = (base_url or settings.football_data_base_url).rstrip("/")
        self.headers = {"X-Auth-Token": self.api_key} if self.api_key else {}
        if not self.api_key:
            logger.warning("FootballDataClient initialized WITHOUT API key!")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    async def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> str:
        """GET ``endpoint`` and return the response body, retrying on 429."""
        url = f"{self.base_url}{endpoint}"
        await _rate_limiter.acquire()

        response = await get_http_client().get(
            url,
            headers=self.headers,
            params=params,
            timeout=settings.football_data_timeout_seconds,
        )

        if response.status_code == 429:
            reset_seconds = 60
            for header in ("x-requestcounter-reset", "Retry-After"):
                if header in response.headers:
                    try:
                        reset_seconds = int(response.headers[header])
                    except (ValueError, TypeError):
                        pass
                    break
            _rate_limiter.set_rate_limit(reset_seconds + 2)
            raise RateLimitError(
                "Rate limit exceeded for football-data.org",
                details={"retry_after": reset_seconds},
            )

        if response.status_code != 200:
            raise FootballDataAPIError(
                f"API error: {response.status_code}",
                details={"status_code": response.status_code, "response": response.text[:500]},
            )

        return response.text

    async def get_competition_raw(self, code: str) -> str | None:
        """Raw JSON of a competition, or None when it cannot be fetched."""
        try:
            return await self._request(f"/competitions/{code}")
        except RateLimitError:
            logger.warning(f"Rate limit exceeded when fetching competition {code}")
        except FootballDataAPIError as e:
            status = e.details.get("status_code")
            if status == 404:
                logger.warning(f"Competition {code} not found")
            elif status in (401, 403):
                logger.error(f"Authentication failed for competition {code}, check API key")
            else:
                logger.error(f"Error fetching competition {code}: {e.message}")
        except httpx.HTTPError as e:
            logger.error(f"HTTP error fetching competition {code}: {e}")
        return None

    async def get_competition(self, code: str) -> CompetitionResponse | None:
        """Parsed competition with its seasons, or None when unavailable."""
        raw = await self.get_competition_raw(code)
        if raw is None:
            return None
        try:
            competition = CompetitionResponse.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.error(f"Failed to parse competition {code}: {e}")
            return None
        logger.info(f"Fetched competition {code} with {len(competition.seasons)} seasons")
        return competition


def get_football_data_client() -> FootballDataClient:
    """Create a client with the current settings."""
    return FootballDataClient()
