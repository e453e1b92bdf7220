"""Pytest configuration and fixtures for API integration tests."""

import os

os.environ["APP_ENV"] = "test"
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, date, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from matchlens.api.main import app
from matchlens.core.rate_limit import limiter
from matchlens.messaging.bus import MessageBus
from matchlens.workflows.events import WorkflowEventStore
from matchlens.workflows.metrics import WorkflowMetrics
from matchlens.workflows.saga import PredictionSaga


@pytest.fixture
def client() -> TestClient:
    """Test client for synchronous tests. The lifespan is not run."""
    limiter.reset()
    yield TestClient(app)


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for async tests."""
    limiter.reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def bus() -> MessageBus:
    """A bus that is never started; tests dispatch with ``drain()``."""
    return MessageBus(max_queue_size=100)


@pytest.fixture
def saga() -> PredictionSaga:
    return PredictionSaga()


@pytest.fixture
def metrics() -> WorkflowMetrics:
    return WorkflowMetrics()


@pytest.fixture
def event_store() -> WorkflowEventStore:
    return WorkflowEventStore(max_events=1000)


def _make_uow(**repositories: Any) -> MagicMock:
    mock_uow = MagicMock()
    for name, repository in repositories.items():
        setattr(mock_uow, name, repository)
    mock_uow.commit = AsyncMock()
    mock_uow.__aenter__ = AsyncMock(return_value=mock_uow)
    mock_uow.__aexit__ = AsyncMock(return_value=None)
    return mock_uow


@pytest.fixture
def make_uow():
    """Factory for MagicMocks usable as ``async with get_uow() as uow``."""
    return _make_uow


@pytest.fixture
def sample_competition_data() -> dict[str, Any]:
    """football-data.org payload for GET /competitions/PL."""
    return {
        "id": 2021,
        "name": "Premier League",
        "code": "PL",
        "type": "LEAGUE",
        "emblem": "https://crests.football-data.org/PL.png",
        "area": {
            "id": 2072,
            "name": "England",
            "code": "ENG",
            "flag": "https://crests.football-data.org/770.svg",
        },
        "seasons": [
            {
                "id": 1564,
                "startDate": "2023-08-11",
                "endDate": "2024-05-19",
                "currentMatchday": 38,
                "winner": {
                    "id": 65,
                    "name": "Manchester City FC",
                    "shortName": "Man City",
                    "tla": "MCI",
                    "crest": "https://crests.football-data.org/65.png",
                    "address": "SportCity Manchester M11 3FF",
                    "website": "https://www.mancity.com",
                    "founded": 1880,
                    "clubColors": "Sky Blue / White",
                    "venue": "Etihad Stadium",
                    "area": {"id": 2072, "name": "England", "code": "ENG"},
                },
                "stages": ["REGULAR_SEASON"],
            },
            {
                "id": 2287,
                "startDate": "2025-08-15",
                "endDate": "2026-05-24",
                "currentMatchday": 10,
                "winner": None,
                "stages": ["REGULAR_SEASON"],
            },
        ],
    }


@pytest.fixture
def sample_team() -> MagicMock:
    team = MagicMock()
    team.id = uuid.uuid4()
    team.name = "Manchester City FC"
    team.country = "England"
    team.league = "Premier League"
    return team


@pytest.fixture
def sample_season() -> MagicMock:
    competition = MagicMock()
    competition.name = "Premier League"

    season = MagicMock()
    season.id = uuid.uuid4()
    season.external_id = 1564
    season.competition_id = uuid.uuid4()
    season.competition = competition
    season.start_date = date(2023, 8, 11)
    season.end_date = date(2024, 5, 19)
    season.current_matchday = 38
    season.winner_external_id = 65
    season.winner_name = "Manchester City FC"
    return season


@pytest.fixture
def sample_match(sample_team: MagicMock) -> MagicMock:
    away = MagicMock()
    away.id = uuid.uuid4()
    away.name = "Liverpool FC"

    match = MagicMock()
    match.id = uuid.uuid4()
    match.home_team_id = sample_team.id
    match.home_team = sample_team
    match.away_team_id = away.id
    match.away_team = away
    match.match_date = datetime(2026, 2, 5, 20, 0, tzinfo=UTC)
    match.stadium = "Etihad Stadium"
    match.home_score = None
    match.away_score = None
    match.status = "scheduled"
    return match
