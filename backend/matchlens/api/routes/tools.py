"""Agent tool endpoints, exposed over HTTP for inspection and debugging."""

import logging
from datetime import UTC, date, datetime, timedelta

from fastapi import APIRouter, HTTPException, Query

from matchlens.api.schemas import ErrorResponse
from matchlens.tools.competition_tools import CompetitionDataTools
from matchlens.tools.match_tools import MatchDataTools
from matchlens.tools.schemas import (
    CompetitionHistoryResult,
    CompetitionSearchResult,
    MatchInfo,
    SeasonStatisticsResult,
    SimilarMatchInfo,
    SimilarTeamResult,
    TeamInfo,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_LOOKBACK_YEARS = 5
DEFAULT_LOOKAHEAD_YEARS = 1


@router.get(
    "/competition-history/{code}",
    response_model=CompetitionHistoryResult,
    responses={404: {"model": ErrorResponse}},
)
async def competition_history(code: str) -> CompetitionHistoryResult:
    history = await CompetitionDataTools.get_competition_history(code)
    if history is None:
        raise HTTPException(status_code=404, detail=f"Competition {code.upper()} not found")
    return history


@router.get("/similar-teams", response_model=list[SimilarTeamResult])
async def similar_teams(
    description: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=50),
) -> list[SimilarTeamResult]:
    return await CompetitionDataTools.find_similar_teams(description, limit)


@router.get(
    "/season-statistics/{external_id}",
    response_model=SeasonStatisticsResult,
    responses={404: {"model": ErrorResponse}},
)
async def season_statistics(external_id: int) -> SeasonStatisticsResult:
    stats = await CompetitionDataTools.get_season_statistics(external_id)
    if stats is None:
        raise HTTPException(status_code=404, detail=f"Season {external_id} not found")
    return stats


@router.get("/season-statistics", response_model=list[SeasonStatisticsResult])
async def seasons_in_range(
    start_date: date | None = Query(None, description="Defaults to five years ago"),
    end_date: date | None = Query(None, description="Defaults to one year ahead"),
) -> list[SeasonStatisticsResult]:
    """Seasons overlapping the range, most recent first."""
    today = datetime.now(UTC).date()
    start = start_date or today - timedelta(days=365 * DEFAULT_LOOKBACK_YEARS)
    end = end_date or today + timedelta(days=365 * DEFAULT_LOOKAHEAD_YEARS)
    return await CompetitionDataTools.get_seasons_by_date_range(start, end)


@router.get("/search-competitions", response_model=list[CompetitionSearchResult])
async def search_competitions(
    query: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=50),
) -> list[CompetitionSearchResult]:
    return await CompetitionDataTools.search_competitions(query, limit)


@router.get("/teams", response_model=list[TeamInfo])
async def tool_teams(
    name: str | None = Query(None),
    country: str | None = Query(None),
) -> list[TeamInfo]:
    return await MatchDataTools.get_teams(name, country)


@router.get("/matches", response_model=list[MatchInfo])
async def tool_matches(
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    status: str | None = Query(None),
) -> list[MatchInfo]:
    """At most 50 matches ordered by date."""
    return await MatchDataTools.get_matches(start_date, end_date, status)


@router.get("/similar-matches", response_model=list[SimilarMatchInfo])
async def similar_matches(
    context: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
) -> list[SimilarMatchInfo]:
    return await MatchDataTools.search_similar_matches(context, limit)
