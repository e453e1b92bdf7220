"""Competition, season and team lookups used by the football data agent.

Semantic searches embed the query and rank rows by pgvector cosine distance
(similarity = 1 - distance). When the embedding provider returns nothing
they fall back to a case-insensitive substring search scored at 0.5.
"""

import logging
from datetime import UTC, date, datetime

from matchlens.core.exceptions import ValidationError
from matchlens.db.models import Season
from matchlens.db.repositories.unit_of_work import get_uow
from matchlens.tools.schemas import (
    CompetitionHistoryEntry,
    CompetitionHistoryResult,
    CompetitionSearchResult,
    SeasonStatisticsResult,
    SimilarTeamResult,
)
from matchlens.vector.embeddings import get_embedding_service

logger = logging.getLogger(__name__)

FALLBACK_TEXT_SIMILARITY = 0.5
DAYS_PER_MATCHDAY = 7


def build_season_statistics(season: Season, today: date | None = None) -> SeasonStatisticsResult:
    """Derive progress figures for a season.

    A season is completed once its end date has passed or a winner is known.
    Matchdays are estimated as one per week between start and end.
    """
    today = today or datetime.now(UTC).date()
    is_completed = today > season.end_date or bool(season.winner_name)
    days_remaining = 0 if is_completed else max(0, (season.end_date - today).days)
    total_matchdays = (season.end_date - season.start_date).days // DAYS_PER_MATCHDAY

    competition = season.competition
    return SeasonStatisticsResult(
        season_external_id=season.external_id,
        competition_name=competition.name if competition is not None else "Unknown",
        start_date=season.start_date,
        end_date=season.end_date,
        current_matchday=season.current_matchday,
        winner_name=season.winner_name,
        total_matchdays=total_matchdays,
        days_remaining=days_remaining,
        is_completed=is_completed,
    )


def _require_text(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} cannot be empty", details={"field": field})
    return value.strip()


class CompetitionDataTools:
    """Database-backed tools over competitions, seasons and teams."""

    @staticmethod
    async def get_competition_history(competition_code: str) -> CompetitionHistoryResult | None:
        """Competition with all its seasons, most recent first."""
        code = _require_text(competition_code, "competition_code").upper()
        async with get_uow() as uow:
            competition = await uow.competitions.get_by_code(code)
            if competition is None:
                logger.info(f"[Tools] Competition {code} not found")
                return None
            seasons = await uow.seasons.get_for_competition(competition.id)

        logger.info(f"[Tools] Retrieved {len(seasons)} seasons for {code}")
        return CompetitionHistoryResult(
            competition_code=competition.code,
            competition_name=competition.name,
            area_name=competition.area_name,
            type=competition.type,
            seasons=[
                CompetitionHistoryEntry(
                    season_external_id=s.external_id,
                    start_date=s.start_date,
                    end_date=s.end_date,
                    winner_name=s.winner_name,
                    winner_external_id=s.winner_external_id,
                    current_matchday=s.current_matchday,
                )
                for s in seasons
            ],
        )

    @staticmethod
    async def find_similar_teams(description: str, limit: int = 5) -> list[SimilarTeamResult]:
        """Teams closest to a free-text description."""
        description = _require_text(description, "description")
        embedding = await get_embedding_service().generate_embedding(description)

        async with get_uow() as uow:
            if embedding is None:
                logger.info("[Tools] No embedding for team search, using text match")
                teams = await uow.teams.text_search(description, limit=limit)
                scored = [(team, FALLBACK_TEXT_SIMILARITY) for team in teams]
            else:
                scored = [
                    (team, 1.0 - distance)
                    for team, distance in await uow.teams.nearest(embedding, limit=limit)
                ]

        logger.info(f"[Tools] Found {len(scored)} similar teams")
        return [
            SimilarTeamResult(
                team_id=team.id,
                name=team.name,
                country=team.country,
                venue=team.venue,
                club_colors=team.club_colors,
                founded=team.founded,
                similarity=similarity,
            )
            for team, similarity in scored
        ]

    @staticmethod
    async def get_season_statistics(season_external_id: int) -> SeasonStatisticsResult | None:
        async with get_uow() as uow:
            season = await uow.seasons.get_by_external_id(season_external_id)
        if season is None:
            return None
        return build_season_statistics(season)

    @staticmethod
    async def get_seasons_by_date_range(start: date, end: date) -> list[SeasonStatisticsResult]:
        """Statistics for every season overlapping [start, end]."""
        if start > end:
            raise ValidationError("start_date must not be after end_date")
        async with get_uow() as uow:
            seasons = await uow.seasons.get_overlapping(start, end)
        today = datetime.now(UTC).date()
        return [build_season_statistics(season, today) for season in seasons]

    @staticmethod
    async def search_competitions(query: str, limit: int = 5) -> list[CompetitionSearchResult]:
        """Competitions matching a natural-language query."""
        query = _require_text(query, "query")
        embedding = await get_embedding_service().generate_embedding(query)

        async with get_uow() as uow:
            if embedding is None:
                competitions = await uow.competitions.text_search(query, limit=limit)
                scored = [(c, FALLBACK_TEXT_SIMILARITY) for c in competitions]
            else:
                scored = [
                    (c, 1.0 - distance)
                    for c, distance in await uow.competitions.nearest(embedding, limit=limit)
                ]

        return [
            CompetitionSearchResult(
                competition_id=c.id,
                name=c.name,
                code=c.code,
                type=c.type,
                area_name=c.area_name,
                similarity=similarity,
            )
            for c, similarity in scored
        ]
