"""Match, team and prediction tools for the prediction agent."""

import logging
import uuid
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from matchlens.db.models import Match
from matchlens.db.repositories.unit_of_work import get_uow
from matchlens.tools.schemas import MatchInfo, SavePredictionResult, SimilarMatchInfo, TeamInfo
from matchlens.vector.embeddings import get_embedding_service

logger = logging.getLogger(__name__)

MAX_MATCHES = 50
REASONING_MAX_LENGTH = 2000


def to_match_info(match: Match) -> MatchInfo:
    return MatchInfo(
        id=match.id,
        home_team_id=match.home_team_id,
        home_team_name=match.home_team.name if match.home_team else "Unknown",
        away_team_id=match.away_team_id,
        away_team_name=match.away_team.name if match.away_team else "Unknown",
        match_date=match.match_date,
        stadium=match.stadium,
        home_score=match.home_score,
        away_score=match.away_score,
        status=match.status,
    )


class MatchDataTools:
    """Read and write helpers over matches, teams and predictions."""

    @staticmethod
    async def get_teams(name: str | None = None, country: str | None = None) -> list[TeamInfo]:
        async with get_uow() as uow:
            teams = await uow.teams.search(name=name, country=country)
        return [TeamInfo(id=t.id, name=t.name, country=t.country, league=t.league) for t in teams]

    @staticmethod
    async def get_team_by_id(team_id: uuid.UUID) -> TeamInfo | None:
        async with get_uow() as uow:
            team = await uow.teams.get_by_id(team_id)
        if team is None:
            return None
        return TeamInfo(id=team.id, name=team.name, country=team.country, league=team.league)

    @staticmethod
    async def get_matches(
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        status: str | None = None,
    ) -> list[MatchInfo]:
        """Up to 50 matches ordered by kick-off."""
        async with get_uow() as uow:
            matches = await uow.matches.get_by_date_range(
                start_date, end_date, status=status, limit=MAX_MATCHES
            )
        return [to_match_info(m) for m in matches]

    @staticmethod
    async def get_match_by_id(match_id: uuid.UUID) -> MatchInfo | None:
        async with get_uow() as uow:
            match = await uow.matches.get_with_teams(match_id)
        return to_match_info(match) if match is not None else None

    @staticmethod
    async def search_similar_matches(context: str, limit: int = 10) -> list[SimilarMatchInfo]:
        """Past predictions whose match context resembles ``context``.

        Returns an empty list when the context cannot be embedded or the
        query fails.
        """
        embedding = await get_embedding_service().generate_embedding(context)
        if embedding is None:
            logger.warning("[Tools] No embedding for similar match search")
            return []

        try:
            async with get_uow() as uow:
                rows = await uow.predictions.nearest_by_context(embedding, limit=limit)
        except SQLAlchemyError as e:
            logger.error(f"[Tools] Similar match search failed: {e}")
            return []

        results = []
        for prediction, distance in rows:
            match = prediction.match
            results.append(
                SimilarMatchInfo(
                    match_id=match.id,
                    home_team_id=match.home_team_id,
                    home_team_name=match.home_team.name if match.home_team else "Unknown",
                    away_team_id=match.away_team_id,
                    away_team_name=match.away_team.name if match.away_team else "Unknown",
                    match_date=match.match_date,
                    home_score=match.home_score,
                    away_score=match.away_score,
                    home_win_probability=prediction.home_win_probability,
                    draw_probability=prediction.draw_probability,
                    away_win_probability=prediction.away_win_probability,
                    similarity=1.0 - distance,
                )
            )
        return results

    @staticmethod
    async def save_prediction(
        match_id: uuid.UUID,
        home_win_probability: float,
        draw_probability: float,
        away_win_probability: float,
        predicted_home_score: int | None = None,
        predicted_away_score: int | None = None,
        reasoning: str | None = None,
        confidence: float = 0.0,
        model_version: str | None = None,
        context_embedding: list[float] | None = None,
    ) -> SavePredictionResult:
        """Persist a prediction; failures are reported in the result."""
        try:
            async with get_uow() as uow:
                if await uow.matches.get_by_id(match_id) is None:
                    return SavePredictionResult(
                        success=False, error_message=f"Match {match_id} not found"
                    )
                prediction = await uow.predictions.create(
                    match_id=match_id,
                    home_win_probability=home_win_probability,
                    draw_probability=draw_probability,
                    away_win_probability=away_win_probability,
                    predicted_home_score=predicted_home_score,
                    predicted_away_score=predicted_away_score,
                    reasoning=reasoning[:REASONING_MAX_LENGTH] if reasoning else None,
                    confidence=confidence,
                    model_version=model_version,
                    context_embedding=context_embedding or None,
                )
                await uow.commit()
        except SQLAlchemyError as e:
            logger.error(f"[Tools] Failed to save prediction for match {match_id}: {e}")
            return SavePredictionResult(success=False, error_message=str(e))

        logger.info(f"[Tools] Saved prediction {prediction.id} for match {match_id}")
        return SavePredictionResult(success=True, prediction_id=prediction.id)
