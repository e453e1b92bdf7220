"""Prediction service: runs the prediction agent for a match and stores the result."""

import logging
import uuid
from collections.abc import Callable

from matchlens.core.exceptions import NotFoundError
from matchlens.db.models import MatchPrediction
from matchlens.db.repositories import get_uow
from matchlens.db.services.dtos import PredictionDTO
from matchlens.llm.prediction_agent import (
    AgentQueryResult,
    OllamaPredictionAgent,
    get_prediction_agent,
)
from matchlens.llm.prompts import MATCH_CONTEXT_TEMPLATE
from matchlens.workflows.metrics import get_workflow_metrics

logger = logging.getLogger(__name__)

MAX_REASONING_LENGTH = 2000


def prediction_to_dto(prediction: MatchPrediction, home_name: str, away_name: str) -> PredictionDTO:
    return PredictionDTO(
        id=prediction.id,
        match_id=prediction.match_id,
        home_team_name=home_name,
        away_team_name=away_name,
        home_win_probability=prediction.home_win_probability,
        draw_probability=prediction.draw_probability,
        away_win_probability=prediction.away_win_probability,
        predicted_home_score=prediction.predicted_home_score,
        predicted_away_score=prediction.predicted_away_score,
        reasoning=prediction.reasoning,
        confidence=prediction.confidence,
        model_version=prediction.model_version,
        predicted_at=prediction.predicted_at,
    )


class PredictionService:
    """Generates, stores and lists match predictions."""

    @staticmethod
    async def generate_prediction(
        match_id: uuid.UUID,
        additional_context: str | None = None,
        agent: OllamaPredictionAgent | None = None,
        progress: Callable[[str], None] | None = None,
    ) -> PredictionDTO:
        """Ask the agent for a prediction and persist it.

        ``progress`` is called with the name of each step as it begins:
        fetch_match, invoke_agent, save_prediction.

        Raises:
            NotFoundError: if the match does not exist.
        """
        agent = agent or get_prediction_agent()
        step = progress or (lambda _name: None)

        step("fetch_match")
        async with get_uow() as uow:
            match = await uow.matches.get_with_teams(match_id)
            if match is None:
                raise NotFoundError(f"Match {match_id} not found", details={"match_id": str(match_id)})
            home_name = match.home_team.name if match.home_team else "Unknown"
            away_name = match.away_team.name if match.away_team else "Unknown"
            match_date = match.match_date

        logger.info(f"Generating prediction for match {match_id}: {home_name} vs {away_name}")

        # No connection is held while the model runs.
        step("invoke_agent")
        result = await agent.generate_prediction(home_name, away_name, match_date, additional_context)

        step("save_prediction")
        async with get_uow() as uow:
            prediction = await uow.predictions.create(
                match_id=match_id,
                home_win_probability=result.home_win_probability,
                draw_probability=result.draw_probability,
                away_win_probability=result.away_win_probability,
                predicted_home_score=result.predicted_home_score,
                predicted_away_score=result.predicted_away_score,
                reasoning=(result.reasoning or "")[:MAX_REASONING_LENGTH] or None,
                model_version=result.model_version[:50],
                confidence=result.confidence,
                context_embedding=result.embedding,
            )
            await uow.commit()

        get_workflow_metrics().record_prediction_generated(result.model_version, result.confidence)
        logger.info(f"Saved prediction {prediction.id} (confidence={result.confidence:.2f})")
        return prediction_to_dto(prediction, home_name, away_name)

    @staticmethod
    async def get_predictions_for_match(match_id: uuid.UUID) -> list[PredictionDTO]:
        """Stored predictions for a match, newest first."""
        async with get_uow() as uow:
            predictions = await uow.predictions.get_for_match(match_id)
        return [
            prediction_to_dto(
                p,
                p.match.home_team.name if p.match and p.match.home_team else "Unknown",
                p.match.away_team.name if p.match and p.match.away_team else "Unknown",
            )
            for p in predictions
        ]

    @staticmethod
    async def build_match_context(match_id: uuid.UUID) -> str | None:
        """One-line description of a match for agent prompts, or None if unknown."""
        async with get_uow() as uow:
            match = await uow.matches.get_with_teams(match_id)
        if match is None:
            return None
        return MATCH_CONTEXT_TEMPLATE.format(
            home_team=match.home_team.name if match.home_team else "Unknown",
            away_team=match.away_team.name if match.away_team else "Unknown",
            match_date=f"{match.match_date:%Y-%m-%d}",
        )

    @staticmethod
    async def query_agent(
        query: str,
        match_id: uuid.UUID | None = None,
        agent: OllamaPredictionAgent | None = None,
    ) -> AgentQueryResult:
        """Free-form question to the prediction agent, grounded in a match if given."""
        agent = agent or get_prediction_agent()
        context = await PredictionService.build_match_context(match_id) if match_id else None
        return await agent.query(query, context)
