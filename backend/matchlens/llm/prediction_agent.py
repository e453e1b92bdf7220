"""Match prediction agent backed by Ollama.

The model is asked for a JSON object with outcome probabilities, an optional
scoreline, reasoning and a confidence. Replies are parsed leniently: the
first ``{`` to the last ``}`` is decoded; anything unparseable becomes a
neutral low-confidence prediction. Agent failures never propagate.
"""

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from matchlens.llm.client import OllamaClient, get_llm_client
from matchlens.llm.prompts import (
    SYSTEM_FOOTBALL_ANALYST,
    SYSTEM_MATCH_PREDICTOR,
    get_prediction_prompt,
    get_query_prompt,
)
from matchlens.vector.embeddings import EmbeddingService, get_embedding_service
from matchlens.workflows.metrics import WorkflowMetrics, get_workflow_metrics

logger = logging.getLogger(__name__)

UNPARSEABLE_REASONING = "Unable to parse prediction response"
AGENT_ERROR_REASONING = "Prediction unavailable - agent error"
QUERY_FALLBACK_RESPONSE = "Sorry, I couldn't process your query at this time."


class PredictionPayload(BaseModel):
    """JSON object the model is instructed to return."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    home_win_probability: float = Field(0.0, alias="homeWinProbability")
    draw_probability: float = Field(0.0, alias="drawProbability")
    away_win_probability: float = Field(0.0, alias="awayWinProbability")
    predicted_home_score: int | None = Field(None, alias="predictedHomeScore")
    predicted_away_score: int | None = Field(None, alias="predictedAwayScore")
    reasoning: str | None = None
    confidence: float = 0.0


DEFAULT_PAYLOAD = PredictionPayload(
    home_win_probability=0.33,
    draw_probability=0.34,
    away_win_probability=0.33,
    reasoning=UNPARSEABLE_REASONING,
    confidence=0.1,
)


@dataclass
class AgentPredictionResult:
    home_win_probability: float
    draw_probability: float
    away_win_probability: float
    predicted_home_score: int | None
    predicted_away_score: int | None
    reasoning: str | None
    confidence: float
    model_version: str
    embedding: list[float] | None = None


@dataclass
class AgentQueryResult:
    response: str
    model_version: str
    confidence: float | None = None


def parse_prediction_response(response: str) -> PredictionPayload:
    """Extract the prediction JSON from a model reply.

    Falls back to DEFAULT_PAYLOAD when no object is found or it does not
    decode into the expected fields.
    """
    start = response.find("{")
    end = response.rfind("}")
    if start < 0 or end <= start:
        return DEFAULT_PAYLOAD.model_copy()

    try:
        data = json.loads(response[start : end + 1])
        return PredictionPayload.model_validate(data)
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.debug(f"[PredictionAgent] Could not parse model reply: {e}")
        return DEFAULT_PAYLOAD.model_copy()


class OllamaPredictionAgent:
    """Generates match predictions and answers free-form questions."""

    agent_type = "prediction"

    def __init__(
        self,
        client: OllamaClient | None = None,
        embeddings: EmbeddingService | None = None,
        metrics: WorkflowMetrics | None = None,
    ):
        self.client = client or get_llm_client()
        self.embeddings = embeddings or get_embedding_service()
        self.metrics = metrics or get_workflow_metrics()

    @property
    def model_version(self) -> str:
        return self.client.model

    async def generate_prediction(
        self,
        home_team: str,
        away_team: str,
        match_date: datetime,
        additional_context: str | None = None,
    ) -> AgentPredictionResult:
        logger.info(f"[PredictionAgent] Invoking {self.model_version} for {home_team} vs {away_team}")
        prompt = get_prediction_prompt(
            home_team, away_team, f"{match_date:%Y-%m-%d}", additional_context
        )
        start = time.perf_counter()

        try:
            reply = await self.client.complete(prompt, system_prompt=SYSTEM_MATCH_PREDICTOR)
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.metrics.record_agent_invocation(self.agent_type, self.model_version, elapsed_ms)
            logger.info(f"[PredictionAgent] Response received in {elapsed_ms:.0f}ms")

            payload = parse_prediction_response(reply)
            context_text = f"{home_team} vs {away_team} {match_date:%Y-%m-%d} {additional_context or ''}"
            embedding = await self.embeddings.generate_embedding(context_text)
        except Exception as e:
            logger.error(f"[PredictionAgent] Agent error: {e}", exc_info=True)
            self.metrics.record_agent_error(self.agent_type, type(e).__name__)
            return AgentPredictionResult(
                home_win_probability=0.33,
                draw_probability=0.34,
                away_win_probability=0.33,
                predicted_home_score=None,
                predicted_away_score=None,
                reasoning=AGENT_ERROR_REASONING,
                confidence=0.1,
                model_version=self.model_version,
                embedding=None,
            )

        return AgentPredictionResult(
            home_win_probability=payload.home_win_probability,
            draw_probability=payload.draw_probability,
            away_win_probability=payload.away_win_probability,
            predicted_home_score=payload.predicted_home_score,
            predicted_away_score=payload.predicted_away_score,
            reasoning=payload.reasoning,
            confidence=payload.confidence,
            model_version=self.model_version,
            embedding=embedding,
        )

    async def query(self, query: str, context: str | None = None) -> AgentQueryResult:
        """Answer a question, optionally grounded in a match context."""
        start = time.perf_counter()
        try:
            reply = await self.client.complete(
                get_query_prompt(query, context), system_prompt=SYSTEM_FOOTBALL_ANALYST
            )
        except Exception as e:
            logger.error(f"[PredictionAgent] Query failed: {e}", exc_info=True)
            self.metrics.record_agent_error(self.agent_type, type(e).__name__)
            return AgentQueryResult(QUERY_FALLBACK_RESPONSE, self.model_version)

        self.metrics.record_agent_invocation(
            self.agent_type, self.model_version, (time.perf_counter() - start) * 1000
        )
        return AgentQueryResult(reply, self.model_version)


_agent: OllamaPredictionAgent | None = None


def get_prediction_agent() -> OllamaPredictionAgent:
    global _agent
    if _agent is None:
        _agent = OllamaPredictionAgent()
    return _agent
