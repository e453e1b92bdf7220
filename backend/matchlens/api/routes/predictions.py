"""Prediction endpoints.

Predictions can be generated synchronously (``/generate``) or through the
prediction saga (``/workflow/...``), which answers 202 immediately and is
polled via ``/{correlation_id}/status``.
"""

import logging
import uuid

from fastapi import APIRouter, HTTPException, Request, Response, status

from matchlens.api.schemas import (
    AgentQueryRequest,
    AgentQueryResponse,
    BatchWorkflowRequest,
    BatchWorkflowTriggeredResponse,
    ErrorResponse,
    GeneratePredictionRequest,
    SagaStatusResponse,
    WorkflowTriggeredResponse,
    WorkflowTriggerRequest,
)
from matchlens.core.config import settings
from matchlens.core.exceptions import WorkflowError
from matchlens.core.rate_limit import RATE_LIMITS, limiter
from matchlens.db.services.dtos import PredictionDTO
from matchlens.db.services.prediction_service import PredictionService
from matchlens.llm.football_agent import get_football_agent
from matchlens.messaging.bus import get_message_bus
from matchlens.messaging.contracts import MatchPredictionRequested
from matchlens.workflows.events import get_workflow_event_store
from matchlens.workflows.saga import get_saga_repository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/generate",
    response_model=PredictionDTO,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMITS["predictions"])
async def generate_prediction(
    request: Request, response: Response, body: GeneratePredictionRequest
) -> PredictionDTO:
    """Run the prediction agent for a match and store the result."""
    prediction = await PredictionService.generate_prediction(body.match_id, body.additional_context)
    response.headers["Location"] = f"{settings.api_prefix}/predictions/match/{body.match_id}"
    return prediction


@router.get("/match/{match_id}", response_model=list[PredictionDTO])
async def get_predictions_for_match(match_id: uuid.UUID) -> list[PredictionDTO]:
    """Stored predictions for a match, newest first."""
    return await PredictionService.get_predictions_for_match(match_id)


@router.post("/query", response_model=AgentQueryResponse)
@limiter.limit(RATE_LIMITS["agent"])
async def query_agent(request: Request, body: AgentQueryRequest) -> AgentQueryResponse:
    """Ask the football data agent, grounded in a match when ``match_id`` is given."""
    context = None
    if body.match_id is not None:
        context = await PredictionService.build_match_context(body.match_id)
    answer = await get_football_agent().query(body.query, context)
    return AgentQueryResponse(
        response=answer.response,
        model_version=answer.model_version,
        confidence=answer.confidence,
    )


@router.post(
    "/workflow/match/{match_id}",
    response_model=WorkflowTriggeredResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
@limiter.limit(RATE_LIMITS["workflows"])
async def trigger_match_workflow(
    request: Request,
    response: Response,
    match_id: uuid.UUID,
    body: WorkflowTriggerRequest | None = None,
) -> WorkflowTriggeredResponse:
    """Start the prediction saga for one match."""
    correlation_id = uuid.uuid4()
    await get_message_bus().publish(
        MatchPredictionRequested(
            match_id=match_id,
            correlation_id=correlation_id,
            additional_context=body.additional_context if body else None,
        )
    )
    logger.info(f"Triggered prediction workflow {correlation_id} for match {match_id}")
    response.headers["Location"] = f"{settings.api_prefix}/predictions/{correlation_id}/status"
    return WorkflowTriggeredResponse(correlation_id=correlation_id, match_id=match_id)


@router.post(
    "/workflow/batch",
    response_model=BatchWorkflowTriggeredResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMITS["workflows"])
async def trigger_batch_workflow(
    request: Request, body: BatchWorkflowRequest
) -> BatchWorkflowTriggeredResponse:
    """Start one prediction saga per match, grouped under a batch id."""
    if not body.match_ids:
        raise HTTPException(status_code=400, detail="match_ids cannot be empty")

    batch_id = uuid.uuid4()
    messages = [
        MatchPredictionRequested(
            match_id=match_id,
            correlation_id=uuid.uuid4(),
            additional_context=body.additional_context,
        )
        for match_id in body.match_ids
    ]
    correlation_ids = [m.correlation_id for m in messages]

    bus = get_message_bus()
    if len(messages) > bus.free_capacity:
        raise WorkflowError(
            "Message bus cannot accept the whole batch",
            details={"batch_size": len(messages), "free_capacity": bus.free_capacity},
        )

    # Nothing awaits between the capacity check and the last publish.
    get_workflow_event_store().register_batch(batch_id, correlation_ids)
    for message in messages:
        await bus.publish(message)

    logger.info(f"Triggered batch {batch_id} with {len(messages)} prediction workflows")
    return BatchWorkflowTriggeredResponse(
        batch_id=batch_id, correlation_ids=correlation_ids, count=len(correlation_ids)
    )


@router.get(
    "/{correlation_id}/status",
    response_model=SagaStatusResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_workflow_status(correlation_id: uuid.UUID) -> SagaStatusResponse:
    """Current saga state for a prediction workflow."""
    state = await get_saga_repository().get(correlation_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Workflow {correlation_id} not found")
    return SagaStatusResponse(
        correlation_id=state.correlation_id,
        current_state=state.current_state,
        match_id=state.match_id,
        prediction_id=state.prediction_id,
        confidence=state.confidence,
        requested_at=state.requested_at,
        completed_at=state.completed_at,
        error_message=state.error_message,
        retry_count=state.retry_count,
    )
