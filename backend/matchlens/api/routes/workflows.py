"""Workflow visualization endpoints: graphs, recorded events and live SSE streams."""

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from matchlens.api.schemas import ActiveWorkflow, ErrorResponse
from matchlens.core.config import settings
from matchlens.workflows.events import (
    MATCH_PREDICTION,
    WorkflowEvent,
    WorkflowEventStore,
    get_workflow_event_store,
)
from matchlens.workflows.graph import WorkflowGraph, WorkflowGraphBuilder
from matchlens.workflows.saga import (
    InMemorySagaRepository,
    PredictionSagaState,
    SagaState,
    get_saga_repository,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_SAGA_STATUS = {
    SagaState.INITIAL: "pending",
    SagaState.REQUESTED: "running",
    SagaState.COMPLETED: "completed",
    SagaState.FAILED: "failed",
}


def saga_status(state: PredictionSagaState) -> str:
    return _SAGA_STATUS[state.current_state]


async def build_graph(
    workflow_id: uuid.UUID,
    sagas: InMemorySagaRepository,
    store: WorkflowEventStore,
) -> WorkflowGraph | None:
    """Match graph for a saga, batch graph for a registered batch, else None."""
    state = await sagas.get(workflow_id)
    if state is not None:
        events = store.get_events(workflow_id)
        return WorkflowGraphBuilder.build_match_prediction_graph(
            workflow_id=str(workflow_id),
            match_id=state.match_id or uuid.UUID(int=0),
            status=saga_status(state),
            started_at=state.requested_at or datetime.now(UTC),
            completed_at=state.completed_at,
            events=events,
        )

    batch = store.get_batch(workflow_id)
    if batch is None:
        return None

    finished = []
    for correlation_id in batch.correlation_ids:
        member = await sagas.get(correlation_id)
        if member is not None and member.is_final:
            finished.append(member)
    done = len(finished) == len(batch.correlation_ids)
    completed_at = None
    if done and finished:
        completed_at = max((s.completed_at for s in finished if s.completed_at), default=None)

    return WorkflowGraphBuilder.build_batch_prediction_graph(
        workflow_id=batch.batch_id,
        batch_size=len(batch.correlation_ids),
        status="completed" if done else "running",
        started_at=batch.started_at,
        completed_at=completed_at,
        completed_count=len(finished),
    )


@router.get(
    "/graph/{workflow_id}",
    response_model=WorkflowGraph,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_workflow_graph(workflow_id: uuid.UUID) -> WorkflowGraph:
    """Execution graph of a prediction workflow or batch."""
    if not settings.workflow_enable_visualization:
        raise HTTPException(status_code=403, detail="Workflow visualization is disabled")

    graph = await build_graph(workflow_id, get_saga_repository(), get_workflow_event_store())
    if graph is None:
        raise HTTPException(status_code=404, detail=f"Workflow {workflow_id} not found")
    return graph


@router.get("/events/{workflow_id}", response_model=list[WorkflowEvent])
async def get_workflow_events(workflow_id: uuid.UUID) -> list[WorkflowEvent]:
    """Recorded events of a workflow, oldest first."""
    return get_workflow_event_store().get_events(workflow_id)


def format_sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


async def workflow_event_stream(
    request: Request,
    workflow_id: uuid.UUID,
    store: WorkflowEventStore,
    heartbeat_seconds: float,
) -> AsyncIterator[str]:
    """``connected``, then recorded and live ``workflow_event``s, with ``heartbeat``s while idle."""
    # Events recorded after this point arrive on the queue only.
    queue = store.subscribe(workflow_id)
    recorded = store.get_events(workflow_id)
    try:
        yield format_sse(
            "connected",
            {"workflow_id": str(workflow_id), "timestamp": datetime.now(UTC).isoformat()},
        )
        for event in recorded:
            yield format_sse("workflow_event", event.model_dump(mode="json"))

        while not await request.is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
            except TimeoutError:
                yield format_sse("heartbeat", {"timestamp": datetime.now(UTC).isoformat()})
                continue
            yield format_sse("workflow_event", event.model_dump(mode="json"))
    finally:
        store.unsubscribe(workflow_id, queue)
        logger.debug(f"[Workflow] SSE stream closed for {workflow_id}")


@router.get(
    "/events/{workflow_id}/stream",
    responses={403: {"model": ErrorResponse}},
)
async def stream_workflow_events(request: Request, workflow_id: uuid.UUID) -> StreamingResponse:
    """Server-Sent Events for one workflow."""
    if not settings.workflow_enable_sse_events:
        raise HTTPException(status_code=403, detail="Server-Sent Events are disabled")

    return StreamingResponse(
        workflow_event_stream(
            request,
            workflow_id,
            get_workflow_event_store(),
            settings.workflow_sse_heartbeat_seconds,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/active", response_model=list[ActiveWorkflow])
async def get_active_workflows() -> list[ActiveWorkflow]:
    """Prediction sagas still waiting for a result."""
    active = await get_saga_repository().list_active()
    return [
        ActiveWorkflow(
            workflow_id=str(state.correlation_id),
            workflow_type=MATCH_PREDICTION,
            status=saga_status(state),
            started_at=state.requested_at,
            match_id=state.match_id,
        )
        for state in sorted(active, key=lambda s: s.requested_at or datetime.min.replace(tzinfo=UTC))
    ]
