"""Shared API schemas."""

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response for OpenAPI documentation."""

    detail: str

    model_config = {"json_schema_extra": {"examples": [{"detail": "Not found"}]}}


# ============== FOOTBALL ==============
class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    country: str | None = Field(None, max_length=100)
    league: str | None = Field(None, max_length=200)


class PlayerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    position: str | None = Field(None, max_length=50)
    jersey_number: int | None = Field(None, ge=0, le=99)
    team_id: uuid.UUID | None = None
    date_of_birth: date | None = None


class MatchCreate(BaseModel):
    home_team_id: uuid.UUID
    away_team_id: uuid.UUID
    match_date: datetime
    stadium: str | None = Field(None, max_length=200)


# ============== PREDICTIONS ==============
class GeneratePredictionRequest(BaseModel):
    match_id: uuid.UUID
    additional_context: str | None = Field(None, max_length=2000)


class AgentQueryRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)
    match_id: uuid.UUID | None = None


class AgentQueryResponse(BaseModel):
    response: str
    model_version: str
    confidence: float | None = None


class WorkflowTriggerRequest(BaseModel):
    additional_context: str | None = Field(None, max_length=2000)


class BatchWorkflowRequest(BaseModel):
    match_ids: list[uuid.UUID]
    additional_context: str | None = Field(None, max_length=2000)


class WorkflowTriggeredResponse(BaseModel):
    correlation_id: uuid.UUID
    match_id: uuid.UUID
    message: str = "Match prediction workflow triggered"


class BatchWorkflowTriggeredResponse(BaseModel):
    batch_id: uuid.UUID
    correlation_ids: list[uuid.UUID]
    count: int
    message: str = "Batch prediction workflows triggered"


class SagaStatusResponse(BaseModel):
    correlation_id: uuid.UUID
    current_state: str
    match_id: uuid.UUID | None = None
    prediction_id: uuid.UUID | None = None
    confidence: float | None = None
    requested_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    retry_count: int = 0


class SyncAcceptedResponse(BaseModel):
    competition_code: str
    correlation_id: uuid.UUID
    message: str = "Competition sync requested"


# ============== WORKFLOWS ==============
class ActiveWorkflow(BaseModel):
    workflow_id: str
    workflow_type: str
    status: str
    started_at: datetime | None = None
    match_id: uuid.UUID | None = None


# ============== HEALTH ==============
HealthStatus = Literal["healthy", "degraded", "unhealthy"]


class ComponentHealth(BaseModel):
    status: HealthStatus
    description: str | None = None
    latency_ms: float | None = None
    data: dict[str, object] = {}


class ReadinessResponse(BaseModel):
    status: HealthStatus
    checks: dict[str, ComponentHealth]
