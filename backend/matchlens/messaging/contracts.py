"""Message contracts exchanged over the in-process message bus.

Every workflow message carries a ``correlation_id`` that ties it to one
logical request. Requests and completions are paired:
MatchPredictionRequested -> MatchPredictionCompleted,
CompetitionSyncRequested -> CompetitionSyncCompleted,
EmbeddingGenerationRequested -> EmbeddingGenerationCompleted.
"""

import uuid
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EMPTY_UUID = uuid.UUID(int=0)

EntityType = Literal["Team", "Competition", "Season"]


def utcnow() -> datetime:
    return datetime.now(UTC)


class Message(BaseModel):
    """Base class for bus messages. Messages are immutable."""

    model_config = ConfigDict(frozen=True)

    @property
    def message_type(self) -> str:
        return type(self).__name__


class MatchPredictionRequested(Message):
    match_id: uuid.UUID
    correlation_id: uuid.UUID
    additional_context: str | None = None
    requested_at: datetime = Field(default_factory=utcnow)


class MatchPredictionCompleted(Message):
    match_id: uuid.UUID
    prediction_id: uuid.UUID
    correlation_id: uuid.UUID
    success: bool
    error_message: str | None = None
    confidence: float | None = None
    completed_at: datetime = Field(default_factory=utcnow)


class CompetitionSyncRequested(Message):
    competition_code: str
    correlation_id: uuid.UUID
    requested_at: datetime = Field(default_factory=utcnow)


class CompetitionSyncCompleted(Message):
    competition_code: str
    correlation_id: uuid.UUID
    success: bool
    error_message: str | None = None
    seasons_processed: int = 0
    completed_at: datetime = Field(default_factory=utcnow)


class TeamDataIngested(Message):
    team_id: uuid.UUID
    team_name: str
    country: str | None = None
    ingested_at: datetime = Field(default_factory=utcnow)


class EmbeddingGenerationRequested(Message):
    entity_type: EntityType
    entity_id: uuid.UUID
    correlation_id: uuid.UUID
    text: str
    requested_at: datetime = Field(default_factory=utcnow)


class EmbeddingGenerationCompleted(Message):
    entity_type: EntityType
    entity_id: uuid.UUID
    correlation_id: uuid.UUID
    success: bool
    error_message: str | None = None
    dimensions: int | None = None
    completed_at: datetime = Field(default_factory=utcnow)
