"""Data transfer objects returned by the service layer."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class TeamDTO(BaseModel):
    id: uuid.UUID
    name: str
    country: str | None = None
    league: str | None = None


class PlayerDTO(BaseModel):
    id: uuid.UUID
    name: str
    position: str | None = None
    jersey_number: int | None = None
    team_id: uuid.UUID | None = None
    team_name: str | None = None


class MatchDTO(BaseModel):
    id: uuid.UUID
    home_team_id: uuid.UUID
    home_team_name: str
    away_team_id: uuid.UUID
    away_team_name: str
    match_date: datetime
    stadium: str | None = None
    home_score: int | None = None
    away_score: int | None = None
    status: str


class MatchEventDTO(BaseModel):
    id: uuid.UUID
    match_id: uuid.UUID
    event_type: str
    minute: int
    player_name: str | None = None
    description: str | None = None


class CompetitionDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    external_id: int
    name: str
    code: str
    type: str | None = None
    emblem: str | None = None
    area_name: str | None = None
    area_code: str | None = None
    area_flag: str | None = None
    synced_at: datetime | None = None


class StoredSeasonDTO(BaseModel):
    id: uuid.UUID
    external_id: int
    competition_id: uuid.UUID
    competition_name: str = "Unknown"
    start_date: date
    end_date: date
    current_matchday: int | None = None
    winner_external_id: int | None = None
    winner_name: str | None = None


class CompetitionSyncResult(BaseModel):
    success: bool
    message: str
    competition: CompetitionDTO | None = None
    seasons_processed: int = 0


class PredictionDTO(BaseModel):
    id: uuid.UUID
    match_id: uuid.UUID
    home_team_name: str
    away_team_name: str
    home_win_probability: float
    draw_probability: float
    away_win_probability: float
    predicted_home_score: int | None = None
    predicted_away_score: int | None = None
    reasoning: str | None = None
    confidence: float
    model_version: str | None = None
    predicted_at: datetime
