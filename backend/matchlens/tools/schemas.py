"""Result models returned by the agent tools and the tool endpoints."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel


class CompetitionHistoryEntry(BaseModel):
    season_external_id: int
    start_date: date
    end_date: date
    winner_name: str | None = None
    winner_external_id: int | None = None
    current_matchday: int | None = None


class CompetitionHistoryResult(BaseModel):
    competition_code: str
    competition_name: str
    area_name: str | None = None
    type: str | None = None
    seasons: list[CompetitionHistoryEntry] = []


class SimilarTeamResult(BaseModel):
    team_id: uuid.UUID
    name: str
    country: str | None = None
    venue: str | None = None
    club_colors: str | None = None
    founded: int | None = None
    similarity: float


class SeasonStatisticsResult(BaseModel):
    season_external_id: int
    competition_name: str
    start_date: date
    end_date: date
    current_matchday: int | None = None
    winner_name: str | None = None
    total_matchdays: int
    days_remaining: int
    is_completed: bool


class CompetitionSearchResult(BaseModel):
    competition_id: uuid.UUID
    name: str
    code: str
    type: str | None = None
    area_name: str | None = None
    similarity: float


class TeamInfo(BaseModel):
    id: uuid.UUID
    name: str
    country: str | None = None
    league: str | None = None


class MatchInfo(BaseModel):
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


class SimilarMatchInfo(BaseModel):
    match_id: uuid.UUID
    home_team_id: uuid.UUID
    home_team_name: str
    away_team_id: uuid.UUID
    away_team_name: str
    match_date: datetime
    home_score: int | None = None
    away_score: int | None = None
    home_win_probability: float
    draw_probability: float
    away_win_probability: float
    similarity: float


class SavePredictionResult(BaseModel):
    success: bool
    prediction_id: uuid.UUID | None = None
    error_message: str | None = None
