"""Team, player, match and match event endpoints."""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, HTTPException, Query, status

from matchlens.api.schemas import ErrorResponse, MatchCreate, PlayerCreate, TeamCreate
from matchlens.db.services.dtos import MatchDTO, MatchEventDTO, PlayerDTO, TeamDTO
from matchlens.db.services.football_service import FootballService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/teams", response_model=list[TeamDTO])
async def list_teams(
    name: str | None = Query(None, description="Substring of the team name"),
    country: str | None = Query(None, description="Exact country"),
) -> list[TeamDTO]:
    """Teams ordered by name."""
    return await FootballService.get_teams(name=name, country=country)


@router.get(
    "/teams/{team_id}",
    response_model=TeamDTO,
    responses={404: {"model": ErrorResponse}},
)
async def get_team(team_id: uuid.UUID) -> TeamDTO:
    team = await FootballService.get_team(team_id)
    if team is None:
        raise HTTPException(status_code=404, detail=f"Team {team_id} not found")
    return team


@router.post("/teams", response_model=TeamDTO, status_code=status.HTTP_201_CREATED)
async def create_team(body: TeamCreate) -> TeamDTO:
    return await FootballService.create_team(body.name, body.country, body.league)


@router.get("/players", response_model=list[PlayerDTO])
async def list_players(team_id: uuid.UUID | None = Query(None)) -> list[PlayerDTO]:
    """Players ordered by name, optionally restricted to one team."""
    return await FootballService.get_players(team_id)


@router.post(
    "/players",
    response_model=PlayerDTO,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def create_player(body: PlayerCreate) -> PlayerDTO:
    return await FootballService.create_player(
        name=body.name,
        position=body.position,
        jersey_number=body.jersey_number,
        team_id=body.team_id,
        date_of_birth=body.date_of_birth,
    )


@router.get("/matches", response_model=list[MatchDTO])
async def list_matches(
    start_date: datetime | None = Query(None, description="Defaults to one month ago"),
    end_date: datetime | None = Query(None, description="Defaults to one month ahead"),
) -> list[MatchDTO]:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be before end_date")
    return await FootballService.get_matches(start_date, end_date)


@router.get(
    "/matches/{match_id}",
    response_model=MatchDTO,
    responses={404: {"model": ErrorResponse}},
)
async def get_match(match_id: uuid.UUID) -> MatchDTO:
    match = await FootballService.get_match(match_id)
    if match is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found")
    return match


@router.post(
    "/matches",
    response_model=MatchDTO,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def create_match(body: MatchCreate) -> MatchDTO:
    """Schedule a match. 404 when either team does not exist."""
    if body.home_team_id == body.away_team_id:
        raise HTTPException(status_code=400, detail="A team cannot play against itself")
    return await FootballService.create_match(
        body.home_team_id, body.away_team_id, body.match_date, body.stadium
    )


@router.get("/matches/{match_id}/events", response_model=list[MatchEventDTO])
async def list_match_events(match_id: uuid.UUID) -> list[MatchEventDTO]:
    """Events of a match ordered by minute."""
    return await FootballService.get_match_events(match_id)
