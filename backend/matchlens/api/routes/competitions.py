"""Competition and season endpoints, including football-data.org sync."""

import logging
import uuid

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse

from matchlens.api.schemas import ErrorResponse, SyncAcceptedResponse
from matchlens.core.rate_limit import RATE_LIMITS, limiter
from matchlens.db.services.dtos import CompetitionDTO, CompetitionSyncResult, StoredSeasonDTO
from matchlens.db.services.ingestion_service import CompetitionIngestionService, get_ingestion_service
from matchlens.messaging.bus import get_message_bus
from matchlens.messaging.contracts import CompetitionSyncRequested

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/competitions/sync/{code}",
    response_model=CompetitionSyncResult,
    responses={400: {"model": CompetitionSyncResult}},
)
@limiter.limit(RATE_LIMITS["sync"])
async def sync_competition(request: Request, code: str) -> CompetitionSyncResult | JSONResponse:
    """Synchronize a competition now. A failed sync returns 400 with the result."""
    result = await get_ingestion_service().sync_competition(code)
    if not result.success:
        return JSONResponse(status_code=400, content=result.model_dump(mode="json"))
    return result


@router.post(
    "/competitions/sync/{code}/async",
    response_model=SyncAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
@limiter.limit(RATE_LIMITS["sync"])
async def sync_competition_async(request: Request, code: str) -> SyncAcceptedResponse:
    """Queue a competition sync on the message bus."""
    correlation_id = uuid.uuid4()
    await get_message_bus().publish(
        CompetitionSyncRequested(competition_code=code.upper(), correlation_id=correlation_id)
    )
    logger.info(f"Queued sync for {code.upper()} (correlation_id={correlation_id})")
    return SyncAcceptedResponse(competition_code=code.upper(), correlation_id=correlation_id)


@router.get(
    "/competitions/{code}",
    response_model=CompetitionDTO,
    responses={404: {"model": ErrorResponse}},
)
async def get_competition(code: str) -> CompetitionDTO:
    competition = await CompetitionIngestionService.get_competition(code)
    if competition is None:
        raise HTTPException(status_code=404, detail=f"Competition {code.upper()} not found")
    return competition


@router.get("/competitions/{code}/seasons", response_model=list[StoredSeasonDTO])
async def list_competition_seasons(code: str) -> list[StoredSeasonDTO]:
    """Seasons of a competition, most recent first."""
    return await CompetitionIngestionService.get_seasons_for_competition(code)


@router.get(
    "/seasons/{external_id}",
    response_model=StoredSeasonDTO,
    responses={404: {"model": ErrorResponse}},
)
async def get_season(external_id: int) -> StoredSeasonDTO:
    season = await CompetitionIngestionService.get_season(external_id)
    if season is None:
        raise HTTPException(status_code=404, detail=f"Season {external_id} not found")
    return season
