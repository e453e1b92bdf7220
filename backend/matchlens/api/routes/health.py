"""Health check endpoints."""

import logging
import time

import httpx
from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from matchlens.api.schemas import ComponentHealth, HealthStatus, ReadinessResponse
from matchlens.core.cache import health_check as redis_health_check
from matchlens.core.config import settings
from matchlens.core.rate_limit import STORAGE_URI
from matchlens.data.sources.cached_football_data import get_cached_football_data_client
from matchlens.db.database import check_db_connection
from matchlens.llm.client import get_llm_client
from matchlens.messaging.bus import get_message_bus
from matchlens.workflows.saga import get_saga_repository

logger = logging.getLogger(__name__)

router = APIRouter()

_SEVERITY: dict[str, int] = {"healthy": 0, "degraded": 1, "unhealthy": 2}


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 1)


def overall_status(checks: dict[str, ComponentHealth]) -> HealthStatus:
    """Worst status across all checks."""
    worst: HealthStatus = "healthy"
    for check in checks.values():
        if _SEVERITY[check.status] > _SEVERITY[worst]:
            worst = check.status
    return worst


async def check_database() -> ComponentHealth:
    start = time.monotonic()
    try:
        await check_db_connection()
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"[Health] Database check failed: {e}")
        return ComponentHealth(status="unhealthy", description=f"Database unavailable: {e}")
    return ComponentHealth(
        status="healthy", description="Database is reachable", latency_ms=_elapsed_ms(start)
    )


async def check_redis() -> ComponentHealth:
    start = time.monotonic()
    ok = await redis_health_check()
    backend = "redis" if STORAGE_URI != "memory://" else "memory"
    if not ok:
        return ComponentHealth(
            status="degraded",
            description="Redis unavailable, caching disabled",
            data={"rate_limit_backend": backend},
        )
    return ComponentHealth(
        status="healthy",
        description="Redis is reachable",
        latency_ms=_elapsed_ms(start),
        data={"rate_limit_backend": backend},
    )


async def check_football_data() -> ComponentHealth:
    start = time.monotonic()
    try:
        competition = await get_cached_football_data_client().get_competition("PL")
    except Exception as e:
        logger.error(f"[Health] football-data.org check failed: {e}")
        return ComponentHealth(status="unhealthy", description=f"football-data.org check failed: {e}")
    if competition is None:
        return ComponentHealth(
            status="degraded",
            description="football-data.org returned no data",
            latency_ms=_elapsed_ms(start),
        )
    return ComponentHealth(
        status="healthy",
        description="football-data.org is reachable",
        latency_ms=_elapsed_ms(start),
    )


async def check_ollama() -> ComponentHealth:
    start = time.monotonic()
    client = get_llm_client()
    try:
        response = await client.list_models(timeout=settings.workflow_ollama_health_check_timeout_seconds)
    except httpx.TimeoutException:
        return ComponentHealth(
            status="unhealthy",
            description=f"Ollama did not answer within {settings.workflow_ollama_health_check_timeout_seconds}s",
        )
    except httpx.HTTPError as e:
        return ComponentHealth(status="unhealthy", description=f"Cannot connect to Ollama: {e}")

    if response.status_code != 200:
        return ComponentHealth(
            status="degraded",
            description=f"Ollama returned status {response.status_code}",
            latency_ms=_elapsed_ms(start),
        )
    return ComponentHealth(
        status="healthy",
        description="Ollama is reachable",
        latency_ms=_elapsed_ms(start),
        data={"endpoint": client.endpoint, "model": client.model},
    )


async def check_workflow() -> ComponentHealth:
    bus = get_message_bus()
    active = await get_saga_repository().count_active()
    data: dict[str, object] = {
        "bus_running": bus.is_running,
        "pending_messages": bus.pending_count,
        "active_sagas": active,
    }
    if not bus.is_running:
        return ComponentHealth(status="degraded", description="Message bus is not running", data=data)
    return ComponentHealth(status="healthy", description="Workflow system is operational", data=data)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Basic health check."""
    return {"status": "healthy", "version": settings.app_version}


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Readiness check including dependencies.

    Each dependency reports healthy, degraded or unhealthy; the overall
    status is the worst of them.
    """
    checks = {
        "database": await check_database(),
        "redis": await check_redis(),
        "football_data": await check_football_data(),
        "ollama": await check_ollama(),
        "workflow": await check_workflow(),
    }
    return ReadinessResponse(status=overall_status(checks), checks=checks)
