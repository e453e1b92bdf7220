"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from matchlens.api.routes import (
    competitions,
    football,
    health,
    metrics,
    predictions,
    tools,
    workflows,
)
from matchlens.core.cache import close_redis_pool
from matchlens.core.config import settings
from matchlens.core.exceptions import MatchLensError, NotFoundError
from matchlens.core.http_client import close_http_client
from matchlens.core.logging_config import generate_request_id, setup_logging
from matchlens.core.rate_limit import limiter
from matchlens.core.sentry import init_sentry
from matchlens.db.database import close_db, init_db
from matchlens.messaging.bus import get_message_bus
from matchlens.messaging.consumers import wire_message_bus
from matchlens.scheduler import create_scheduler

# Initialize Sentry for error monitoring
init_sentry()

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that binds a unique request_id to structlog context vars."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        structlog.contextvars.clear_contextvars()
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response: Response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"

        # HSTS - only in production
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    global scheduler

    # Configure structured logging BEFORE anything else
    setup_logging(
        json_output=settings.is_production,
        log_level=settings.log_level,
    )

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.app_env}")

    try:
        await init_db()
        logger.info("[Database] Tables initialized")
    except Exception as e:
        logger.error(f"[Database] Could not initialize tables: {e}")
        if settings.is_production:
            raise

    if settings.football_data_api_key:
        logger.info("FOOTBALL_DATA_API_KEY: configured")
    else:
        logger.warning("FOOTBALL_DATA_API_KEY: NOT set or empty")

    bus = wire_message_bus(get_message_bus())
    await bus.start()

    if settings.scheduler_enabled:
        scheduler = create_scheduler()
        scheduler.start()
        logger.info(
            f"[Scheduler] Started - competition sync every {settings.sync_interval_hours}h "
            f"for {', '.join(settings.competition_codes)}"
        )

    yield

    # Shutdown
    if scheduler:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("[Scheduler] Stopped")

    await bus.stop()
    await close_http_client()
    await close_redis_pool()
    await close_db()

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Football data, LLM agent and match prediction workflows",
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Request ID Middleware (binds request_id to structured logs)
app.add_middleware(RequestIdMiddleware)

# Security Headers Middleware
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
)


# Exception handlers
@app.exception_handler(MatchLensError)
async def matchlens_exception_handler(request: Request, exc: MatchLensError) -> JSONResponse:
    """Handle custom application exceptions."""
    return JSONResponse(
        status_code=404 if isinstance(exc, NotFoundError) else 400,
        content={
            "error": exc.__class__.__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(metrics.router, tags=["Metrics"])
app.include_router(
    football.router,
    prefix=f"{settings.api_prefix}/football",
    tags=["Football"],
)
app.include_router(
    competitions.router,
    prefix=f"{settings.api_prefix}/football",
    tags=["Competitions"],
)
app.include_router(
    tools.router,
    prefix=f"{settings.api_prefix}/predictions/tools",
    tags=["Agent Tools"],
)
app.include_router(
    predictions.router,
    prefix=f"{settings.api_prefix}/predictions",
    tags=["Predictions"],
)
app.include_router(
    workflows.router,
    prefix=f"{settings.api_prefix}/workflows",
    tags=["Workflows"],
)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
        "docs": "/docs",
    }
