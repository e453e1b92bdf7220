"""Sentry configuration for error monitoring."""

import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from matchlens.core.config import settings

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """Initialize Sentry SDK. Returns False when no DSN is configured."""
    if not settings.sentry_dsn:
        logger.warning("SENTRY_DSN not set, Sentry disabled")
        return False

    sample_rate = 0.1 if settings.is_production else 1.0
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        release=f"matchlens@{settings.app_version}",
        traces_sample_rate=sample_rate,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )

    logger.info("Sentry initialized for environment: %s", settings.app_env)
    return True
