"""Structured logging configuration using structlog.

Every module logs through ``logging.getLogger(__name__)``; structlog's
ProcessorFormatter renders those records as JSON in production and as
coloured console lines in development. Request and message context
(request id, correlation id) is carried in structlog contextvars.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "apscheduler", "sqlalchemy.engine")


def _shared_processors() -> list[structlog.types.Processor]:
    # filter_by_level needs a real structlog logger, which foreign_pre_chain
    # does not provide for stdlib records.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(json_output: bool = True, log_level: str = "INFO") -> None:
    """Configure structured logging for the entire application.

    Args:
        json_output: Render JSON lines (production) instead of console output.
        log_level: Root log level name.
    """
    shared = _shared_processors()
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for noisy_logger in NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def generate_request_id() -> str:
    """Generate a short unique request ID."""
    return uuid.uuid4().hex[:12]


@contextmanager
def bound_message_context(message_type: str, correlation_id: object | None) -> Iterator[None]:
    """Bind message metadata to every log line emitted while consuming a message."""
    tokens = structlog.contextvars.bind_contextvars(
        message_type=message_type,
        correlation_id=str(correlation_id) if correlation_id is not None else None,
    )
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
