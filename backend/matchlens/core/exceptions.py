"""Custom exceptions for the application."""

from typing import Any


class MatchLensError(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(MatchLensError):
    """Requested entity does not exist."""

    pass


class DataSourceError(MatchLensError):
    """Error fetching data from external source."""

    pass


class FootballDataAPIError(DataSourceError):
    """Error from football-data.org API."""

    pass


class RateLimitError(DataSourceError):
    """Rate limit exceeded."""

    pass


class LLMError(MatchLensError):
    """Error from the Ollama API."""

    pass


class EmbeddingError(MatchLensError):
    """Embedding generation failed."""

    pass


class CacheError(MatchLensError):
    """Error with cache operations."""

    pass


class DatabaseError(MatchLensError):
    """Database operation error."""

    pass


class ValidationError(MatchLensError):
    """Data validation error."""

    pass


class WorkflowError(MatchLensError):
    """Error in workflow orchestration."""

    pass


class SagaTransitionError(WorkflowError):
    """Event cannot be applied to the saga in its current state."""

    pass
