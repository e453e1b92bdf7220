"""Database services layer.

Provides high-level service functions that use the repository pattern
internally and return DTOs to the API layer.
"""

from matchlens.db.services.football_service import FootballService
from matchlens.db.services.ingestion_service import (
    CompetitionIngestionService,
    get_ingestion_service,
)
from matchlens.db.services.prediction_service import PredictionService

__all__ = [
    # Football CRUD
    "FootballService",
    # Ingestion
    "CompetitionIngestionService",
    "get_ingestion_service",
    # Predictions
    "PredictionService",
]
