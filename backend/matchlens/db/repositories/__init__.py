"""Repository layer for database operations.

Repositories wrap one table each; the Unit of Work groups them around a
single session and transaction.

Usage:
    from matchlens.db.repositories import get_uow

    async with get_uow() as uow:
        competition = await uow.competitions.get_by_code("PL")
        seasons = await uow.seasons.get_for_competition(competition.id)
        await uow.commit()
"""

from matchlens.db.repositories.base import BaseRepository
from matchlens.db.repositories.competition_repository import (
    CompetitionRepository,
    SeasonRepository,
)
from matchlens.db.repositories.match_repository import MatchEventRepository, MatchRepository
from matchlens.db.repositories.prediction_repository import PredictionRepository
from matchlens.db.repositories.team_repository import PlayerRepository, TeamRepository
from matchlens.db.repositories.unit_of_work import UnitOfWork, get_uow

__all__ = [
    # Base
    "BaseRepository",
    # Repositories
    "CompetitionRepository",
    "MatchEventRepository",
    "MatchRepository",
    "PlayerRepository",
    "PredictionRepository",
    "SeasonRepository",
    "TeamRepository",
    # Unit of Work
    "UnitOfWork",
    "get_uow",
]
