"""Database module with SQLAlchemy 2.0 async ORM and pgvector columns.

This module provides:
- Models: teams, players, matches, match events, predictions, competitions, seasons
- Repositories: Repository pattern for data access
- Unit of Work: Transaction management pattern
- Database utilities: Session management and initialization

Usage:
    from matchlens.db import get_uow

    async with get_uow() as uow:
        teams = await uow.teams.search(country="England")
"""

from matchlens.db.database import async_session_factory, get_db, get_session, init_db
from matchlens.db.models import (
    EMBEDDING_DIMENSIONS,
    Base,
    Competition,
    Match,
    MatchEvent,
    MatchPrediction,
    MatchStatus,
    Player,
    Season,
    Team,
)
from matchlens.db.repositories import UnitOfWork, get_uow

__all__ = [
    # Database
    "async_session_factory",
    "get_db",
    "get_session",
    "init_db",
    # Models
    "EMBEDDING_DIMENSIONS",
    "Base",
    "Competition",
    "Match",
    "MatchEvent",
    "MatchPrediction",
    "MatchStatus",
    "Player",
    "Season",
    "Team",
    # Unit of Work
    "UnitOfWork",
    "get_uow",
]
