"""Unit of Work pattern for transaction management.

Provides a single entry point for all repository operations with
automatic rollback on error.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession

from matchlens.db.repositories.competition_repository import (
    CompetitionRepository,
    SeasonRepository,
)
from matchlens.db.repositories.match_repository import MatchEventRepository, MatchRepository
from matchlens.db.repositories.prediction_repository import PredictionRepository
from matchlens.db.repositories.team_repository import PlayerRepository, TeamRepository


class UnitOfWork:
    """Unit of Work for managing database transactions.

    Usage:
        async with get_uow() as uow:
            team = await uow.teams.get_by_id(team_id)
            await uow.matches.create(home_team_id=team.id, ...)
            await uow.commit()
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._teams: TeamRepository | None = None
        self._players: PlayerRepository | None = None
        self._matches: MatchRepository | None = None
        self._match_events: MatchEventRepository | None = None
        self._predictions: PredictionRepository | None = None
        self._competitions: CompetitionRepository | None = None
        self._seasons: SeasonRepository | None = None

    @property
    def session(self) -> AsyncSession:
        """Direct access to the session for custom queries."""
        return self._session

    @property
    def teams(self) -> TeamRepository:
        if self._teams is None:
            self._teams = TeamRepository(self._session)
        return self._teams

    @property
    def players(self) -> PlayerRepository:
        if self._players is None:
            self._players = PlayerRepository(self._session)
        return self._players

    @property
    def matches(self) -> MatchRepository:
        if self._matches is None:
            self._matches = MatchRepository(self._session)
        return self._matches

    @property
    def match_events(self) -> MatchEventRepository:
        if self._match_events is None:
            self._match_events = MatchEventRepository(self._session)
        return self._match_events

    @property
    def predictions(self) -> PredictionRepository:
        if self._predictions is None:
            self._predictions = PredictionRepository(self._session)
        return self._predictions

    @property
    def competitions(self) -> CompetitionRepository:
        if self._competitions is None:
            self._competitions = CompetitionRepository(self._session)
        return self._competitions

    @property
    def seasons(self) -> SeasonRepository:
        if self._seasons is None:
            self._seasons = SeasonRepository(self._session)
        return self._seasons

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        await self._session.rollback()

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self._session.flush()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.rollback()
        await self._session.close()


@asynccontextmanager
async def get_uow() -> AsyncGenerator[UnitOfWork, None]:
    """Get a Unit of Work instance with a new session.

    Usage:
        async with get_uow() as uow:
            competition = await uow.competitions.get_by_code("PL")
            await uow.commit()
    """
    from matchlens.db.database import async_session_factory

    async with async_session_factory() as session:
        async with UnitOfWork(session) as uow:
            yield uow
