"""Match and match event repositories."""

import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from matchlens.db.models import Match, MatchEvent
from matchlens.db.repositories.base import BaseRepository


class MatchRepository(BaseRepository[Match]):
    """Repository for Match operations with domain-specific methods."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Match, session)

    async def get_with_teams(self, match_id: uuid.UUID) -> Match | None:
        """Get match with home and away teams loaded."""
        stmt = (
            select(Match)
            .options(joinedload(Match.home_team), joinedload(Match.away_team))
            .where(Match.id == match_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_date_range(
        self,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        *,
        status: str | None = None,
        limit: int | None = None,
    ) -> Sequence[Match]:
        """Get matches (teams loaded) ordered by kick-off, with optional filters."""
        conditions = []
        if date_from is not None:
            conditions.append(Match.match_date >= date_from)
        if date_to is not None:
            conditions.append(Match.match_date <= date_to)
        if status:
            conditions.append(Match.status == status)

        stmt = select(Match).options(joinedload(Match.home_team), joinedload(Match.away_team))
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(Match.match_date)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()


class MatchEventRepository(BaseRepository[MatchEvent]):
    """Repository for in-match events."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(MatchEvent, session)

    async def get_for_match(self, match_id: uuid.UUID) -> Sequence[MatchEvent]:
        """Events of a match ordered by minute, players loaded."""
        stmt = (
            select(MatchEvent)
            .options(joinedload(MatchEvent.player))
            .where(MatchEvent.match_id == match_id)
            .order_by(MatchEvent.minute)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
