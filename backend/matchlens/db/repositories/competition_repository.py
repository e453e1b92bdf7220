"""Competition and season repositories."""

import uuid
from collections.abc import Sequence
from datetime import date

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from matchlens.db.models import Competition, Season
from matchlens.db.repositories.base import BaseRepository


class CompetitionRepository(BaseRepository[Competition]):
    """Repository for Competition operations with domain-specific methods."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Competition, session)

    async def get_by_code(self, code: str) -> Competition | None:
        """Get competition by its football-data code (PL, CL, ...)."""
        return await self.get_by_field("code", code.upper())

    async def nearest(
        self, embedding: list[float], *, limit: int = 5
    ) -> list[tuple[Competition, float]]:
        """Competitions closest to ``embedding`` by cosine distance."""
        distance = Competition.embedding.cosine_distance(embedding).label("distance")
        stmt = (
            select(Competition, distance)
            .where(Competition.embedding.is_not(None))
            .order_by(distance)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(competition, float(dist)) for competition, dist in result.all()]

    async def text_search(self, term: str, *, limit: int = 5) -> Sequence[Competition]:
        """Case-insensitive substring match on name, code, area or type."""
        pattern = f"%{term.lower()}%"
        stmt = (
            select(Competition)
            .where(
                or_(
                    func.lower(Competition.name).like(pattern),
                    func.lower(Competition.code).like(pattern),
                    func.lower(func.coalesce(Competition.area_name, "")).like(pattern),
                    func.lower(func.coalesce(Competition.type, "")).like(pattern),
                )
            )
            .order_by(Competition.name)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


class SeasonRepository(BaseRepository[Season]):
    """Repository for Season operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Season, session)

    async def get_by_external_id(self, external_id: int) -> Season | None:
        """Get season (competition loaded) by football-data.org ID."""
        stmt = (
            select(Season)
            .options(joinedload(Season.competition))
            .where(Season.external_id == external_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_competition(self, competition_id: uuid.UUID) -> Sequence[Season]:
        """Seasons of a competition, most recent first."""
        stmt = (
            select(Season)
            .options(joinedload(Season.competition))
            .where(Season.competition_id == competition_id)
            .order_by(Season.start_date.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_overlapping(self, start: date, end: date) -> Sequence[Season]:
        """Seasons intersecting [start, end], most recent first."""
        stmt = (
            select(Season)
            .options(joinedload(Season.competition))
            .where(and_(Season.start_date <= end, Season.end_date >= start))
            .order_by(Season.start_date.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
