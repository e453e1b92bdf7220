"""Team and player repositories."""

import uuid
from collections.abc import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from matchlens.db.models import Player, Team
from matchlens.db.repositories.base import BaseRepository


class TeamRepository(BaseRepository[Team]):
    """Repository for Team operations with domain-specific methods."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Team, session)

    async def get_by_external_id(self, external_id: int) -> Team | None:
        """Get team by football-data.org ID."""
        return await self.get_by_field("external_id", external_id)

    async def get_by_name(self, name: str) -> Team | None:
        """Get team by name (case-insensitive)."""
        stmt = select(Team).where(func.lower(Team.name) == func.lower(name))
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def search(self, *, name: str | None = None, country: str | None = None) -> Sequence[Team]:
        """Filter by name substring and exact country, ordered by name."""
        stmt = select(Team)
        if name:
            stmt = stmt.where(Team.name.contains(name))
        if country:
            stmt = stmt.where(Team.country == country)
        result = await self.session.execute(stmt.order_by(Team.name))
        return result.scalars().all()

    async def nearest(self, embedding: list[float], *, limit: int = 5) -> list[tuple[Team, float]]:
        """Teams closest to ``embedding`` by cosine distance."""
        distance = Team.embedding.cosine_distance(embedding).label("distance")
        stmt = (
            select(Team, distance)
            .where(Team.embedding.is_not(None))
            .order_by(distance)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(team, float(dist)) for team, dist in result.all()]

    async def text_search(self, term: str, *, limit: int = 5) -> Sequence[Team]:
        """Case-insensitive substring match on name, country or venue."""
        pattern = f"%{term.lower()}%"
        stmt = (
            select(Team)
            .where(
                or_(
                    func.lower(Team.name).like(pattern),
                    func.lower(func.coalesce(Team.country, "")).like(pattern),
                    func.lower(func.coalesce(Team.venue, "")).like(pattern),
                )
            )
            .order_by(Team.name)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


class PlayerRepository(BaseRepository[Player]):
    """Repository for squad members."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Player, session)

    async def get_with_team(self, player_id: uuid.UUID) -> Player | None:
        stmt = select(Player).options(selectinload(Player.team)).where(Player.id == player_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_with_team(self, team_id: uuid.UUID | None = None) -> Sequence[Player]:
        """Players ordered by name, optionally restricted to one team."""
        stmt = select(Player).options(selectinload(Player.team))
        if team_id is not None:
            stmt = stmt.where(Player.team_id == team_id)
        result = await self.session.execute(stmt.order_by(Player.name))
        return result.scalars().all()
