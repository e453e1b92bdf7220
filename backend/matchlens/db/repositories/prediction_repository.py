"""Prediction repository with domain-specific operations."""

import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from matchlens.db.models import Match, MatchPrediction
from matchlens.db.repositories.base import BaseRepository


class PredictionRepository(BaseRepository[MatchPrediction]):
    """Repository for MatchPrediction operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(MatchPrediction, session)

    async def get_for_match(self, match_id: uuid.UUID) -> Sequence[MatchPrediction]:
        """Predictions for a match, newest first, with teams loaded."""
        stmt = (
            select(MatchPrediction)
            .options(
                joinedload(MatchPrediction.match).joinedload(Match.home_team),
                joinedload(MatchPrediction.match).joinedload(Match.away_team),
            )
            .where(MatchPrediction.match_id == match_id)
            .order_by(MatchPrediction.predicted_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def nearest_by_context(
        self, embedding: list[float], *, limit: int = 10
    ) -> list[tuple[MatchPrediction, float]]:
        """Predictions whose context embedding is closest to ``embedding``."""
        distance = MatchPrediction.context_embedding.cosine_distance(embedding).label("distance")
        stmt = (
            select(MatchPrediction, distance)
            .options(
                joinedload(MatchPrediction.match).joinedload(Match.home_team),
                joinedload(MatchPrediction.match).joinedload(Match.away_team),
            )
            .where(MatchPrediction.context_embedding.is_not(None))
            .order_by(distance)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(prediction, float(dist)) for prediction, dist in result.unique().all()]
