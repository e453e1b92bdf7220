"""Competition ingestion from football-data.org.

Pulls a competition through the cache-first client and upserts the
competition, its seasons and each season winner's team, with embeddings
for semantic search.
"""

import json
import logging
from datetime import UTC, datetime

from matchlens.core.exceptions import WorkflowError
from matchlens.data.sources.cached_football_data import (
    CachedFootballDataClient,
    get_cached_football_data_client,
)
from matchlens.data.sources.football_data import CompetitionResponse, SeasonData, WinnerData
from matchlens.db.models import Competition, Season, Team
from matchlens.db.repositories import UnitOfWork, get_uow
from matchlens.db.services.dtos import CompetitionDTO, CompetitionSyncResult, StoredSeasonDTO
from matchlens.messaging.bus import get_message_bus
from matchlens.messaging.contracts import TeamDataIngested
from matchlens.vector.embeddings import (
    EmbeddingService,
    describe_competition,
    describe_season,
    describe_team,
    get_embedding_service,
)

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch competition data from API"
PARSE_FAILED_MESSAGE = "Failed to parse competition data"
SYNC_OK_MESSAGE = "Competition synchronized successfully"


def competition_to_dto(competition: Competition) -> CompetitionDTO:
    dto = CompetitionDTO.model_validate(competition)
    if dto.synced_at is None:
        dto.synced_at = competition.created_at
    return dto


def season_to_dto(season: Season, competition_name: str | None = None) -> StoredSeasonDTO:
    if competition_name is None and season.competition is not None:
        competition_name = season.competition.name
    return StoredSeasonDTO(
        id=season.id,
        external_id=season.external_id,
        competition_id=season.competition_id,
        competition_name=competition_name or "Unknown",
        start_date=season.start_date,
        end_date=season.end_date,
        current_matchday=season.current_matchday,
        winner_external_id=season.winner_external_id,
        winner_name=season.winner_name,
    )


class CompetitionIngestionService:
    """Synchronizes competitions and seasons into the database."""

    def __init__(
        self,
        client: CachedFootballDataClient | None = None,
        embeddings: EmbeddingService | None = None,
    ):
        self.client = client or get_cached_football_data_client()
        self.embeddings = embeddings or get_embedding_service()

    async def sync_competition(self, competition_code: str) -> CompetitionSyncResult:
        """Fetch one competition and upsert it with its seasons.

        Never raises: failures are reported in the result.
        """
        code = competition_code.upper()
        logger.info(f"[Ingestion] Starting sync for competition {code}")

        try:
            raw_json = await self.client.get_competition_raw(code)
            if raw_json is None:
                logger.warning(f"[Ingestion] No data returned for {code}")
                return CompetitionSyncResult(success=False, message=FETCH_FAILED_MESSAGE)

            data = await self.client.get_competition(code)
            if data is None:
                logger.warning(f"[Ingestion] Could not parse data for {code}")
                return CompetitionSyncResult(success=False, message=PARSE_FAILED_MESSAGE)

            ingested_teams: list[Team] = []
            async with get_uow() as uow:
                competition = await self._upsert_competition(uow, data, raw_json)
                for season_data in data.seasons:
                    team = await self._upsert_season(uow, competition, season_data)
                    if team is not None:
                        ingested_teams.append(team)
                await uow.commit()
                result_dto = competition_to_dto(competition)

        except Exception as e:
            logger.error(f"[Ingestion] Sync failed for {code}: {e}", exc_info=True)
            return CompetitionSyncResult(success=False, message=f"Error during sync: {e}")

        await self._announce_teams(ingested_teams)
        logger.info(f"[Ingestion] Synced {code}: {len(data.seasons)} seasons")
        return CompetitionSyncResult(
            success=True,
            message=SYNC_OK_MESSAGE,
            competition=result_dto,
            seasons_processed=len(data.seasons),
        )

    async def _upsert_competition(
        self, uow: UnitOfWork, data: CompetitionResponse, raw_json: str
    ) -> Competition:
        area = data.area
        embedding = await self.embeddings.generate_embedding(
            describe_competition(data.name, area.name if area else None, data.type)
        )
        now = datetime.now(UTC)

        competition = await uow.competitions.get_by_code(data.code)
        if competition is not None:
            return await uow.competitions.update(
                competition,
                raw_json=raw_json,
                embedding=embedding,
                updated_at=now,
                synced_at=now,
            )

        return await uow.competitions.create(
            external_id=data.id,
            name=data.name,
            code=data.code.upper(),
            type=data.type,
            emblem=data.emblem,
            area_name=area.name if area else None,
            area_code=area.code if area else None,
            area_flag=area.flag if area else None,
            raw_json=raw_json,
            embedding=embedding,
            synced_at=now,
        )

    async def _upsert_season(
        self, uow: UnitOfWork, competition: Competition, season_data: SeasonData
    ) -> Team | None:
        """Upsert a season and, when known, its winner. Returns the winner team."""
        winner = season_data.winner
        winner_name = winner.name if winner else None
        embedding = await self.embeddings.generate_embedding(
            describe_season(competition.name, season_data.startDate, season_data.endDate, winner_name)
        )
        raw_json = season_data.model_dump_json()

        season = await uow.seasons.get_by_field("external_id", season_data.id)
        if season is None:
            await uow.seasons.create(
                external_id=season_data.id,
                competition_id=competition.id,
                start_date=season_data.startDate,
                end_date=season_data.endDate,
                current_matchday=season_data.currentMatchday,
                winner_external_id=winner.id if winner else None,
                winner_name=winner_name,
                stages=list(season_data.stages),
                raw_json=raw_json,
                embedding=embedding,
            )
        else:
            await uow.seasons.update(
                season,
                current_matchday=season_data.currentMatchday,
                winner_external_id=winner.id if winner else None,
                winner_name=winner_name,
                raw_json=raw_json,
                embedding=embedding,
                updated_at=datetime.now(UTC),
            )

        if winner is None:
            return None
        return await self._upsert_team(uow, winner, competition.name)

    async def _upsert_team(self, uow: UnitOfWork, winner: WinnerData, league: str) -> Team:
        country = winner.area.name if winner.area else None
        embedding = await self.embeddings.generate_embedding(
            describe_team(winner.name, country, winner.founded, winner.venue, winner.clubColors)
        )
        team, created = await uow.teams.upsert(
            "external_id",
            winner.id,
            name=winner.name,
            short_name=winner.shortName,
            tla=winner.tla,
            country=country,
            league=league,
            crest=winner.crest,
            address=winner.address,
            website=winner.website,
            founded=winner.founded,
            club_colors=winner.clubColors,
            venue=winner.venue,
            raw_json=json.dumps(winner.model_dump(mode="json")),
            embedding=embedding,
        )
        logger.debug(f"[Ingestion] {'Created' if created else 'Updated'} team {team.name}")
        return team

    async def _announce_teams(self, teams: list[Team]) -> None:
        bus = get_message_bus()
        seen: set[object] = set()
        for team in teams:
            if team.id in seen:
                continue
            seen.add(team.id)
            try:
                await bus.publish(TeamDataIngested(team_id=team.id, team_name=team.name, country=team.country))
            except WorkflowError as e:
                logger.warning(f"[Ingestion] Could not announce team {team.name}: {e.message}")

    @staticmethod
    async def get_competition(competition_code: str) -> CompetitionDTO | None:
        async with get_uow() as uow:
            competition = await uow.competitions.get_by_code(competition_code)
        if competition is None:
            logger.info(f"Competition {competition_code.upper()} not found")
            return None
        return competition_to_dto(competition)

    @staticmethod
    async def get_season(external_id: int) -> StoredSeasonDTO | None:
        async with get_uow() as uow:
            season = await uow.seasons.get_by_external_id(external_id)
        if season is None:
            logger.info(f"Season {external_id} not found")
            return None
        logger.info(f"Found season {external_id}")
        return season_to_dto(season)

    @staticmethod
    async def get_seasons_for_competition(competition_code: str) -> list[StoredSeasonDTO]:
        """Seasons of a competition, most recent first. Empty if unknown."""
        async with get_uow() as uow:
            competition = await uow.competitions.get_by_code(competition_code)
            if competition is None:
                return []
            seasons = await uow.seasons.get_for_competition(competition.id)
        return [season_to_dto(s, competition.name) for s in seasons]


_ingestion_service: CompetitionIngestionService | None = None


def get_ingestion_service() -> CompetitionIngestionService:
    global _ingestion_service
    if _ingestion_service is None:
        _ingestion_service = CompetitionIngestionService()
    return _ingestion_service
