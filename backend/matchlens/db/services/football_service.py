"""Football service for teams, players, matches and match events."""

import logging
import time
import uuid
from datetime import UTC, date, datetime, timedelta

from matchlens.core.exceptions import NotFoundError
from matchlens.db.models import Match, MatchEvent, MatchStatus, Player
from matchlens.db.repositories import get_uow
from matchlens.db.services.dtos import MatchDTO, MatchEventDTO, PlayerDTO, TeamDTO

logger = logging.getLogger(__name__)

DEFAULT_MATCH_WINDOW = timedelta(days=30)


def match_to_dto(match: Match, home_name: str | None = None, away_name: str | None = None) -> MatchDTO:
    return MatchDTO(
        id=match.id,
        home_team_id=match.home_team_id,
        home_team_name=home_name or (match.home_team.name if match.home_team else "Unknown"),
        away_team_id=match.away_team_id,
        away_team_name=away_name or (match.away_team.name if match.away_team else "Unknown"),
        match_date=match.match_date,
        stadium=match.stadium,
        home_score=match.home_score,
        away_score=match.away_score,
        status=match.status,
    )


def player_to_dto(player: Player, team_name: str | None = None) -> PlayerDTO:
    return PlayerDTO(
        id=player.id,
        name=player.name,
        position=player.position,
        jersey_number=player.jersey_number,
        team_id=player.team_id,
        team_name=team_name or (player.team.name if player.team else None),
    )


def event_to_dto(event: MatchEvent) -> MatchEventDTO:
    return MatchEventDTO(
        id=event.id,
        match_id=event.match_id,
        event_type=event.event_type,
        minute=event.minute,
        player_name=event.player.name if event.player else None,
        description=event.description,
    )


class FootballService:
    """CRUD operations over the core football tables."""

    @staticmethod
    async def get_teams(name: str | None = None, country: str | None = None) -> list[TeamDTO]:
        logger.info(f"Fetching teams (name={name!r}, country={country!r})")
        start = time.perf_counter()
        async with get_uow() as uow:
            teams = await uow.teams.search(name=name, country=country)
        logger.debug(f"Team query executed in {(time.perf_counter() - start) * 1000:.0f}ms")
        return [TeamDTO(id=t.id, name=t.name, country=t.country, league=t.league) for t in teams]

    @staticmethod
    async def get_team(team_id: uuid.UUID) -> TeamDTO | None:
        async with get_uow() as uow:
            team = await uow.teams.get_by_id(team_id)
        if team is None:
            logger.info(f"Team {team_id} not found")
            return None
        return TeamDTO(id=team.id, name=team.name, country=team.country, league=team.league)

    @staticmethod
    async def create_team(name: str, country: str | None = None, league: str | None = None) -> TeamDTO:
        async with get_uow() as uow:
            team = await uow.teams.create(name=name, country=country, league=league)
            await uow.commit()
        logger.info(f"Created team {team.id} ({team.name})")
        return TeamDTO(id=team.id, name=team.name, country=team.country, league=team.league)

    @staticmethod
    async def get_matches(
        start_date: datetime | None = None, end_date: datetime | None = None
    ) -> list[MatchDTO]:
        """Matches in a window, by default one month either side of now."""
        now = datetime.now(UTC)
        start_date = start_date or now - DEFAULT_MATCH_WINDOW
        end_date = end_date or now + DEFAULT_MATCH_WINDOW
        logger.info(f"Fetching matches from {start_date:%Y-%m-%d} to {end_date:%Y-%m-%d}")

        async with get_uow() as uow:
            matches = await uow.matches.get_by_date_range(start_date, end_date)
        return [match_to_dto(m) for m in matches]

    @staticmethod
    async def get_match(match_id: uuid.UUID) -> MatchDTO | None:
        async with get_uow() as uow:
            match = await uow.matches.get_with_teams(match_id)
        if match is None:
            logger.info(f"Match {match_id} not found")
            return None
        return match_to_dto(match)

    @staticmethod
    async def create_match(
        home_team_id: uuid.UUID,
        away_team_id: uuid.UUID,
        match_date: datetime,
        stadium: str | None = None,
    ) -> MatchDTO:
        """Schedule a match between two existing teams.

        Raises:
            NotFoundError: if either team does not exist.
        """
        async with get_uow() as uow:
            home_team = await uow.teams.get_by_id(home_team_id)
            if home_team is None:
                raise NotFoundError(f"Home team {home_team_id} not found")
            away_team = await uow.teams.get_by_id(away_team_id)
            if away_team is None:
                raise NotFoundError(f"Away team {away_team_id} not found")

            match = await uow.matches.create(
                home_team_id=home_team_id,
                away_team_id=away_team_id,
                match_date=match_date,
                stadium=stadium,
                status=MatchStatus.SCHEDULED.value,
            )
            await uow.commit()

        logger.info(f"Created match {match.id}: {home_team.name} vs {away_team.name}")
        return match_to_dto(match, home_team.name, away_team.name)

    @staticmethod
    async def get_players(team_id: uuid.UUID | None = None) -> list[PlayerDTO]:
        async with get_uow() as uow:
            players = await uow.players.list_with_team(team_id)
        return [player_to_dto(p) for p in players]

    @staticmethod
    async def create_player(
        name: str,
        position: str | None = None,
        jersey_number: int | None = None,
        team_id: uuid.UUID | None = None,
        date_of_birth: date | None = None,
    ) -> PlayerDTO:
        """Register a player, optionally attached to a team.

        Raises:
            NotFoundError: if ``team_id`` is given but the team does not exist.
        """
        async with get_uow() as uow:
            team_name = None
            if team_id is not None:
                team = await uow.teams.get_by_id(team_id)
                if team is None:
                    raise NotFoundError(f"Team {team_id} not found")
                team_name = team.name

            player = await uow.players.create(
                name=name,
                position=position,
                jersey_number=jersey_number,
                team_id=team_id,
                date_of_birth=date_of_birth,
            )
            await uow.commit()

        logger.info(f"Created player {player.id} ({player.name}) for team {team_id}")
        return PlayerDTO(
            id=player.id,
            name=player.name,
            position=player.position,
            jersey_number=player.jersey_number,
            team_id=player.team_id,
            team_name=team_name,
        )

    @staticmethod
    async def get_match_events(match_id: uuid.UUID) -> list[MatchEventDTO]:
        async with get_uow() as uow:
            events = await uow.match_events.get_for_match(match_id)
        return [event_to_dto(e) for e in events]
