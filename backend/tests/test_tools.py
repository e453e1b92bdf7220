"""Tests for the agent tools and the tool endpoints."""

import json
import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from matchlens.core.exceptions import ValidationError
from matchlens.tools.competition_tools import (
    FALLBACK_TEXT_SIMILARITY,
    CompetitionDataTools,
    build_season_statistics,
)
from matchlens.tools.football_data_tools import TOOL_DEFINITIONS, FootballDataTools
from matchlens.tools.match_tools import MAX_MATCHES, MatchDataTools
from matchlens.tools.schemas import CompetitionHistoryResult, SeasonStatisticsResult


class TestBuildSeasonStatistics:
    """Derived season progress figures."""

    def test_finished_season(self, sample_season: MagicMock):
        """A season past its end date is completed."""
        stats = build_season_statistics(sample_season, today=date(2024, 8, 1))

        assert stats.is_completed is True
        assert stats.days_remaining == 0
        assert stats.total_matchdays == (date(2024, 5, 19) - date(2023, 8, 11)).days // 7
        assert stats.competition_name == "Premier League"

    def test_running_season(self, sample_season: MagicMock):
        """A season without a winner reports the days remaining."""
        sample_season.winner_name = None

        stats = build_season_statistics(sample_season, today=date(2024, 5, 9))

        assert stats.is_completed is False
        assert stats.days_remaining == 10

    def test_winner_marks_completed_before_end(self, sample_season: MagicMock):
        """A known winner marks the season completed early."""
        stats = build_season_statistics(sample_season, today=date(2024, 1, 1))

        assert stats.is_completed is True
        assert stats.days_remaining == 0

    def test_missing_competition(self, sample_season: MagicMock):
        """A season without a competition is labelled Unknown."""
        sample_season.competition = None

        stats = build_season_statistics(sample_season, today=date(2024, 1, 1))

        assert stats.competition_name == "Unknown"


class TestCompetitionDataTools:
    """Database-backed lookups with a mocked unit of work."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["", "   "])
    async def test_blank_code_rejected(self, code: str):
        """A blank competition code is rejected."""
        with pytest.raises(ValidationError):
            await CompetitionDataTools.get_competition_history(code)

    @pytest.mark.asyncio
    @patch("matchlens.tools.competition_tools.get_uow")
    async def test_history(self, mock_get_uow: MagicMock, make_uow, sample_season: MagicMock):
        """Competition history lists its seasons and winners."""
        competition = MagicMock()
        competition.id = uuid.uuid4()
        competition.code = "PL"
        competition.name = "Premier League"
        competition.area_name = "England"
        competition.type = "LEAGUE"
        competitions = MagicMock()
        competitions.get_by_code = AsyncMock(return_value=competition)
        seasons = MagicMock()
        seasons.get_for_competition = AsyncMock(return_value=[sample_season])
        mock_get_uow.return_value = make_uow(competitions=competitions, seasons=seasons)

        result = await CompetitionDataTools.get_competition_history("pl")

        competitions.get_by_code.assert_awaited_once_with("PL")
        assert result is not None
        assert result.competition_code == "PL"
        assert result.seasons[0].season_external_id == 1564
        assert result.seasons[0].winner_name == "Manchester City FC"

    @pytest.mark.asyncio
    @patch("matchlens.tools.competition_tools.get_embedding_service")
    @patch("matchlens.tools.competition_tools.get_uow")
    async def test_similar_teams_by_distance(
        self, mock_get_uow: MagicMock, mock_embeddings: MagicMock, make_uow, sample_team: MagicMock
    ):
        """Similar teams are ranked by vector distance."""
        service = MagicMock()
        service.generate_embedding = AsyncMock(return_value=[0.1] * 768)
        mock_embeddings.return_value = service
        sample_team.venue = "Etihad Stadium"
        sample_team.club_colors = "Sky Blue / White"
        sample_team.founded = 1880
        teams = MagicMock()
        teams.nearest = AsyncMock(return_value=[(sample_team, 0.25)])
        mock_get_uow.return_value = make_uow(teams=teams)

        results = await CompetitionDataTools.find_similar_teams("sky blue club", limit=3)

        assert len(results) == 1
        assert results[0].similarity == pytest.approx(0.75)
        teams.nearest.assert_awaited_once_with([0.1] * 768, limit=3)

    @pytest.mark.asyncio
    @patch("matchlens.tools.competition_tools.get_embedding_service")
    @patch("matchlens.tools.competition_tools.get_uow")
    async def test_search_falls_back_to_text(
        self, mock_get_uow: MagicMock, mock_embeddings: MagicMock, make_uow
    ):
        """Search falls back to text matching without an embedding."""
        service = MagicMock()
        service.generate_embedding = AsyncMock(return_value=None)
        mock_embeddings.return_value = service
        competition = MagicMock()
        competition.id = uuid.uuid4()
        competition.name = "Premier League"
        competition.code = "PL"
        competition.type = "LEAGUE"
        competition.area_name = "England"
        competitions = MagicMock()
        competitions.text_search = AsyncMock(return_value=[competition])
        mock_get_uow.return_value = make_uow(competitions=competitions)

        results = await CompetitionDataTools.search_competitions("premier")

        assert results[0].similarity == FALLBACK_TEXT_SIMILARITY
        assert results[0].code == "PL"

    @pytest.mark.asyncio
    async def test_date_range_rejects_inverted_range(self):
        """A start date after the end date is rejected."""
        with pytest.raises(ValidationError):
            await CompetitionDataTools.get_seasons_by_date_range(date(2025, 1, 1), date(2024, 1, 1))


class TestFootballDataTools:
    """JSON facade used by the agent."""

    def test_definitions(self):
        """The agent is offered the four competition tools."""
        names = [d["function"]["name"] for d in TOOL_DEFINITIONS]
        assert names == [
            "get_competition_history",
            "find_similar_teams",
            "get_season_statistics",
            "search_competitions",
        ]

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        """An unknown tool name yields an error JSON."""
        output = await FootballDataTools().execute("drop_tables", {})

        assert json.loads(output) == {"error": "Unknown tool: drop_tables"}

    @pytest.mark.asyncio
    async def test_invalid_argument_string(self):
        """Malformed JSON arguments yield an error JSON."""
        output = await FootballDataTools().execute("get_competition_history", "{broken")

        assert "error" in json.loads(output)

    @pytest.mark.asyncio
    async def test_unexpected_argument(self):
        """Unknown argument names yield an error JSON."""
        output = await FootballDataTools().execute("get_competition_history", {"nope": 1})

        assert "Invalid arguments" in json.loads(output)["error"]

    @pytest.mark.asyncio
    @patch("matchlens.tools.football_data_tools.CompetitionDataTools")
    async def test_arguments_as_json_string(self, mock_tools: MagicMock):
        """Arguments given as a JSON string are decoded."""
        mock_tools.get_competition_history = AsyncMock(
            return_value=CompetitionHistoryResult(competition_code="PL", competition_name="Premier League")
        )

        output = await FootballDataTools().execute(
            "get_competition_history", '{"competition_code": "PL"}'
        )

        assert json.loads(output)["competition_name"] == "Premier League"

    @pytest.mark.asyncio
    @patch("matchlens.tools.football_data_tools.CompetitionDataTools")
    async def test_not_found_is_error_json(self, mock_tools: MagicMock):
        """A missing record yields an error JSON."""
        mock_tools.get_season_statistics = AsyncMock(return_value=None)

        output = await FootballDataTools().get_season_statistics(999)

        assert json.loads(output) == {"error": "Season 999 not found"}

    @pytest.mark.asyncio
    @patch("matchlens.tools.football_data_tools.CompetitionDataTools")
    async def test_tool_exception_is_error_json(self, mock_tools: MagicMock):
        """A tool exception yields its message as error JSON."""
        mock_tools.search_competitions = AsyncMock(side_effect=ValidationError("query cannot be empty"))

        output = await FootballDataTools().search_competitions("")

        assert json.loads(output) == {"error": "query cannot be empty"}


class TestMatchDataTools:
    """Match, team and prediction helpers."""

    @pytest.mark.asyncio
    @patch("matchlens.tools.match_tools.get_embedding_service")
    async def test_similar_matches_without_embedding(self, mock_embeddings: MagicMock):
        """Without an embedding no similar matches are returned."""
        mock_embeddings.return_value.generate_embedding = AsyncMock(return_value=None)

        assert await MatchDataTools.search_similar_matches("derby in the rain") == []

    @pytest.mark.asyncio
    @patch("matchlens.tools.match_tools.get_embedding_service")
    @patch("matchlens.tools.match_tools.get_uow")
    async def test_similar_matches(
        self, mock_get_uow: MagicMock, mock_embeddings: MagicMock, make_uow, sample_match: MagicMock
    ):
        """Similar matches are returned for a description."""
        mock_embeddings.return_value.generate_embedding = AsyncMock(return_value=[0.1] * 768)
        prediction = MagicMock()
        prediction.match = sample_match
        prediction.home_win_probability = 0.5
        prediction.draw_probability = 0.3
        prediction.away_win_probability = 0.2
        predictions = MagicMock()
        predictions.nearest_by_context = AsyncMock(return_value=[(prediction, 0.1)])
        mock_get_uow.return_value = make_uow(predictions=predictions)

        results = await MatchDataTools.search_similar_matches("City at home", limit=3)

        assert results[0].match_id == sample_match.id
        assert results[0].home_team_name == "Manchester City FC"
        assert results[0].similarity == pytest.approx(0.9)

    @pytest.mark.asyncio
    @patch("matchlens.tools.match_tools.get_uow")
    async def test_save_prediction_unknown_match(self, mock_get_uow: MagicMock, make_uow):
        """Saving for an unknown match fails without writing."""
        matches = MagicMock()
        matches.get_by_id = AsyncMock(return_value=None)
        predictions = MagicMock()
        predictions.create = AsyncMock()
        mock_get_uow.return_value = make_uow(matches=matches, predictions=predictions)
        match_id = uuid.uuid4()

        result = await MatchDataTools.save_prediction(match_id, 0.4, 0.3, 0.3)

        assert result.success is False
        assert result.error_message == f"Match {match_id} not found"
        predictions.create.assert_not_awaited()

    @pytest.mark.asyncio
    @patch("matchlens.tools.match_tools.get_uow")
    async def test_save_prediction(self, mock_get_uow: MagicMock, make_uow, sample_match: MagicMock):
        """A prediction is saved with truncated reasoning."""
        stored = MagicMock()
        stored.id = uuid.uuid4()
        matches = MagicMock()
        matches.get_by_id = AsyncMock(return_value=sample_match)
        predictions = MagicMock()
        predictions.create = AsyncMock(return_value=stored)
        uow = make_uow(matches=matches, predictions=predictions)
        mock_get_uow.return_value = uow

        result = await MatchDataTools.save_prediction(
            sample_match.id, 0.4, 0.3, 0.3, reasoning="r" * 3000, context_embedding=[]
        )

        assert result.success is True
        assert result.prediction_id == stored.id
        kwargs = predictions.create.await_args.kwargs
        assert len(kwargs["reasoning"]) == 2000
        assert kwargs["context_embedding"] is None
        uow.commit.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("matchlens.tools.match_tools.get_uow")
    async def test_save_prediction_database_error(self, mock_get_uow: MagicMock, make_uow):
        """A database error while saving is reported."""
        matches = MagicMock()
        matches.get_by_id = AsyncMock(side_effect=SQLAlchemyError("connection reset"))
        mock_get_uow.return_value = make_uow(matches=matches)

        result = await MatchDataTools.save_prediction(uuid.uuid4(), 0.4, 0.3, 0.3)

        assert result.success is False
        assert "connection reset" in result.error_message

    @pytest.mark.asyncio
    @patch("matchlens.tools.match_tools.get_uow")
    async def test_matches_are_capped(self, mock_get_uow: MagicMock, make_uow):
        """Match listings are capped."""
        matches = MagicMock()
        matches.get_by_date_range = AsyncMock(return_value=[])
        mock_get_uow.return_value = make_uow(matches=matches)

        await MatchDataTools.get_matches(status="scheduled")

        assert matches.get_by_date_range.await_args.kwargs == {"status": "scheduled", "limit": MAX_MATCHES}


class TestToolEndpoints:
    """HTTP exposure of the tools."""

    @patch("matchlens.api.routes.tools.CompetitionDataTools")
    def test_history_not_found(self, mock_tools: MagicMock, client: TestClient):
        """An unknown competition answers 404."""
        mock_tools.get_competition_history = AsyncMock(return_value=None)

        response = client.get("/api/predictions/tools/competition-history/xx")

        assert response.status_code == 404

    @patch("matchlens.api.routes.tools.CompetitionDataTools")
    def test_season_statistics(self, mock_tools: MagicMock, client: TestClient):
        """Season statistics are returned for a season id."""
        mock_tools.get_season_statistics = AsyncMock(
            return_value=SeasonStatisticsResult(
                season_external_id=1564,
                competition_name="Premier League",
                start_date=date(2023, 8, 11),
                end_date=date(2024, 5, 19),
                total_matchdays=40,
                days_remaining=0,
                is_completed=True,
            )
        )

        response = client.get("/api/predictions/tools/season-statistics/1564")

        assert response.status_code == 200
        assert response.json()["is_completed"] is True

    @patch("matchlens.api.routes.tools.CompetitionDataTools")
    def test_season_range_defaults(self, mock_tools: MagicMock, client: TestClient):
        """The season range defaults around today."""
        mock_tools.get_seasons_by_date_range = AsyncMock(return_value=[])

        response = client.get("/api/predictions/tools/season-statistics")

        assert response.status_code == 200
        start, end = mock_tools.get_seasons_by_date_range.await_args.args
        assert start < end

    def test_season_range_inverted_is_400(self, client: TestClient):
        """An inverted season range answers 400."""
        response = client.get(
            "/api/predictions/tools/season-statistics",
            params={"start_date": "2025-01-01", "end_date": "2024-01-01"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_similar_teams_requires_description(self, client: TestClient):
        """The similar-teams endpoint requires a description."""
        response = client.get("/api/predictions/tools/similar-teams")

        assert response.status_code == 422
