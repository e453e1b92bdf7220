"""Database-query tools used by the LLM agents and the tool endpoints."""

from matchlens.tools.competition_tools import CompetitionDataTools, build_season_statistics
from matchlens.tools.football_data_tools import TOOL_DEFINITIONS, FootballDataTools
from matchlens.tools.match_tools import MatchDataTools

__all__ = [
    "CompetitionDataTools",
    "FootballDataTools",
    "MatchDataTools",
    "TOOL_DEFINITIONS",
    "build_season_statistics",
]
