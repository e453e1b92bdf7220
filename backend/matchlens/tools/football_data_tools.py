"""Tool facade exposed to the football data agent.

Each tool returns a JSON string the model can read back. Failures are
returned as ``{"error": "..."}`` rather than raised, so the model can
explain them to the user.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, TypeAdapter

from matchlens.tools.competition_tools import CompetitionDataTools
from matchlens.tools.schemas import CompetitionSearchResult, SimilarTeamResult

logger = logging.getLogger(__name__)

_similar_teams_adapter = TypeAdapter(list[SimilarTeamResult])
_competition_search_adapter = TypeAdapter(list[CompetitionSearchResult])


def _error(message: str) -> str:
    return json.dumps({"error": message})


def _dump(value: BaseModel) -> str:
    return value.model_dump_json()


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "get_competition_history",
            "description": "Retrieves historical season data for a competition including all seasons and winners",
            "parameters": {
                "type": "object",
                "properties": {
                    "competition_code": {
                        "type": "string",
                        "description": "Competition code like 'PL' for Premier League, 'BL1' for Bundesliga",
                    }
                },
                "required": ["competition_code"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "find_similar_teams",
            "description": "Find teams similar to the given description using vector similarity search",
            "parameters": {
                "type": "object",
                "properties": {
                    "description": {
                        "type": "string",
                        "description": "Team name or description to search for",
                    },
                    "limit": {"type": "integer", "description": "Maximum number of results to return"},
                },
                "required": ["description"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_season_statistics",
            "description": "Gets statistics for a specific season by its external ID",
            "parameters": {
                "type": "object",
                "properties": {
                    "season_id": {"type": "integer", "description": "The external season ID"}
                },
                "required": ["season_id"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "search_competitions",
            "description": "Searches competitions using natural language query with semantic search using embeddings",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Natural language search query"},
                    "limit": {"type": "integer", "description": "Maximum number of results"},
                },
                "required": ["query"],
            },
        },
    },
]


class FootballDataTools:
    """JSON-returning wrappers around CompetitionDataTools."""

    async def get_competition_history(self, competition_code: str) -> str:
        try:
            result = await CompetitionDataTools.get_competition_history(competition_code)
        except Exception as e:
            logger.error(f"[Tools] get_competition_history failed: {e}")
            return _error(str(e))
        if result is None:
            return _error(f"Competition {competition_code} not found")
        return _dump(result)

    async def find_similar_teams(self, description: str, limit: int = 5) -> str:
        try:
            teams = await CompetitionDataTools.find_similar_teams(description, limit)
        except Exception as e:
            logger.error(f"[Tools] find_similar_teams failed: {e}")
            return _error(str(e))
        return _similar_teams_adapter.dump_json(teams).decode()

    async def get_season_statistics(self, season_id: int) -> str:
        try:
            result = await CompetitionDataTools.get_season_statistics(int(season_id))
        except Exception as e:
            logger.error(f"[Tools] get_season_statistics failed: {e}")
            return _error(str(e))
        if result is None:
            return _error(f"Season {season_id} not found")
        return _dump(result)

    async def search_competitions(self, query: str, limit: int = 5) -> str:
        try:
            results = await CompetitionDataTools.search_competitions(query, limit)
        except Exception as e:
            logger.error(f"[Tools] search_competitions failed: {e}")
            return _error(str(e))
        return _competition_search_adapter.dump_json(results).decode()

    @property
    def definitions(self) -> list[dict[str, Any]]:
        return TOOL_DEFINITIONS

    async def execute(self, name: str, arguments: dict[str, Any] | str | None) -> str:
        """Run a tool requested by the model and return its JSON output."""
        handlers: dict[str, Callable[..., Awaitable[str]]] = {
            "get_competition_history": self.get_competition_history,
            "find_similar_teams": self.find_similar_teams,
            "get_season_statistics": self.get_season_statistics,
            "search_competitions": self.search_competitions,
        }
        handler = handlers.get(name)
        if handler is None:
            return _error(f"Unknown tool: {name}")

        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments else {}
            except json.JSONDecodeError:
                return _error(f"Invalid arguments for {name}")
        if not isinstance(arguments, dict):
            arguments = {}

        logger.info(f"[Tools] Executing {name}")
        try:
            return await handler(**arguments)
        except TypeError as e:
            return _error(f"Invalid arguments for {name}: {e}")
