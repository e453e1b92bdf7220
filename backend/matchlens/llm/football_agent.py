"""Tool-calling agent answering questions from the football database.

The model receives the tool definitions with every turn. Whenever it
answers with ``tool_calls`` the tools are executed and their JSON output is
appended as ``tool`` messages, up to ``agent_max_tool_rounds`` rounds.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from matchlens.core.config import settings
from matchlens.core.exceptions import ValidationError
from matchlens.llm.client import OllamaClient, get_llm_client
from matchlens.llm.prompts import SYSTEM_FOOTBALL_DATA_AGENT
from matchlens.tools.football_data_tools import FootballDataTools
from matchlens.workflows.metrics import WorkflowMetrics, get_workflow_metrics

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response generated."
ERROR_RESPONSE = "Sorry, I couldn't process your query at this time. Please try again later."


@dataclass
class AgentResponse:
    response: str
    model_version: str
    confidence: float | None = None


class FootballAgentService:
    """Runs the agent loop over FootballDataTools."""

    agent_type = "football_data"

    def __init__(
        self,
        client: OllamaClient | None = None,
        tools: FootballDataTools | None = None,
        metrics: WorkflowMetrics | None = None,
        max_rounds: int | None = None,
    ):
        self.client = client or get_llm_client()
        self.tools = tools or FootballDataTools()
        self.metrics = metrics or get_workflow_metrics()
        self.max_rounds = max_rounds or settings.agent_max_tool_rounds

    @property
    def model_version(self) -> str:
        return self.client.model

    def _initial_messages(self, query: str, match_context: str | None) -> list[dict[str, Any]]:
        system = SYSTEM_FOOTBALL_DATA_AGENT
        if match_context:
            system = f"{system}\n\n{match_context}"
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": query},
        ]

    async def query(self, query: str, match_context: str | None = None) -> AgentResponse:
        """Answer ``query``, calling tools as the model requests them."""
        if not query or not query.strip():
            raise ValidationError("Query cannot be empty", details={"field": "query"})

        logger.info(f"[FootballAgent] Invoking {self.model_version}")
        messages = self._initial_messages(query, match_context)
        start = time.perf_counter()

        try:
            answer = await self._run(messages)
        except Exception as e:
            logger.error(f"[FootballAgent] Query failed: {e}", exc_info=True)
            self.metrics.record_agent_error(self.agent_type, type(e).__name__)
            return AgentResponse(ERROR_RESPONSE, self.model_version)

        elapsed_ms = (time.perf_counter() - start) * 1000
        self.metrics.record_agent_invocation(self.agent_type, self.model_version, elapsed_ms)
        logger.info(f"[FootballAgent] Response received in {elapsed_ms:.0f}ms")
        return AgentResponse(answer or NO_RESPONSE, self.model_version)

    async def _run(self, messages: list[dict[str, Any]]) -> str:
        reply = await self.client.chat(messages, tools=self.tools.definitions)

        rounds = 0
        while reply.tool_calls and rounds < self.max_rounds:
            rounds += 1
            messages.append(reply.message)
            for call in reply.tool_calls:
                function = call.get("function") or {}
                name = function.get("name", "")
                output = await self.tools.execute(name, function.get("arguments"))
                messages.append({"role": "tool", "content": output, "tool_name": name})
            reply = await self.client.chat(messages, tools=self.tools.definitions)

        if reply.tool_calls:
            logger.warning(f"[FootballAgent] Stopped after {self.max_rounds} tool rounds")
        return reply.content.strip()


_football_agent: FootballAgentService | None = None


def get_football_agent() -> FootballAgentService:
    global _football_agent
    if _football_agent is None:
        _football_agent = FootballAgentService()
    return _football_agent
