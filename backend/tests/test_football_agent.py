"""Unit tests for the tool-calling football data agent and its Ollama client."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from matchlens.core.exceptions import LLMError, ValidationError
from matchlens.llm.client import ChatResponse, OllamaClient
from matchlens.llm.football_agent import ERROR_RESPONSE, NO_RESPONSE, FootballAgentService
from matchlens.workflows.metrics import WorkflowMetrics


def _tool_call(name: str, arguments: dict) -> dict:
    return {"function": {"name": name, "arguments": arguments}}


@pytest.fixture
def tools() -> MagicMock:
    mock_tools = MagicMock()
    mock_tools.definitions = [{"type": "function", "function": {"name": "get_competition_history"}}]
    mock_tools.execute = AsyncMock(return_value='{"competition_code": "PL"}')
    return mock_tools


@pytest.fixture
def llm() -> MagicMock:
    client = MagicMock()
    client.model = "llama3.2"
    return client


class TestFootballAgentService:
    """Agent loop."""

    @pytest.mark.asyncio
    async def test_direct_answer(self, llm: MagicMock, tools: MagicMock, metrics: WorkflowMetrics):
        """A reply without tool calls is returned as is."""
        llm.chat = AsyncMock(return_value=ChatResponse(content=" 38 seasons. ", model="llama3.2"))
        agent = FootballAgentService(llm, tools, metrics)

        result = await agent.query("How many seasons?")

        assert result.response == "38 seasons."
        assert result.model_version == "llama3.2"
        tools.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tool_round_trip(self, llm: MagicMock, tools: MagicMock, metrics: WorkflowMetrics):
        """Tool calls are executed and their output fed back to the model."""
        llm.chat = AsyncMock(
            side_effect=[
                ChatResponse(
                    tool_calls=[_tool_call("get_competition_history", {"competition_code": "PL"})],
                    model="llama3.2",
                ),
                ChatResponse(content="Manchester City won in 2024.", model="llama3.2"),
            ]
        )
        agent = FootballAgentService(llm, tools, metrics)

        result = await agent.query("Who won the Premier League?", "Match: A vs B on 2026-02-05")

        assert result.response == "Manchester City won in 2024."
        tools.execute.assert_awaited_once_with("get_competition_history", {"competition_code": "PL"})

        messages = llm.chat.await_args_list[1].args[0]
        assert messages[0]["role"] == "system"
        assert "Match: A vs B" in messages[0]["content"]
        assert messages[2]["role"] == "assistant"
        assert messages[3] == {
            "role": "tool",
            "content": '{"competition_code": "PL"}',
            "tool_name": "get_competition_history",
        }

    @pytest.mark.asyncio
    async def test_tool_rounds_are_bounded(self, llm: MagicMock, tools: MagicMock, metrics: WorkflowMetrics):
        """The tool loop stops after the configured number of rounds."""
        looping = ChatResponse(
            tool_calls=[_tool_call("search_competitions", {"query": "league"})],
            model="llama3.2",
        )
        llm.chat = AsyncMock(return_value=looping)
        agent = FootballAgentService(llm, tools, metrics, max_rounds=2)

        result = await agent.query("Find leagues")

        assert tools.execute.await_count == 2
        assert llm.chat.await_count == 3
        assert result.response == NO_RESPONSE

    @pytest.mark.asyncio
    async def test_llm_failure_returns_apology(
        self, llm: MagicMock, tools: MagicMock, metrics: WorkflowMetrics
    ):
        """An LLM error yields the error response."""
        llm.chat = AsyncMock(side_effect=LLMError("Ollama is unreachable"))
        agent = FootballAgentService(llm, tools, metrics)

        result = await agent.query("Anything")

        assert result.response == ERROR_RESPONSE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_rejected(
        self, query: str, llm: MagicMock, tools: MagicMock, metrics: WorkflowMetrics
    ):
        """A blank question is rejected."""
        agent = FootballAgentService(llm, tools, metrics)

        with pytest.raises(ValidationError):
            await agent.query(query)


class TestOllamaClient:
    """HTTP handling of /api/chat."""

    @pytest.mark.asyncio
    @patch("matchlens.llm.client.get_http_client")
    async def test_chat_parses_message(self, mock_get_http: MagicMock):
        """The assistant message and model are read from /api/chat."""
        http = MagicMock()
        http.post = AsyncMock(
            return_value=httpx.Response(
                200,
                json={
                    "model": "llama3.2",
                    "message": {"role": "assistant", "content": "Hello"},
                    "total_duration": 1200,
                },
            )
        )
        mock_get_http.return_value = http
        client = OllamaClient(endpoint="http://ollama:11434/", model="llama3.2")

        reply = await client.chat([{"role": "user", "content": "Hi"}])

        assert reply.content == "Hello"
        assert reply.tool_calls == []
        url = http.post.await_args.args[0]
        assert url == "http://ollama:11434/api/chat"
        payload = http.post.await_args.kwargs["json"]
        assert payload["stream"] is False
        assert "tools" not in payload

    @pytest.mark.asyncio
    @patch("matchlens.llm.client.get_http_client")
    async def test_missing_model_raises(self, mock_get_http: MagicMock):
        """A 404 tells the caller to pull the model."""
        http = MagicMock()
        http.post = AsyncMock(return_value=httpx.Response(404, text="model not found"))
        mock_get_http.return_value = http
        client = OllamaClient(model="missing")

        with pytest.raises(LLMError, match="not found"):
            await client.chat([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    @patch("matchlens.llm.client.get_http_client")
    async def test_malformed_body_raises(self, mock_get_http: MagicMock):
        """A body without a message raises LLMError."""
        http = MagicMock()
        http.post = AsyncMock(return_value=httpx.Response(200, content=json.dumps({"done": True})))
        mock_get_http.return_value = http

        with pytest.raises(LLMError):
            await OllamaClient().chat([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    @patch("matchlens.llm.client.get_http_client")
    async def test_non_json_body_raises_llm_error(self, mock_get_http: MagicMock):
        """A 200 with an HTML or truncated body surfaces as LLMError."""
        http = MagicMock()
        http.post = AsyncMock(return_value=httpx.Response(200, text="<html>Bad gateway</html>"))
        mock_get_http.return_value = http

        with pytest.raises(LLMError, match="non-JSON"):
            await OllamaClient().chat([{"role": "user", "content": "Hi"}])

    def test_assistant_message_carries_tool_calls(self):
        """The assistant turn keeps its tool calls for the next request."""
        reply = ChatResponse(tool_calls=[_tool_call("x", {})], model="llama3.2")

        assert reply.message == {
            "role": "assistant",
            "content": "",
            "tool_calls": [_tool_call("x", {})],
        }
