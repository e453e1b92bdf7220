"""LLM client for a local Ollama server.

Uses Ollama's native chat API (``POST /api/chat``) with streaming disabled.
Tool calling uses the ``tools`` request field; the assistant message then
carries ``tool_calls`` instead of (or alongside) ``content``.

Run locally with:
    ollama pull llama3.2
    ollama serve
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from matchlens.core.config import settings
from matchlens.core.exceptions import LLMError
from matchlens.core.http_client import get_http_client

logger = logging.getLogger(__name__)


class ChatResponse(BaseModel):
    """Assistant turn returned by /api/chat."""

    content: str = ""
    tool_calls: list[dict[str, Any]] = []
    model: str
    total_duration_ns: int | None = None

    @property
    def message(self) -> dict[str, Any]:
        """The assistant message in the shape it is fed back to the model."""
        message: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = self.tool_calls
        return message


class OllamaClient:
    """Client for the Ollama HTTP API."""

    def __init__(
        self,
        endpoint: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        self.endpoint = (endpoint or settings.ollama_endpoint).rstrip("/")
        self.model = model or settings.ollama_model
        self.timeout = timeout or settings.ollama_timeout_seconds
        # Ollama ignores the key; reverse proxies in front of it may not
        self.headers = {"Authorization": f"Bearer {api_key or settings.ollama_api_key}"}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _post_chat(self, payload: dict[str, Any]) -> httpx.Response:
        return await get_http_client().post(
            f"{self.endpoint}/api/chat",
            headers=self.headers,
            json=payload,
            timeout=self.timeout,
        )

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        """Send a conversation and return the assistant's reply.

        Raises:
            LLMError: on transport failures, timeouts, non-200 responses or
                malformed bodies.
        """
        payload: dict[str, Any] = {"model": self.model, "messages": messages, "stream": False}
        if tools:
            payload["tools"] = tools
        if temperature is not None:
            payload["options"] = {"temperature": temperature}

        try:
            response = await self._post_chat(payload)
        except httpx.TimeoutException as e:
            raise LLMError("Ollama request timeout", details={"error": str(e)}) from e
        except httpx.HTTPError as e:
            raise LLMError("Ollama is unreachable", details={"error": str(e)}) from e

        if response.status_code == 404:
            raise LLMError(
                f"Ollama model '{self.model}' not found - run `ollama pull {self.model}`",
                details={"status": 404},
            )
        if response.status_code != 200:
            raise LLMError(
                f"Ollama API error: {response.status_code}",
                details={"status": response.status_code, "response": response.text[:200]},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(
                "Ollama returned a non-JSON body", details={"response": response.text[:200]}
            ) from e
        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise LLMError("Invalid Ollama response structure", details={"data": str(data)[:200]})

        return ChatResponse(
            content=message.get("content") or "",
            tool_calls=message.get("tool_calls") or [],
            model=data.get("model") or self.model,
            total_duration_ns=data.get("total_duration"),
        )

    async def complete(self, prompt: str, system_prompt: str | None = None) -> str:
        """Single-turn completion returning the reply text."""
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        response = await self.chat(messages)
        return response.content

    async def list_models(self, timeout: float | None = None) -> httpx.Response:
        """GET /api/tags. Returns the raw response for health probing."""
        return await get_http_client().get(
            f"{self.endpoint}/api/tags", headers=self.headers, timeout=timeout or self.timeout
        )


_ollama_client: OllamaClient | None = None


def get_llm_client() -> OllamaClient:
    """Get or create the Ollama client."""
    global _ollama_client
    if _ollama_client is None:
        _ollama_client = OllamaClient()
    return _ollama_client
