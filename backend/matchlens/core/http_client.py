"""Shared httpx client for connection pooling.

The football-data client, the Ollama client and the health checks all go
through one pooled ``httpx.AsyncClient``.

Usage:
    from matchlens.core.http_client import get_http_client

    client = get_http_client()
    response = await client.get("http://localhost:11434/api/tags")
"""

import logging

import httpx

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None


def get_http_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """Get the shared async HTTP client, creating it on first use.

    Args:
        timeout: Default timeout, applied only when the client is created.
            Callers needing another timeout pass ``timeout=`` per request.
    """
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=5.0),
            limits=httpx.Limits(
                max_connections=50,
                max_keepalive_connections=20,
                keepalive_expiry=30,
            ),
            follow_redirects=True,
        )
        logger.info("Created shared HTTP client with connection pooling")
    return _client


async def close_http_client() -> None:
    """Close the shared HTTP client. Called during app shutdown."""
    global _client
    if _client and not _client.is_closed:
        await _client.aclose()
        logger.info("Closed shared HTTP client")
    _client = None
