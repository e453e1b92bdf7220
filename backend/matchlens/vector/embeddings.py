"""Embedding generation for semantic search over teams, competitions and seasons.

Three providers share one interface:
- ``hash``: deterministic SHA-256 vectors, no model required (default)
- ``ollama``: the Ollama embeddings endpoint (nomic-embed-text, 768 dims)
- ``sentence_transformers``: a local sentence-transformers model

All vectors have ``settings.embedding_dimensions`` components (768, matching
the pgvector columns) and are L2-normalized so pgvector cosine distance compares
them directly. Provider output of any other width is discarded.
"""

import asyncio
import hashlib
import logging
import struct
from abc import ABC, abstractmethod
from datetime import date
from typing import Any

import httpx
import numpy as np

from matchlens.core.config import settings
from matchlens.core.http_client import get_http_client

logger = logging.getLogger(__name__)

EMBEDDING_DIM = settings.embedding_dimensions
_INT32_MAX = 2147483647


def describe_competition(name: str, area_name: str | None = None, type_: str | None = None) -> str:
    """Text embedded for a competition."""
    text = f"Football competition: {name}"
    if area_name:
        text += f" in {area_name}"
    if type_:
        text += f", type: {type_}"
    return text


def describe_season(
    competition_name: str, start_date: date, end_date: date, winner_name: str | None = None
) -> str:
    """Text embedded for a season."""
    text = f"{competition_name} season from {start_date:%Y-%m-%d} to {end_date:%Y-%m-%d}"
    if winner_name:
        text += f", won by {winner_name}"
    return text


def describe_team(
    name: str,
    country: str | None = None,
    founded: int | None = None,
    venue: str | None = None,
    club_colors: str | None = None,
) -> str:
    """Text embedded for a team."""
    text = f"Football team: {name}"
    if country:
        text += f" from {country}"
    if founded:
        text += f", founded in {founded}"
    if venue:
        text += f", plays at {venue}"
    if club_colors:
        text += f", colors: {club_colors}"
    return text


def hash_embedding(text: str, dimensions: int = EMBEDDING_DIM) -> list[float]:
    """Deterministic unit vector derived from SHA-256 of the normalized text.

    Component ``i`` is the first four bytes of ``sha256(text || int32_le(i))``
    read as a signed little-endian int32 and scaled by 1/2**31-1.
    Case and surrounding whitespace do not change the result.
    """
    if not text or not text.strip():
        raise ValueError("Text cannot be empty")

    text_bytes = text.strip().lower().encode("utf-8")
    values = np.empty(dimensions, dtype=np.float64)
    for i in range(dimensions):
        digest = hashlib.sha256(text_bytes + struct.pack("<i", i)).digest()
        values[i] = struct.unpack("<i", digest[:4])[0] / _INT32_MAX

    norm = np.linalg.norm(values)
    if norm > 0:
        values = values / norm
    return values.tolist()


class EmbeddingService(ABC):
    """Turns text into a vector, or None when the provider fails."""

    dimensions: int = EMBEDDING_DIM

    @abstractmethod
    async def generate_embedding(self, text: str) -> list[float] | None: ...

    def _checked(self, embedding: list[float]) -> list[float] | None:
        if len(embedding) != self.dimensions:
            logger.warning(
                f"{type(self).__name__} returned {len(embedding)} dimensions, expected {self.dimensions}"
            )
            return None
        return embedding


class HashEmbeddingService(EmbeddingService):
    """Model-free embeddings. Same text, same vector."""

    async def generate_embedding(self, text: str) -> list[float] | None:
        return hash_embedding(text, self.dimensions)


class OllamaEmbeddingService(EmbeddingService):
    """Embeddings from Ollama's /api/embeddings endpoint."""

    def __init__(self, endpoint: str | None = None, model: str | None = None):
        self.endpoint = (endpoint or settings.ollama_endpoint).rstrip("/")
        self.model = model or settings.ollama_embedding_model

    async def generate_embedding(self, text: str) -> list[float] | None:
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        try:
            response = await get_http_client().post(
                f"{self.endpoint}/api/embeddings",
                json={"model": self.model, "prompt": text},
                timeout=settings.ollama_timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.error(f"Ollama embedding request failed: {e}")
            return None

        if response.status_code != 200:
            logger.warning(f"Ollama embedding returned status {response.status_code}")
            return None

        embedding = response.json().get("embedding")
        if not embedding:
            logger.warning("Ollama embedding response had no vector")
            return None
        return self._checked([float(x) for x in embedding])


# Model singleton
_model: Any = None


def get_embedding_model() -> Any:
    """Get or initialize the sentence-transformers model (lazy loading)."""
    global _model

    if _model is None:
        from sentence_transformers import SentenceTransformer

        logger.info(f"Loading embedding model: {settings.sentence_transformer_model}")
        _model = SentenceTransformer(settings.sentence_transformer_model)
        logger.info("Embedding model loaded successfully")
    return _model


class SentenceTransformerEmbeddingService(EmbeddingService):
    """Embeddings from a local sentence-transformers model."""

    async def generate_embedding(self, text: str) -> list[float] | None:
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        try:
            model = get_embedding_model()
            embedding = await asyncio.to_thread(model.encode, text, convert_to_numpy=True)
        except (OSError, RuntimeError) as e:
            logger.error(f"Sentence-transformers embedding failed: {e}")
            return None

        norm = np.linalg.norm(embedding)
        if norm > 0:
            embedding = embedding / norm
        return self._checked(embedding.tolist())


_service: EmbeddingService | None = None


def get_embedding_service() -> EmbeddingService:
    """Provider selected by ``EMBEDDING_PROVIDER``."""
    global _service
    if _service is None:
        if settings.embedding_provider == "ollama":
            _service = OllamaEmbeddingService()
        elif settings.embedding_provider == "sentence_transformers":
            _service = SentenceTransformerEmbeddingService()
        else:
            _service = HashEmbeddingService()
        logger.info(f"Using {type(_service).__name__} for embeddings")
    return _service


def compute_similarity(embedding1: list[float], embedding2: list[float]) -> float:
    """Cosine similarity of two embeddings (0 when either is a zero vector)."""
    vec1 = np.array(embedding1)
    vec2 = np.array(embedding2)

    norm1 = np.linalg.norm(vec1)
    norm2 = np.linalg.norm(vec2)
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return float(np.dot(vec1, vec2) / (norm1 * norm2))
