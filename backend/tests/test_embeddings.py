"""Unit tests for embedding generation."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import numpy as np
import pytest

from matchlens.vector.embeddings import (
    EMBEDDING_DIM,
    HashEmbeddingService,
    OllamaEmbeddingService,
    compute_similarity,
    describe_competition,
    describe_season,
    describe_team,
    hash_embedding,
)


class TestHashEmbedding:
    """Deterministic model-free vectors."""

    def test_dimensions(self):
        """Hash vectors have 768 components."""
        assert len(hash_embedding("Premier League")) == EMBEDDING_DIM

    def test_deterministic(self):
        """The same text always gives the same vector."""
        assert hash_embedding("Premier League") == hash_embedding("Premier League")

    def test_case_and_whitespace_insensitive(self):
        """Case and surrounding whitespace are ignored."""
        assert hash_embedding("  Premier League ") == hash_embedding("premier league")

    def test_different_text_different_vector(self):
        """Different texts give different vectors."""
        assert hash_embedding("Premier League") != hash_embedding("Bundesliga")

    def test_unit_norm(self):
        """Hash vectors are L2-normalized."""
        assert np.linalg.norm(hash_embedding("La Liga")) == pytest.approx(1.0)

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_rejected(self, text: str):
        """Blank text cannot be embedded."""
        with pytest.raises(ValueError):
            hash_embedding(text)

    @pytest.mark.asyncio
    async def test_service_uses_hash(self):
        """The hash service returns hash_embedding output."""
        service = HashEmbeddingService()

        assert await service.generate_embedding("Serie A") == hash_embedding("Serie A")


class TestOllamaEmbeddingService:
    """Ollama /api/embeddings responses."""

    @staticmethod
    def _client(response: httpx.Response | None = None, error: Exception | None = None) -> MagicMock:
        client = MagicMock()
        client.post = AsyncMock(return_value=response, side_effect=error)
        return client

    @pytest.mark.asyncio
    @patch("matchlens.vector.embeddings.get_http_client")
    async def test_vector_returned(self, mock_get_client: MagicMock):
        """A vector of the configured width is passed through."""
        vector = [0.01] * EMBEDDING_DIM
        mock_get_client.return_value = self._client(httpx.Response(200, json={"embedding": vector}))
        service = OllamaEmbeddingService(endpoint="http://ollama:11434/", model="nomic-embed-text")

        assert await service.generate_embedding("Arsenal FC") == vector
        call = mock_get_client.return_value.post.await_args
        assert call.args[0] == "http://ollama:11434/api/embeddings"
        assert call.kwargs["json"] == {"model": "nomic-embed-text", "prompt": "Arsenal FC"}

    @pytest.mark.asyncio
    @patch("matchlens.vector.embeddings.get_http_client")
    async def test_wrong_width_discarded(self, mock_get_client: MagicMock):
        """A model producing another dimensionality cannot fill the vector columns."""
        mock_get_client.return_value = self._client(httpx.Response(200, json={"embedding": [0.1] * 384}))

        assert await OllamaEmbeddingService().generate_embedding("Arsenal FC") is None

    @pytest.mark.asyncio
    @patch("matchlens.vector.embeddings.get_http_client")
    async def test_transport_error(self, mock_get_client: MagicMock):
        """Connection failures yield no embedding."""
        mock_get_client.return_value = self._client(error=httpx.ConnectError("refused"))

        assert await OllamaEmbeddingService().generate_embedding("Arsenal FC") is None


class TestComputeSimilarity:
    """Cosine similarity."""

    def test_identical_vectors(self):
        """A vector is fully similar to itself."""
        vector = hash_embedding("Ligue 1")
        assert compute_similarity(vector, vector) == pytest.approx(1.0)

    def test_zero_vector(self):
        """A zero vector has similarity 0."""
        assert compute_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_orthogonal(self):
        """Orthogonal vectors have similarity 0."""
        assert compute_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)


class TestDescriptions:
    """Texts embedded for stored entities."""

    def test_competition(self):
        """Competition descriptions include area and type."""
        assert describe_competition("Premier League", "England", "LEAGUE") == (
            "Football competition: Premier League in England, type: LEAGUE"
        )

    def test_competition_minimal(self):
        """A competition with only a name is still described."""
        assert describe_competition("Premier League") == "Football competition: Premier League"

    def test_season_with_winner(self):
        """Season descriptions mention the winner."""
        text = describe_season("Premier League", date(2023, 8, 11), date(2024, 5, 19), "Manchester City FC")
        assert text == "Premier League season from 2023-08-11 to 2024-05-19, won by Manchester City FC"

    def test_team(self):
        """Team descriptions include the optional details."""
        text = describe_team("Arsenal FC", "England", 1886, "Emirates Stadium", "Red / White")
        assert text == (
            "Football team: Arsenal FC from England, founded in 1886, "
            "plays at Emirates Stadium, colors: Red / White"
        )
