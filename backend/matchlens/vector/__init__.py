"""Vector embeddings for pgvector semantic search.

This module provides embeddings for:
- Teams, competitions and seasons (ingestion)
- Match prediction contexts (similar-match search)
"""

from matchlens.vector.embeddings import (
    EMBEDDING_DIM,
    EmbeddingService,
    HashEmbeddingService,
    OllamaEmbeddingService,
    SentenceTransformerEmbeddingService,
    compute_similarity,
    describe_competition,
    describe_season,
    describe_team,
    get_embedding_service,
    hash_embedding,
)

__all__ = [
    "EMBEDDING_DIM",
    "EmbeddingService",
    "HashEmbeddingService",
    "OllamaEmbeddingService",
    "SentenceTransformerEmbeddingService",
    "compute_similarity",
    "describe_competition",
    "describe_season",
    "describe_team",
    "get_embedding_service",
    "hash_embedding",
]
