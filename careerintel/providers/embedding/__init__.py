"""Embedding providers.

OpenAIEmbeddingProvider turns enriched record text into the vectors stored
under ``embeddings.<view>`` and compared at semantic search time.
"""

from careerintel.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
