"""
Embedding boundary layer.

Exports:
  - EmbeddingProvider: Async embedding protocol
  - LangChainEmbeddingProvider: Timeout-bounded LangChain adapter
  - get_embedding_provider(): Provider factory
"""

from worknote.boundary.embeddings.factory import get_embedding_provider
from worknote.boundary.embeddings.provider import (
    EmbeddingProvider,
    LangChainEmbeddingProvider,
    classify_provider_error,
)

__all__ = [
    "EmbeddingProvider",
    "LangChainEmbeddingProvider",
    "classify_provider_error",
    "get_embedding_provider",
]
