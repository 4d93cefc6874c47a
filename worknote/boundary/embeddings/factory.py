"""
Embedding provider factory.

Selects the LangChain embeddings backend from EMBEDDING_PROVIDER:
'google' (Gemini, fixed dimension), 'bedrock' (Amazon Titan) or 'fake'
(deterministic hash vectors for local development and tests).

Dependencies: langchain_google_genai, langchain_community, langchain_core, dotenv
System role: Embedding provider instantiation and selection
"""

import logging

from dotenv import load_dotenv
from langchain_core.embeddings import DeterministicFakeEmbedding, Embeddings

from worknote.boundary.embeddings.provider import LangChainEmbeddingProvider
from worknote.configs.embedding import EmbeddingSettings

logger = logging.getLogger(__name__)

# Provider SDKs read credentials (GOOGLE_API_KEY, AWS_*) from os.environ
load_dotenv()


def build_langchain_embeddings(settings: EmbeddingSettings) -> Embeddings:
    """
    Build the LangChain embeddings model for the configured provider.

    Args:
        settings: Embedding settings

    Returns:
        Embeddings: LangChain embeddings instance

    Raises:
        ValueError: If EMBEDDING_PROVIDER is invalid
    """
    provider = settings.provider.lower()

    if provider == "google":
        from worknote.boundary.embeddings.embeddings_wrapper import FixedDimensionEmbeddings

        return FixedDimensionEmbeddings(
            model=settings.model,
            output_dimensionality=settings.dimension,
        )

    if provider == "bedrock":
        from langchain_community.embeddings import BedrockEmbeddings

        return BedrockEmbeddings(
            model_id=settings.model,
            region_name=settings.aws_region,
        )

    if provider == "fake":
        return DeterministicFakeEmbedding(size=settings.dimension)

    raise ValueError(
        f"Invalid EMBEDDING_PROVIDER: {settings.provider}. "
        f"Must be 'google', 'bedrock' or 'fake'."
    )


def get_embedding_provider(settings: EmbeddingSettings) -> LangChainEmbeddingProvider:
    """
    Factory function to get the embedding provider from configuration.

    Args:
        settings: Embedding settings

    Returns:
        LangChainEmbeddingProvider: Timeout-bounded provider
    """
    logger.info(
        f"{__name__}:get_embedding_provider - Creating '{settings.provider}' embeddings",
        extra={"model": settings.model, "dimension": settings.dimension},
    )
    return LangChainEmbeddingProvider(
        embeddings=build_langchain_embeddings(settings),
        timeout_seconds=settings.timeout_seconds,
        dimension=settings.dimension,
        batch_size=settings.batch_size,
    )
