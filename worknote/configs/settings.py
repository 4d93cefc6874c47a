"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from worknote.configs.base import BaseSettings
from worknote.configs.chunking import ChunkingSettings
from worknote.configs.database import DatabaseSettings
from worknote.configs.embedding import EmbeddingSettings
from worknote.configs.retry_queue import RetryQueueSettings
from worknote.configs.search import SearchSettings
from worknote.configs.vector_store import VectorStoreSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    vector_store: VectorStoreSettings = VectorStoreSettings()
    embedding: EmbeddingSettings = EmbeddingSettings()
    chunking: ChunkingSettings = ChunkingSettings()
    retry_queue: RetryQueueSettings = RetryQueueSettings()
    search: SearchSettings = SearchSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from worknote.configs import get_settings
        settings = get_settings()
    """
    return Settings()
