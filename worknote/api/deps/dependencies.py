"""
Dependency injection container.

Factory functions for FastAPI dependencies. Heavy, process-wide objects
(embedding client, vector index, sweeper) live in ServiceCache; services
are built per request on the request's database session.

Dependencies: worknote.configs, worknote.application, worknote.boundary
System role: DI container for service injection
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from worknote.application.services import (
    HybridSearchService,
    IngestionService,
    RetryQueueService,
)
from worknote.boundary.db import get_async_db, get_async_session_factory
from worknote.boundary.fts import SQLFullTextIndex
from worknote.configs import get_settings
from worknote.core.chunker import TextChunker


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self):
        self._chunker = None
        self._embedding_provider = None
        self._vector_index = None
        self._sweeper = None

    @property
    def chunker(self) -> TextChunker:
        """Get cached chunker."""
        if self._chunker is None:
            self._chunker = TextChunker(get_settings().chunking)
        return self._chunker

    @property
    def embedding_provider(self):
        """Get cached embedding provider."""
        if self._embedding_provider is None:
            from worknote.boundary.embeddings import get_embedding_provider

            self._embedding_provider = get_embedding_provider(get_settings().embedding)
        return self._embedding_provider

    @property
    def vector_index(self):
        """Get cached vector index."""
        if self._vector_index is None:
            from worknote.boundary.vdb import get_vector_index

            settings = get_settings()
            self._vector_index = get_vector_index(settings.vector_store, settings.embedding)
        return self._vector_index

    def build_ingestion_service(
        self,
        db: AsyncSession,
        retry_service: RetryQueueService | None = None,
    ) -> IngestionService:
        """Ingestion service on a session, sharing the cached adapters."""
        return IngestionService(
            db=db,
            chunker=self.chunker,
            embedding_provider=self.embedding_provider,
            vector_index=self.vector_index,
            retry_service=retry_service or RetryQueueService(db, get_settings().retry_queue),
        )

    @property
    def sweeper(self):
        """Get cached retry sweeper."""
        if self._sweeper is None:
            from worknote.workers.retry_sweeper import RetrySweeper

            self._sweeper = RetrySweeper(
                session_factory=get_async_session_factory(),
                ingestion_factory=self.build_ingestion_service,
                settings=get_settings().retry_queue,
            )
        return self._sweeper

    def clear(self) -> None:
        """Clear all cached instances."""
        self._chunker = None
        self._embedding_provider = None
        self._vector_index = None
        self._sweeper = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_retry_queue_service(db: AsyncSession = Depends(get_async_db)) -> RetryQueueService:
    """
    Get retry queue service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        RetryQueueService: Retry queue service instance
    """
    return RetryQueueService(db=db, settings=get_settings().retry_queue)


def get_ingestion_service(db: AsyncSession = Depends(get_async_db)) -> IngestionService:
    """
    Get ingestion service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        IngestionService: Ingestion service with cached embedding provider and vector index
    """
    return get_service_cache().build_ingestion_service(db)


def get_hybrid_search_service(db: AsyncSession = Depends(get_async_db)) -> HybridSearchService:
    """
    Get hybrid search service instance.

    Uses the vector index selected via VECTOR_STORE_STORE_TYPE (FAISS for dev, S3 for prod).

    Args:
        db: Async database session (injected via Depends)

    Returns:
        HybridSearchService: Search service over full-text and vector indexes
    """
    cache = get_service_cache()
    return HybridSearchService(
        db=db,
        full_text_index=SQLFullTextIndex(db),
        vector_index=cache.vector_index,
        embedding_provider=cache.embedding_provider,
        settings=get_settings().search,
    )
