"""
Application services.

Exports:
  - IngestionService: Chunk/embed/index orchestration with retry degradation
  - RetryQueueService: Retry / dead-letter state machine
  - HybridSearchService: Lexical + semantic search with RRF
"""

from worknote.application.services.content_source import (
    EntityContent,
    EntityContentSource,
    WorkNoteContentSource,
)
from worknote.application.services.hybrid_search_service import HybridSearchService
from worknote.application.services.ingestion_service import IngestionService
from worknote.application.services.retry_queue_service import RetryQueueService

__all__ = [
    "EntityContent",
    "EntityContentSource",
    "HybridSearchService",
    "IngestionService",
    "RetryQueueService",
    "WorkNoteContentSource",
]
