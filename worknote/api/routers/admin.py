"""
Embedding admin API endpoints.

Routes:
  GET  /admin/embedding-failures
  POST /admin/embedding-failures/{item_id}/retry
  POST /admin/reindex/{entity_id}
  POST /admin/reindex-all
  POST /admin/embed-pending
  GET  /admin/embedding-stats

Dependencies: worknote.application.services, worknote.api.deps
System role: Operator HTTP surface for the embedding pipeline
"""

from fastapi import APIRouter, Depends, Query

from worknote.api.deps import get_ingestion_service, get_retry_queue_service
from worknote.api.routers.error_handling import handle_embedding_admin_errors
from worknote.application.services import IngestionService, RetryQueueService
from worknote.models.embedding_failure import (
    EmbeddingFailureListResponse,
    EmbeddingStats,
    ReindexAllResponse,
    ReindexOneResponse,
    RetryResetResponse,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/embedding-failures", response_model=EmbeddingFailureListResponse)
async def list_embedding_failures(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    retry_service: RetryQueueService = Depends(get_retry_queue_service),
) -> EmbeddingFailureListResponse:
    """
    List dead-letter embedding failures, most recent first.

    Args:
        limit: Page size (1-200)
        offset: Items to skip
        retry_service: Injected RetryQueueService

    Returns:
        EmbeddingFailureListResponse: Page of items plus the overall total
    """
    return await retry_service.list_dead_letter(limit=limit, offset=offset)


@router.post("/embedding-failures/{item_id}/retry", response_model=RetryResetResponse)
@handle_embedding_admin_errors
async def retry_embedding_failure(
    item_id: str,
    retry_service: RetryQueueService = Depends(get_retry_queue_service),
) -> RetryResetResponse:
    """
    Move a dead-letter item back to pending so the sweep retries it.

    Raises (as structured responses):
        404: Unknown item id
        400: Item is not currently dead_letter
    """
    return await retry_service.reset_to_pending(item_id)


@router.post("/reindex/{entity_id}", response_model=ReindexOneResponse)
@handle_embedding_admin_errors
async def reindex_entity(
    entity_id: str,
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> ReindexOneResponse:
    """Re-embed one work note from its stored content."""
    chunk_ids = await ingestion_service.reindex_one(entity_id)
    return ReindexOneResponse(
        success=True,
        message=f"Work note {entity_id} reindexed",
        chunk_count=len(chunk_ids),
    )


@router.post("/reindex-all", response_model=ReindexAllResponse)
async def reindex_all(
    batch_size: int = Query(10, ge=1, le=100, alias="batchSize"),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> ReindexAllResponse:
    """Re-embed every work note; per-note failures are reported, not raised."""
    result = await ingestion_service.reindex_all(batch_size=batch_size)
    return ReindexAllResponse(success=True, message="Vector store reindex completed", result=result)


@router.post("/embed-pending", response_model=ReindexAllResponse)
async def embed_pending(
    batch_size: int = Query(10, ge=1, le=100, alias="batchSize"),
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> ReindexAllResponse:
    """Embed only work notes that have never been embedded."""
    result = await ingestion_service.reindex_all(batch_size=batch_size, only_pending=True)
    return ReindexAllResponse(success=True, message="Pending work notes embedded", result=result)


@router.get("/embedding-stats", response_model=EmbeddingStats)
async def embedding_stats(
    ingestion_service: IngestionService = Depends(get_ingestion_service),
) -> EmbeddingStats:
    """Embedding coverage: total, embedded and pending work notes."""
    return await ingestion_service.embedding_stats()
