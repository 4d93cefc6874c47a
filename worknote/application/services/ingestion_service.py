"""
Ingestion orchestrator.

Keeps the vector index consistent with entity content:
chunk -> embed -> upsert -> delete stale chunk ids. The write-path entry
points (on_create_or_update, on_delete) never raise; a failure becomes a
retry queue item and the entity write proceeds. The raising forms
(index_entity, remove_entity) are used by the retry sweep and by
operator reindexing.

Dependencies: worknote.core, worknote.boundary, worknote.application.services
System role: Embedding pipeline orchestration
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from worknote.application.services.content_source import (
    EntityContentSource,
    WorkNoteContentSource,
    work_note_content,
)
from worknote.application.services.retry_queue_service import RetryQueueService
from worknote.boundary.db.base import utc_now
from worknote.boundary.db.CRUD.work_note_crud import work_note_crud
from worknote.boundary.db.models.retry_queue_model import RetryOperationType
from worknote.boundary.embeddings.provider import EmbeddingProvider
from worknote.boundary.vdb.vector_index import VectorIndex
from worknote.boundary.vdb.vector_schemas import VectorEntry
from worknote.core.chunker import TextChunker
from worknote.core.exceptions import EntityNotFoundError
from worknote.models.chunk import ChunkMetadata
from worknote.models.embedding_failure import EmbeddingStats, ReindexResult
from worknote.observability.log_utils import log_exception_with_context, safe_log_value

logger = logging.getLogger(__name__)


class IngestionService:
    """
    Ingestion orchestrator.

    Wires TextChunker, EmbeddingProvider and VectorIndex together and
    degrades failures into the retry queue.
    """

    def __init__(
        self,
        db: AsyncSession,
        chunker: TextChunker,
        embedding_provider: EmbeddingProvider,
        vector_index: VectorIndex,
        retry_service: RetryQueueService | None = None,
        content_source: EntityContentSource | None = None,
    ) -> None:
        """
        Initialize ingestion service.

        Args:
            db: AsyncSession shared by the retry queue and content source
            chunker: Sliding window chunker
            embedding_provider: Timeout-bounded embedding provider
            vector_index: Vector index backend
            retry_service: Retry queue (created on db if None)
            content_source: Entity content lookup (work notes if None)
        """
        self.db = db
        self.chunker = chunker
        self.embedding_provider = embedding_provider
        self.vector_index = vector_index
        self.retry_service = retry_service or RetryQueueService(db)
        self.content_source = content_source or WorkNoteContentSource(db)

    async def index_entity(
        self,
        entity_id: str,
        title: str,
        text: str,
        metadata: ChunkMetadata,
    ) -> list[str]:
        """
        Replace an entity's vectors with freshly embedded chunks.

        New vectors are upserted before stale ones are deleted, so searches
        never see the entity without vectors.

        Args:
            entity_id: Entity id
            title: Entity title
            text: Entity body
            metadata: Filter keys copied onto every chunk

        Returns:
            list[str]: Chunk ids now stored for the entity

        Raises:
            EmbeddingError: Provider failure (transient or permanent)
            VectorStoreError: Index failure
        """
        chunks = self.chunker.chunk(entity_id, title, text, metadata)
        vectors = await self.embedding_provider.embed_batch([chunk.text for chunk in chunks])
        entries = [VectorEntry.from_chunk(chunk, vector) for chunk, vector in zip(chunks, vectors)]
        await self.vector_index.upsert(entries)

        new_ids = [chunk.chunk_id for chunk in chunks]
        keep = set(new_ids)
        existing = await self.vector_index.query_by_entity_prefix(entity_id)
        stale = [chunk_id for chunk_id in existing if chunk_id not in keep]
        if stale:
            await self.vector_index.delete_by_ids(stale)

        logger.info(
            f"{__name__}:index_entity - Indexed entity",
            extra={
                "entity_id": entity_id,
                "chunk_count": len(new_ids),
                "stale_deleted": len(stale),
            },
        )
        return new_ids

    async def remove_entity(self, entity_id: str) -> int:
        """
        Delete every vector of an entity.

        Returns:
            Number of chunk ids deleted

        Raises:
            VectorStoreError: Index failure
        """
        chunk_ids = await self.vector_index.query_by_entity_prefix(entity_id)
        if chunk_ids:
            await self.vector_index.delete_by_ids(chunk_ids)
        logger.info(
            f"{__name__}:remove_entity - Removed entity vectors",
            extra={"entity_id": entity_id, "chunk_count": len(chunk_ids)},
        )
        return len(chunk_ids)

    async def _degrade_to_retry(
        self,
        entity_id: str,
        operation: RetryOperationType,
        error: Exception,
    ) -> None:
        log_exception_with_context(
            logger,
            f"{__name__}:{operation.value} - Indexing failed, queueing retry",
            error,
            entity_id=entity_id,
        )
        try:
            await self.retry_service.enqueue_failure(entity_id, operation, error)
        except Exception as enqueue_error:
            # The entity write still succeeds; reindexing recovers the vectors
            log_exception_with_context(
                logger,
                f"{__name__}:{operation.value} - Could not record retry item",
                enqueue_error,
                entity_id=entity_id,
                original_error=safe_log_value(str(error)),
            )

    async def _commit_own_transaction(self, entity_id: str) -> bool:
        if not self.db.in_transaction():
            return True
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            log_exception_with_context(
                logger,
                f"{__name__}:_commit_own_transaction - Could not commit indexing bookkeeping",
                e,
                entity_id=entity_id,
            )
            return False
        return True

    async def on_create_or_update(
        self,
        entity_id: str,
        title: str,
        text: str,
        metadata: ChunkMetadata,
        operation: RetryOperationType = RetryOperationType.UPDATE,
    ) -> bool:
        """
        Write-path hook after an entity is created or updated.

        Never raises: any failure is logged and converted into a retry item
        for `operation`. The caller's transaction is left alone: the
        embedded_at stamp and the retry item are written in SAVEPOINTs and
        committed here only if the hook opened the transaction itself.

        Returns:
            True if the entity was indexed, False if a retry was queued
        """
        owns_transaction = not self.db.in_transaction()
        try:
            await self.index_entity(entity_id, title, text, metadata)
            async with self.db.begin_nested():
                await self.content_source.mark_embedded(entity_id, utc_now())
            indexed = True
        except Exception as e:
            await self._degrade_to_retry(entity_id, operation, e)
            indexed = False

        if owns_transaction:
            indexed = await self._commit_own_transaction(entity_id) and indexed
        return indexed

    async def on_delete(self, entity_id: str) -> bool:
        """
        Write-path hook after an entity is deleted.

        Never raises: a failure becomes a `delete` retry item. The caller's
        transaction is never committed or rolled back here.

        Returns:
            True if the vectors were removed, False if a retry was queued
        """
        owns_transaction = not self.db.in_transaction()
        try:
            await self.remove_entity(entity_id)
            removed = True
        except Exception as e:
            await self._degrade_to_retry(entity_id, RetryOperationType.DELETE, e)
            removed = False

        if owns_transaction:
            removed = await self._commit_own_transaction(entity_id) and removed
        return removed

    async def reindex_one(self, entity_id: str) -> list[str]:
        """
        Re-embed a single entity from its stored content.

        Returns:
            list[str]: Chunk ids now stored for the entity

        Raises:
            EntityNotFoundError: No such entity
            EmbeddingError / VectorStoreError: Indexing failure
        """
        content = await self.content_source.load(entity_id)
        if content is None:
            raise EntityNotFoundError(entity_id)
        chunk_ids = await self.index_entity(
            content.entity_id, content.title, content.text, content.metadata
        )
        await self.content_source.mark_embedded(entity_id, utc_now())
        await self.db.commit()
        return chunk_ids

    async def reindex_all(self, batch_size: int = 10, only_pending: bool = False) -> ReindexResult:
        """
        Re-embed every work note (or only those never embedded).

        Walks work notes in id order with keyset pagination. Failures are
        collected per note and do not stop the run.

        Args:
            batch_size: Notes loaded per batch
            only_pending: Skip notes that already have embedded_at

        Returns:
            ReindexResult: Totals and per-note errors
        """
        result = ReindexResult()
        last_id: str | None = None

        while True:
            batch = await work_note_crud.get_batch_after(
                self.db, last_id, batch_size, only_pending=only_pending
            )
            if not batch:
                break
            last_id = batch[-1].work_id
            contents = [work_note_content(note) for note in batch]

            for content in contents:
                result.total += 1
                result.processed += 1
                try:
                    await self.index_entity(
                        content.entity_id, content.title, content.text, content.metadata
                    )
                    await work_note_crud.mark_embedded(self.db, content.entity_id, utc_now())
                    await self.db.commit()
                    result.succeeded += 1
                except Exception as e:
                    await self.db.rollback()
                    result.failed += 1
                    result.errors.append({"entityId": content.entity_id, "error": str(e)})
                    log_exception_with_context(
                        logger,
                        f"{__name__}:reindex_all - Failed to reindex entity",
                        e,
                        entity_id=content.entity_id,
                    )

            if len(batch) < batch_size:
                break

        logger.info(
            f"{__name__}:reindex_all - Reindex finished",
            extra=result.model_dump(exclude={"errors"}),
        )
        return result

    async def embedding_stats(self) -> EmbeddingStats:
        """Embedding coverage of work notes."""
        total = await work_note_crud.count(self.db)
        embedded = await work_note_crud.count_embedded(self.db)
        return EmbeddingStats(total=total, embedded=embedded, pending=total - embedded)
