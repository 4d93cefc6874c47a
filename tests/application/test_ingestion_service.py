"""
Test suite for IngestionService.

Tests indexing with stale chunk cleanup, write-path degradation into the
retry queue, entity removal, single and bulk reindexing and embedding
statistics. Uses SQLite, a deterministic embedding provider and an
in-memory FAISS index.

System role: Verification of embedding pipeline orchestration
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from worknote.application.services.ingestion_service import IngestionService
from worknote.application.services.retry_queue_service import RetryQueueService
from worknote.boundary.db.CRUD.retry_queue_crud import retry_queue_crud
from worknote.boundary.db.CRUD.work_note_crud import work_note_crud
from worknote.boundary.db.models.retry_queue_model import RetryOperationType, RetryStatus
from worknote.boundary.db.models.work_note_model import WorkNoteModel
from worknote.core.exceptions import (
    EntityNotFoundError,
    PermanentValidationError,
    TransientProviderError,
    VectorStoreError,
)
from worknote.models.chunk import ChunkMetadata

LONG_BODY = "status update " * 40


@pytest.fixture
def retry_service(test_async_db: AsyncSession, retry_settings) -> RetryQueueService:
    """Provide RetryQueueService on the test database."""
    return RetryQueueService(test_async_db, retry_settings)


@pytest.fixture
def ingestion_service(
    test_async_db: AsyncSession, chunker, embedding_provider, faiss_index, retry_service
) -> IngestionService:
    """Provide IngestionService wired to FAISS and a deterministic provider."""
    return IngestionService(
        db=test_async_db,
        chunker=chunker,
        embedding_provider=embedding_provider,
        vector_index=faiss_index,
        retry_service=retry_service,
    )


@pytest.fixture
def poisoned_provider(embedding_provider):
    """Provider failing transiently for any batch containing 'POISON'."""

    async def embed_batch(texts):
        if any("POISON" in text for text in texts):
            raise TransientProviderError("provider unavailable")
        return await embedding_provider.embed_batch(texts)

    provider = AsyncMock()
    provider.embed = AsyncMock(side_effect=embedding_provider.embed)
    provider.embed_batch = AsyncMock(side_effect=embed_batch)
    return provider


class TestIndexEntity:
    """Test suite for IngestionService.index_entity()."""

    @pytest.mark.asyncio
    async def test_index_entity_should_store_every_chunk(
        self, ingestion_service: IngestionService, faiss_index
    ) -> None:
        # Act
        chunk_ids = await ingestion_service.index_entity("WORK-1", "Standup", LONG_BODY, ChunkMetadata())

        # Assert
        assert len(chunk_ids) > 1
        assert chunk_ids[0] == "WORK-1#chunk0"
        assert await faiss_index.query_by_entity_prefix("WORK-1") == chunk_ids

    @pytest.mark.asyncio
    async def test_reindexing_shorter_content_should_delete_stale_chunks(
        self, ingestion_service: IngestionService, faiss_index
    ) -> None:
        """Test chunks beyond the new chunk count are removed."""
        # Arrange
        await ingestion_service.index_entity("WORK-1", "Standup", LONG_BODY, ChunkMetadata())

        # Act
        chunk_ids = await ingestion_service.index_entity("WORK-1", "Standup", "short", ChunkMetadata())

        # Assert
        assert chunk_ids == ["WORK-1#chunk0"]
        assert await faiss_index.query_by_entity_prefix("WORK-1") == ["WORK-1#chunk0"]

    @pytest.mark.asyncio
    async def test_index_entity_should_not_touch_other_entities(
        self, ingestion_service: IngestionService, faiss_index
    ) -> None:
        await ingestion_service.index_entity("WORK-1", "One", LONG_BODY, ChunkMetadata())
        await ingestion_service.index_entity("WORK-10", "Ten", "short", ChunkMetadata())

        await ingestion_service.index_entity("WORK-1", "One", "short", ChunkMetadata())

        assert await faiss_index.query_by_entity_prefix("WORK-10") == ["WORK-10#chunk0"]


class TestWritePathHooks:
    """Test suite for on_create_or_update() / on_delete()."""

    @pytest.mark.asyncio
    async def test_on_create_should_index_and_stamp_embedded_at(
        self, ingestion_service: IngestionService, test_async_db: AsyncSession, work_note_factory
    ) -> None:
        # Arrange
        await work_note_factory(test_async_db, "WORK-1", "Retro", "went well")

        # Act
        indexed = await ingestion_service.on_create_or_update(
            "WORK-1", "Retro", "went well", ChunkMetadata(), operation=RetryOperationType.CREATE
        )

        # Assert
        assert indexed is True
        note = await work_note_crud.get_by_id(test_async_db, "WORK-1")
        assert note.embedded_at is not None

    @pytest.mark.asyncio
    async def test_on_update_failure_should_queue_retry_instead_of_raising(
        self,
        test_async_db: AsyncSession,
        chunker,
        failing_embedding_provider,
        faiss_index,
        retry_service: RetryQueueService,
    ) -> None:
        """Test a provider outage becomes a pending update retry item."""
        # Arrange
        service = IngestionService(
            test_async_db, chunker, failing_embedding_provider, faiss_index, retry_service
        )

        # Act
        indexed = await service.on_create_or_update("WORK-1", "Retro", "went well", ChunkMetadata())

        # Assert
        assert indexed is False
        item = await retry_queue_crud.get_live(test_async_db, "WORK-1", RetryOperationType.UPDATE)
        assert item is not None
        assert item.status == RetryStatus.PENDING
        assert item.attempt_count == 1

    @pytest.mark.asyncio
    async def test_failure_should_keep_callers_uncommitted_note(
        self,
        test_async_db: AsyncSession,
        chunker,
        failing_embedding_provider,
        faiss_index,
        retry_service: RetryQueueService,
    ) -> None:
        """Test a provider outage neither rolls back nor commits the caller's write."""
        # Arrange
        test_async_db.add(WorkNoteModel(work_id="WORK-9", title="Draft", content_raw="ideas"))
        await test_async_db.flush()
        service = IngestionService(
            test_async_db, chunker, failing_embedding_provider, faiss_index, retry_service
        )

        # Act
        indexed = await service.on_create_or_update(
            "WORK-9", "Draft", "ideas", ChunkMetadata(), operation=RetryOperationType.CREATE
        )

        # Assert
        assert indexed is False
        assert test_async_db.in_transaction() is True
        assert await work_note_crud.get_by_id(test_async_db, "WORK-9") is not None

        await test_async_db.commit()
        assert await work_note_crud.get_by_id(test_async_db, "WORK-9") is not None
        item = await retry_queue_crud.get_live(test_async_db, "WORK-9", RetryOperationType.CREATE)
        assert item is not None
        assert item.status == RetryStatus.PENDING

    @pytest.mark.asyncio
    async def test_success_should_leave_commit_to_caller(
        self, ingestion_service: IngestionService, test_async_db: AsyncSession
    ) -> None:
        """Test the hook does not commit a transaction the caller opened."""
        # Arrange
        test_async_db.add(WorkNoteModel(work_id="WORK-9", title="Draft", content_raw="ideas"))
        await test_async_db.flush()

        # Act
        indexed = await ingestion_service.on_create_or_update("WORK-9", "Draft", "ideas", ChunkMetadata())
        note = await work_note_crud.get_by_id(test_async_db, "WORK-9")

        # Assert
        assert indexed is True
        assert note.embedded_at is not None

        await test_async_db.rollback()
        assert await work_note_crud.get_by_id(test_async_db, "WORK-9") is None

    @pytest.mark.asyncio
    async def test_permanent_failure_should_be_dead_lettered(
        self, test_async_db: AsyncSession, chunker, faiss_index, retry_service: RetryQueueService
    ) -> None:
        # Arrange
        provider = AsyncMock()
        provider.embed_batch = AsyncMock(side_effect=PermanentValidationError("dimension mismatch"))
        service = IngestionService(test_async_db, chunker, provider, faiss_index, retry_service)

        # Act
        indexed = await service.on_create_or_update(
            "WORK-1", "Retro", "went well", ChunkMetadata(), operation=RetryOperationType.CREATE
        )

        # Assert
        assert indexed is False
        items = await retry_queue_crud.get_by_entity(test_async_db, "WORK-1")
        assert [(item.operation_type, item.status) for item in items] == [
            (RetryOperationType.CREATE, RetryStatus.DEAD_LETTER)
        ]

    @pytest.mark.asyncio
    async def test_enqueue_failure_error_should_be_swallowed(
        self, test_async_db: AsyncSession, chunker, failing_embedding_provider, faiss_index
    ) -> None:
        """Test the hook still returns when the retry queue itself is down."""
        # Arrange
        broken_queue = AsyncMock()
        broken_queue.enqueue_failure = AsyncMock(side_effect=RuntimeError("database down"))
        service = IngestionService(
            test_async_db, chunker, failing_embedding_provider, faiss_index, broken_queue
        )

        # Act
        indexed = await service.on_create_or_update("WORK-1", "Retro", "went well", ChunkMetadata())

        # Assert
        assert indexed is False
        broken_queue.enqueue_failure.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_on_delete_should_remove_all_chunks(
        self, ingestion_service: IngestionService, faiss_index
    ) -> None:
        # Arrange
        await ingestion_service.index_entity("WORK-1", "Standup", LONG_BODY, ChunkMetadata())

        # Act
        removed = await ingestion_service.on_delete("WORK-1")

        # Assert
        assert removed is True
        assert await faiss_index.query_by_entity_prefix("WORK-1") == []

    @pytest.mark.asyncio
    async def test_on_delete_failure_should_queue_delete_retry(
        self, test_async_db: AsyncSession, chunker, embedding_provider, retry_service: RetryQueueService
    ) -> None:
        # Arrange
        vector_index = AsyncMock()
        vector_index.query_by_entity_prefix = AsyncMock(
            side_effect=VectorStoreError("throttled", operation="list")
        )
        service = IngestionService(test_async_db, chunker, embedding_provider, vector_index, retry_service)

        # Act
        removed = await service.on_delete("WORK-1")

        # Assert
        assert removed is False
        item = await retry_queue_crud.get_live(test_async_db, "WORK-1", RetryOperationType.DELETE)
        assert item is not None
        assert item.error_details["operation"] == "list"


class TestReindex:
    """Test suite for reindex_one() / reindex_all() / embedding_stats()."""

    @pytest.mark.asyncio
    async def test_reindex_one_should_raise_for_unknown_entity(
        self, ingestion_service: IngestionService
    ) -> None:
        with pytest.raises(EntityNotFoundError):
            await ingestion_service.reindex_one("WORK-404")

    @pytest.mark.asyncio
    async def test_reindex_one_should_index_stored_content(
        self,
        ingestion_service: IngestionService,
        test_async_db: AsyncSession,
        work_note_factory,
        faiss_index,
    ) -> None:
        # Arrange
        await work_note_factory(test_async_db, "WORK-1", "Standup", LONG_BODY, category="meeting")

        # Act
        chunk_ids = await ingestion_service.reindex_one("WORK-1")

        # Assert
        assert await faiss_index.query_by_entity_prefix("WORK-1") == chunk_ids
        stats = await ingestion_service.embedding_stats()
        assert (stats.total, stats.embedded, stats.pending) == (1, 1, 0)

    @pytest.mark.asyncio
    async def test_reindex_all_should_walk_every_batch(
        self, ingestion_service: IngestionService, test_async_db: AsyncSession, work_note_factory
    ) -> None:
        # Arrange
        for index in range(5):
            await work_note_factory(test_async_db, f"WORK-{index}", f"Note {index}", "body")

        # Act
        result = await ingestion_service.reindex_all(batch_size=2)

        # Assert
        assert (result.total, result.processed, result.succeeded, result.failed) == (5, 5, 5, 0)
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_reindex_all_should_collect_failures_and_continue(
        self,
        test_async_db: AsyncSession,
        chunker,
        poisoned_provider,
        faiss_index,
        retry_service: RetryQueueService,
        work_note_factory,
    ) -> None:
        """Test one failing note is reported while the rest are indexed."""
        # Arrange
        service = IngestionService(test_async_db, chunker, poisoned_provider, faiss_index, retry_service)
        await work_note_factory(test_async_db, "WORK-1", "Fine", "body")
        await work_note_factory(test_async_db, "WORK-2", "Broken", "POISON")
        await work_note_factory(test_async_db, "WORK-3", "Fine too", "body")

        # Act
        result = await service.reindex_all(batch_size=10)

        # Assert
        assert (result.total, result.succeeded, result.failed) == (3, 2, 1)
        assert result.errors[0]["entityId"] == "WORK-2"
        assert "provider unavailable" in result.errors[0]["error"]
        stats = await service.embedding_stats()
        assert (stats.embedded, stats.pending) == (2, 1)

    @pytest.mark.asyncio
    async def test_embed_pending_should_skip_already_embedded_notes(
        self, ingestion_service: IngestionService, test_async_db: AsyncSession, work_note_factory
    ) -> None:
        # Arrange
        await work_note_factory(test_async_db, "WORK-1", "First", "body")
        await ingestion_service.reindex_all()
        await work_note_factory(test_async_db, "WORK-2", "Second", "body")

        # Act
        result = await ingestion_service.reindex_all(only_pending=True)

        # Assert
        assert result.total == 1
        assert result.succeeded == 1
