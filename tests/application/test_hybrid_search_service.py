"""
Test suite for HybridSearchService.

Tests fusion of the full-text and vector rankings, per-side degradation,
filters, limits and chunk hit collapsing. Work notes live in SQLite and
are embedded with a deterministic provider into an in-memory FAISS index,
so a query equal to a note's full text is its nearest vector.

System role: Verification of query-side hybrid retrieval
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from worknote.application.services.hybrid_search_service import (
    HybridSearchService,
    collapse_chunk_hits,
)
from worknote.application.services.ingestion_service import IngestionService
from worknote.boundary.fts.sql_full_text_index import SQLFullTextIndex
from worknote.boundary.vdb.vector_schemas import VectorHit
from worknote.models.chunk import ChunkScope
from worknote.models.search import SearchFilters, SearchSource


@pytest_asyncio.fixture
async def indexed_notes(
    test_async_db: AsyncSession, work_note_factory, chunker, embedding_provider, faiss_index
) -> None:
    """Two work notes, both embedded."""
    await work_note_factory(test_async_db, "WORK-1", "Budget review", "alpha plan", category="finance")
    await work_note_factory(test_async_db, "WORK-2", "alpha", "", category="eng")
    ingestion = IngestionService(test_async_db, chunker, embedding_provider, faiss_index)
    result = await ingestion.reindex_all()
    assert result.succeeded == 2


@pytest.fixture
def search_service(test_async_db: AsyncSession, faiss_index, embedding_provider) -> HybridSearchService:
    """Provide HybridSearchService over SQLite full text and FAISS."""
    return HybridSearchService(
        db=test_async_db,
        full_text_index=SQLFullTextIndex(test_async_db),
        vector_index=faiss_index,
        embedding_provider=embedding_provider,
    )


class TestCollapseChunkHits:
    """Test suite for collapse_chunk_hits()."""

    def test_collapse_should_keep_best_chunk_per_entity(self) -> None:
        # Arrange
        hits = [
            VectorHit(chunk_id="WORK-1#chunk2", score=0.1),
            VectorHit(chunk_id="WORK-1#chunk0", score=0.2),
            VectorHit(chunk_id="not-a-chunk-id", score=0.3),
            VectorHit(chunk_id="WORK-2#chunk0", score=0.4),
        ]

        # Act
        ranked = collapse_chunk_hits(hits)

        # Assert
        assert [(hit.id, hit.rank) for hit in ranked] == [("WORK-1", 1), ("WORK-2", 2)]
        assert ranked[0].score == pytest.approx(0.1)


class TestHybridSearch:
    """Test suite for HybridSearchService.search()."""

    @pytest.mark.asyncio
    async def test_search_should_fuse_both_rankings(
        self, indexed_notes, search_service: HybridSearchService
    ) -> None:
        """Test notes found by both retrievers are HYBRID and ordered by fused score."""
        # Act
        response = await search_service.search("alpha")

        # Assert
        assert [item.id for item in response.items] == ["WORK-2", "WORK-1"]
        assert all(item.source == SearchSource.HYBRID for item in response.items)
        assert response.items[0].score == pytest.approx(2 / 61)
        assert response.items[0].title == "alpha"
        assert response.items[1].category == "finance"
        assert response.total == 2

    @pytest.mark.asyncio
    async def test_search_should_honour_limit(
        self, indexed_notes, search_service: HybridSearchService
    ) -> None:
        response = await search_service.search("alpha", limit=1)

        assert [item.id for item in response.items] == ["WORK-2"]

    @pytest.mark.asyncio
    async def test_search_should_apply_category_filter(
        self, indexed_notes, search_service: HybridSearchService
    ) -> None:
        response = await search_service.search("alpha", filters=SearchFilters(category="finance"))

        assert [item.id for item in response.items] == ["WORK-1"]
        assert response.items[0].source == SearchSource.HYBRID

    @pytest.mark.asyncio
    async def test_search_with_non_work_scope_should_return_nothing(
        self, indexed_notes, search_service: HybridSearchService
    ) -> None:
        response = await search_service.search("alpha", filters=SearchFilters(scope=ChunkScope.PROJECT))

        assert response.items == []

    @pytest.mark.asyncio
    async def test_full_text_failure_should_degrade_to_semantic_only(
        self, indexed_notes, test_async_db: AsyncSession, faiss_index, embedding_provider
    ) -> None:
        # Arrange
        broken_full_text = AsyncMock()
        broken_full_text.search = AsyncMock(side_effect=RuntimeError("tsvector missing"))
        service = HybridSearchService(test_async_db, broken_full_text, faiss_index, embedding_provider)

        # Act
        response = await service.search("alpha")

        # Assert
        assert response.items[0].id == "WORK-2"
        assert all(item.source == SearchSource.SEMANTIC for item in response.items)

    @pytest.mark.asyncio
    async def test_vector_failure_should_degrade_to_lexical_only(
        self, indexed_notes, test_async_db: AsyncSession, faiss_index, failing_embedding_provider
    ) -> None:
        # Arrange
        service = HybridSearchService(
            test_async_db, SQLFullTextIndex(test_async_db), faiss_index, failing_embedding_provider
        )

        # Act
        response = await service.search("alpha")

        # Assert
        assert [item.id for item in response.items] == ["WORK-2", "WORK-1"]
        assert all(item.source == SearchSource.LEXICAL for item in response.items)
        assert response.items[0].score == pytest.approx(1 / 61)

    @pytest.mark.asyncio
    async def test_search_without_matches_should_return_empty_response(
        self, test_async_db: AsyncSession, search_service: HybridSearchService
    ) -> None:
        response = await search_service.search("nothing indexed")

        assert response.items == []
        assert response.total == 0
