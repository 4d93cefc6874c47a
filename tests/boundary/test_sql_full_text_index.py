"""
Test suite for SQLFullTextIndex on SQLite.

System role: Verification of the lexical half of hybrid search
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from worknote.boundary.fts.sql_full_text_index import SQLFullTextIndex
from worknote.models.chunk import ChunkScope
from worknote.models.search import SearchFilters


class TestSQLFullTextIndex:
    """Test suite for SQLFullTextIndex.search()."""

    @pytest.mark.asyncio
    async def test_title_matches_should_rank_first(
        self, test_async_db: AsyncSession, work_note_factory
    ) -> None:
        # Arrange
        await work_note_factory(test_async_db, "WORK-1", "Weekly notes", "deploy pipeline fixed")
        await work_note_factory(test_async_db, "WORK-2", "Deploy checklist", "steps")
        await work_note_factory(test_async_db, "WORK-3", "Lunch", "nothing relevant")

        # Act
        hits = await SQLFullTextIndex(test_async_db).search("deploy", limit=10)

        # Assert
        assert [(hit.id, hit.rank) for hit in hits] == [("WORK-2", 1), ("WORK-1", 2)]

    @pytest.mark.asyncio
    async def test_every_term_must_match(self, test_async_db: AsyncSession, work_note_factory) -> None:
        await work_note_factory(test_async_db, "WORK-1", "Deploy", "pipeline")
        await work_note_factory(test_async_db, "WORK-2", "Deploy", "rollback")

        hits = await SQLFullTextIndex(test_async_db).search("deploy pipeline", limit=10)

        assert [hit.id for hit in hits] == ["WORK-1"]

    @pytest.mark.asyncio
    async def test_equal_scores_should_prefer_recent_updates(
        self, test_async_db: AsyncSession, work_note_factory
    ) -> None:
        now = datetime(2026, 4, 1, tzinfo=timezone.utc)
        await work_note_factory(test_async_db, "WORK-1", "Deploy", "", updated_at=now - timedelta(days=1))
        await work_note_factory(test_async_db, "WORK-2", "Deploy", "", updated_at=now)

        hits = await SQLFullTextIndex(test_async_db).search("deploy", limit=10)

        assert [hit.id for hit in hits] == ["WORK-2", "WORK-1"]

    @pytest.mark.asyncio
    async def test_filters_and_scope(self, test_async_db: AsyncSession, work_note_factory) -> None:
        await work_note_factory(test_async_db, "WORK-1", "Deploy", "", project_id="PROJ-1")
        await work_note_factory(test_async_db, "WORK-2", "Deploy", "", project_id="PROJ-2")
        index = SQLFullTextIndex(test_async_db)

        assert [hit.id for hit in await index.search("deploy", 10, SearchFilters(project_id="PROJ-2"))] == [
            "WORK-2"
        ]
        assert await index.search("deploy", 10, SearchFilters(scope=ChunkScope.PERSON)) == []

    @pytest.mark.asyncio
    async def test_wildcards_should_be_matched_literally(
        self, test_async_db: AsyncSession, work_note_factory
    ) -> None:
        await work_note_factory(test_async_db, "WORK-1", "100% done", "")
        await work_note_factory(test_async_db, "WORK-2", "1000 done", "")

        hits = await SQLFullTextIndex(test_async_db).search("100%", limit=10)

        assert [hit.id for hit in hits] == ["WORK-1"]

    @pytest.mark.asyncio
    async def test_blank_query_should_return_nothing(self, test_async_db: AsyncSession) -> None:
        assert await SQLFullTextIndex(test_async_db).search("   ", limit=10) == []
