"""
Test suite for FAISSVectorIndex.

System role: Verification of the local vector index
"""

import pytest

from worknote.boundary.vdb.faiss_vector_index import FAISSVectorIndex
from worknote.boundary.vdb.vector_schemas import VectorEntry
from worknote.core.exceptions import VectorStoreError


def entry(chunk_id: str, vector: list[float], **metadata: str) -> VectorEntry:
    return VectorEntry(chunk_id=chunk_id, vector=vector, text=chunk_id, metadata={"chunk_id": chunk_id, **metadata})


@pytest.fixture
def index() -> FAISSVectorIndex:
    """Four-dimensional in-memory index."""
    return FAISSVectorIndex(dimension=4)


class TestFAISSVectorIndex:
    """Test suite for FAISSVectorIndex operations."""

    @pytest.mark.asyncio
    async def test_query_should_return_nearest_first(self, index: FAISSVectorIndex) -> None:
        # Arrange
        await index.upsert(
            [
                entry("A#chunk0", [1.0, 0.0, 0.0, 0.0]),
                entry("B#chunk0", [0.0, 1.0, 0.0, 0.0]),
            ]
        )

        # Act
        hits = await index.query([0.9, 0.1, 0.0, 0.0], top_k=2)

        # Assert
        assert [hit.chunk_id for hit in hits] == ["A#chunk0", "B#chunk0"]

    @pytest.mark.asyncio
    async def test_upsert_should_overwrite_existing_ids(self, index: FAISSVectorIndex) -> None:
        # Arrange
        await index.upsert([entry("A#chunk0", [1.0, 0.0, 0.0, 0.0])])

        # Act
        await index.upsert([entry("A#chunk0", [0.0, 0.0, 0.0, 1.0])])
        hits = await index.query([0.0, 0.0, 0.0, 1.0], top_k=5)

        # Assert
        assert [hit.chunk_id for hit in hits] == ["A#chunk0"]
        assert hits[0].score == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_query_should_apply_metadata_filter(self, index: FAISSVectorIndex) -> None:
        await index.upsert(
            [
                entry("A#chunk0", [1.0, 0.0, 0.0, 0.0], category="finance"),
                entry("B#chunk0", [1.0, 0.1, 0.0, 0.0], category="eng"),
            ]
        )

        hits = await index.query([1.0, 0.0, 0.0, 0.0], top_k=5, filter={"category": "eng"})

        assert [hit.chunk_id for hit in hits] == ["B#chunk0"]

    @pytest.mark.asyncio
    async def test_entity_scan_should_match_owner_exactly(self, index: FAISSVectorIndex) -> None:
        """Test prefix scans ignore lookalike ids of other entities."""
        # Arrange
        vector = [1.0, 0.0, 0.0, 0.0]
        await index.upsert(
            [
                entry("A#chunk1", vector),
                entry("A#chunk0", vector),
                entry("A#chunk10", vector),
                entry("A#chunk1#chunk0", vector),
                entry("AB#chunk0", vector),
            ]
        )

        # Act
        chunk_ids = await index.query_by_entity_prefix("A")

        # Assert
        assert chunk_ids == ["A#chunk0", "A#chunk1", "A#chunk10"]

    @pytest.mark.asyncio
    async def test_delete_should_ignore_unknown_ids(self, index: FAISSVectorIndex) -> None:
        await index.upsert([entry("A#chunk0", [1.0, 0.0, 0.0, 0.0])])

        await index.delete_by_ids(["A#chunk0", "missing#chunk0"])

        assert await index.query_by_entity_prefix("A") == []

    @pytest.mark.asyncio
    async def test_wrong_dimension_should_raise(self, index: FAISSVectorIndex) -> None:
        with pytest.raises(VectorStoreError):
            await index.upsert([entry("A#chunk0", [1.0, 0.0])])

    @pytest.mark.asyncio
    async def test_index_should_persist_to_disk(self, tmp_path) -> None:
        # Arrange
        first = FAISSVectorIndex(dimension=4, index_dir=tmp_path)
        await first.upsert([entry("A#chunk0", [1.0, 0.0, 0.0, 0.0])])

        # Act
        reloaded = FAISSVectorIndex(dimension=4, index_dir=tmp_path)

        # Assert
        assert await reloaded.query_by_entity_prefix("A") == ["A#chunk0"]
