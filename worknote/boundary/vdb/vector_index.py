"""
Vector index contract.

Every backend stores chunk vectors keyed by chunk id and supports an
entity scan so stale chunks can be found after re-chunking.

Dependencies: worknote.boundary.vdb.vector_schemas
System role: Vector store boundary interface
"""

from typing import Protocol, Sequence, runtime_checkable

from worknote.boundary.vdb.vector_schemas import VectorEntry, VectorHit


@runtime_checkable
class VectorIndex(Protocol):
    """Async vector index used by ingestion and hybrid search."""

    async def upsert(self, entries: Sequence[VectorEntry]) -> None:
        """Insert or overwrite vectors by chunk id."""
        ...

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: dict[str, str] | None = None,
    ) -> list[VectorHit]:
        """Nearest chunks to a query vector, best first."""
        ...

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        """Delete vectors by chunk id; unknown ids are ignored."""
        ...

    async def query_by_entity_prefix(self, entity_id: str) -> list[str]:
        """Chunk ids currently stored for an entity."""
        ...
