"""
Vector database schemas.

Pydantic models for vector operations (entries and query hits).
Used for type-safe vector index interactions.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from pydantic import BaseModel, Field

from worknote.models.chunk import Chunk


class VectorEntry(BaseModel):
    """One chunk vector ready to be upserted."""

    chunk_id: str = Field(description="Deterministic chunk identifier, used as the vector key")
    vector: list[float] = Field(description="Embedding values")
    text: str = Field(default="", description="Chunk text, stored for display")
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Filterable metadata (scope keys, entity_id, chunk_index, chunk_id)",
    )

    @classmethod
    def from_chunk(cls, chunk: Chunk, vector: list[float]) -> "VectorEntry":
        """
        Build an entry from a chunk and its embedding.

        Metadata is the chunk's filter keys extended with entity_id,
        chunk_index and chunk_id so the index can filter by entity.
        """
        metadata = chunk.metadata.to_filterable()
        metadata.update(
            {
                "entity_id": chunk.entity_id,
                "chunk_index": str(chunk.index),
                "chunk_id": chunk.chunk_id,
            }
        )
        return cls(chunk_id=chunk.chunk_id, vector=vector, text=chunk.text, metadata=metadata)


class VectorHit(BaseModel):
    """Single result from vector search, best first."""

    chunk_id: str = Field(description="Chunk identifier")
    score: float = Field(description="Backend similarity or distance score (informational)")
    metadata: dict[str, str] = Field(default_factory=dict, description="Stored metadata")
