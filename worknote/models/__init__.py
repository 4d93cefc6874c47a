"""Domain models and API schemas."""

from worknote.models.chunk import Chunk, ChunkMetadata, ChunkScope
from worknote.models.search import (
    MergedResult,
    RankedHit,
    SearchFilters,
    SearchResponse,
    SearchResultItem,
    SearchSource,
)

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "ChunkScope",
    "MergedResult",
    "RankedHit",
    "SearchFilters",
    "SearchResponse",
    "SearchResultItem",
    "SearchSource",
]
