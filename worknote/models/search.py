"""
Search domain models and schemas.

Ranked hits produced by the full-text and vector indexes, fused results,
and the search API contract.

Dependencies: pydantic
System role: Hybrid search data structures
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from worknote.models.chunk import ChunkScope


class SearchSource(str, Enum):
    """Which ranked list(s) produced a result."""

    LEXICAL = "LEXICAL"
    SEMANTIC = "SEMANTIC"
    HYBRID = "HYBRID"


class RankedHit(BaseModel):
    """One entry of an index's own ranking."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Entity id (full text) or chunk id (vector)")
    rank: int = Field(ge=1, description="1-based position in the producing index")
    score: float | None = Field(default=None, description="Raw index score, informational only")


class MergedResult(BaseModel):
    """Fused result ordered by descending RRF score."""

    id: str
    score: float
    sources: frozenset[SearchSource] = Field(default_factory=frozenset)

    @property
    def source(self) -> SearchSource:
        """Attribution of the result to lexical, semantic or both lists."""
        if SearchSource.LEXICAL in self.sources and SearchSource.SEMANTIC in self.sources:
            return SearchSource.HYBRID
        if SearchSource.LEXICAL in self.sources:
            return SearchSource.LEXICAL
        return SearchSource.SEMANTIC


class SearchFilters(BaseModel):
    """Optional retrieval filters."""

    scope: ChunkScope | None = None
    project_id: str | None = None
    category: str | None = None

    def to_vector_filter(self) -> dict[str, str]:
        """Metadata filter understood by the vector index."""
        vector_filter: dict[str, str] = {}
        if self.scope:
            vector_filter["scope"] = self.scope.value
        if self.project_id:
            vector_filter["project_id"] = self.project_id
        if self.category:
            vector_filter["category"] = self.category
        return vector_filter


class SearchResultItem(BaseModel):
    """Single hybrid search result."""

    id: str
    title: str | None = None
    category: str | None = None
    score: float
    source: SearchSource
    updated_at: datetime | None = None


class SearchResponse(BaseModel):
    """Response schema for hybrid search."""

    query: str
    items: list[SearchResultItem]
    total: int
