"""
Hybrid search service.

Runs full-text and vector retrieval concurrently and fuses the two
rankings with Reciprocal Rank Fusion. Either side failing degrades to an
empty list, so search keeps working while one index is unhealthy.

Dependencies: worknote.core.rank_merger, worknote.boundary, worknote.configs
System role: Query-side orchestration of hybrid retrieval
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from worknote.boundary.db.CRUD.work_note_crud import work_note_crud
from worknote.boundary.embeddings.provider import EmbeddingProvider
from worknote.boundary.fts.full_text_index import FullTextIndex
from worknote.boundary.vdb.vector_index import VectorIndex
from worknote.boundary.vdb.vector_schemas import VectorHit
from worknote.configs.search import SearchSettings
from worknote.core.chunker import parse_chunk_id
from worknote.core.exceptions import ChunkIdFormatError
from worknote.core.rank_merger import ReciprocalRankFusion
from worknote.models.search import RankedHit, SearchFilters, SearchResponse, SearchResultItem
from worknote.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


def collapse_chunk_hits(hits: list[VectorHit]) -> list[RankedHit]:
    """
    Collapse chunk-level vector hits to entity-level ranks.

    Hits arrive best first, so an entity keeps the rank of its best chunk.
    Malformed chunk ids are logged and skipped.

    Args:
        hits: Vector hits, best first

    Returns:
        list[RankedHit]: Entity ids ranked 1..n
    """
    ranked: list[RankedHit] = []
    seen: set[str] = set()
    for hit in hits:
        try:
            entity_id, _ = parse_chunk_id(hit.chunk_id)
        except ChunkIdFormatError as e:
            logger.error(
                f"{__name__}:collapse_chunk_hits - Skipping malformed chunk id",
                extra={"chunk_id": hit.chunk_id, "error_msg": e.message},
            )
            continue
        if entity_id in seen:
            continue
        seen.add(entity_id)
        ranked.append(RankedHit(id=entity_id, rank=len(ranked) + 1, score=hit.score))
    return ranked


class HybridSearchService:
    """
    Hybrid (lexical + semantic) search.

    Each ranked list fetches limit * candidate_multiplier candidates before
    fusion; the fused list is truncated to limit and decorated with titles.
    """

    def __init__(
        self,
        db: AsyncSession,
        full_text_index: FullTextIndex,
        vector_index: VectorIndex,
        embedding_provider: EmbeddingProvider,
        settings: SearchSettings | None = None,
    ) -> None:
        """
        Initialize hybrid search service.

        Args:
            db: AsyncSession used to decorate results
            full_text_index: Lexical index
            vector_index: Vector index
            embedding_provider: Embeds the query for vector search
            settings: RRF constant and limits
        """
        self.db = db
        self.full_text_index = full_text_index
        self.vector_index = vector_index
        self.embedding_provider = embedding_provider
        self.settings = settings or SearchSettings()
        self.fusion = ReciprocalRankFusion(k=self.settings.rrf_k)

    async def _lexical(
        self,
        query: str,
        candidates: int,
        filters: SearchFilters | None,
    ) -> list[RankedHit]:
        try:
            return await self.full_text_index.search(query, candidates, filters)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:search - Full-text search failed, continuing without it",
                e,
            )
            return []

    async def _semantic(
        self,
        query: str,
        candidates: int,
        filters: SearchFilters | None,
    ) -> list[RankedHit]:
        try:
            vector = await self.embedding_provider.embed(query)
            hits = await self.vector_index.query(
                vector,
                top_k=candidates,
                filter=filters.to_vector_filter() if filters else None,
            )
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:search - Vector search failed, continuing without it",
                e,
            )
            return []
        return collapse_chunk_hits(hits)

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        limit: int | None = None,
    ) -> SearchResponse:
        """
        Hybrid search.

        Args:
            query: User query
            filters: Optional scope / project / category filters
            limit: Maximum results (defaults to SEARCH_DEFAULT_LIMIT)

        Returns:
            SearchResponse: Fused results, best first
        """
        limit = limit or self.settings.default_limit
        candidates = limit * self.settings.candidate_multiplier

        lexical, semantic = await asyncio.gather(
            self._lexical(query, candidates, filters),
            self._semantic(query, candidates, filters),
        )

        ids = {hit.id for hit in lexical} | {hit.id for hit in semantic}
        notes = await work_note_crud.get_many(self.db, sorted(ids))
        updated_at = {work_id: note.updated_at for work_id, note in notes.items()}

        merged = self.fusion.merge(lexical, semantic, updated_at=updated_at)[:limit]
        items = []
        for result in merged:
            note = notes.get(result.id)
            items.append(
                SearchResultItem(
                    id=result.id,
                    title=note.title if note else None,
                    category=note.category if note else None,
                    score=result.score,
                    source=result.source,
                    updated_at=note.updated_at if note else None,
                )
            )

        logger.info(
            f"{__name__}:search - Hybrid search complete",
            extra={
                "lexical_hits": len(lexical),
                "semantic_hits": len(semantic),
                "returned": len(items),
            },
        )
        return SearchResponse(query=query, items=items, total=len(items))
