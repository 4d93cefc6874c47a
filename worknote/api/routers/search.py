"""
Search API endpoints.

Routes: GET /search

Dependencies: worknote.application.services, worknote.api.deps
System role: Hybrid search HTTP API
"""

from fastapi import APIRouter, Depends, Query

from worknote.api.deps import get_hybrid_search_service
from worknote.application.services import HybridSearchService
from worknote.models.chunk import ChunkScope
from worknote.models.search import SearchFilters, SearchResponse

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search(
    q: str = Query(..., min_length=1, description="Search query"),
    limit: int | None = Query(None, ge=1, le=100),
    scope: ChunkScope | None = Query(None),
    project_id: str | None = Query(None),
    category: str | None = Query(None),
    search_service: HybridSearchService = Depends(get_hybrid_search_service),
) -> SearchResponse:
    """
    Hybrid search over work notes.

    Full-text and vector rankings are fused with Reciprocal Rank Fusion;
    each result reports whether it came from LEXICAL, SEMANTIC or HYBRID
    retrieval.
    """
    filters = SearchFilters(scope=scope, project_id=project_id, category=category)
    return await search_service.search(q, filters=filters, limit=limit)
