"""
Reciprocal Rank Fusion.

Fuses the full-text and vector rankings into a single relevance-ordered
list. Only ranks matter; raw index scores are ignored.

Dependencies: worknote.models.search
System role: Ranking stage of hybrid search
"""

from collections import defaultdict
from datetime import datetime
from typing import Mapping, Sequence

from worknote.models.search import MergedResult, RankedHit, SearchSource

DEFAULT_RRF_K = 60


class ReciprocalRankFusion:
    """
    Reciprocal Rank Fusion over two ranked lists.

    score(id) = sum over lists containing id of 1 / (k + rank)

    Results are ordered by score descending. Equal scores are broken by the
    most recent updated_at (when supplied) and then by id ascending, so the
    output is a pure function of the inputs.
    """

    def __init__(self, k: int = DEFAULT_RRF_K) -> None:
        if k <= 0:
            raise ValueError("k must be positive")
        self.k = k

    def merge(
        self,
        full_text_hits: Sequence[RankedHit],
        vector_hits: Sequence[RankedHit],
        updated_at: Mapping[str, datetime] | None = None,
    ) -> list[MergedResult]:
        """
        Fuse two rankings.

        Args:
            full_text_hits: Lexical ranking (ranks start at 1)
            vector_hits: Semantic ranking (ranks start at 1)
            updated_at: Optional recency per id used only to break ties

        Returns:
            list[MergedResult]: Union of ids, highest fused score first
        """
        scores: dict[str, float] = defaultdict(float)
        sources: dict[str, set[SearchSource]] = defaultdict(set)

        for source, hits in (
            (SearchSource.LEXICAL, full_text_hits),
            (SearchSource.SEMANTIC, vector_hits),
        ):
            for hit in hits:
                scores[hit.id] += 1.0 / (self.k + hit.rank)
                sources[hit.id].add(source)

        recency = updated_at or {}

        def _recency_key(item_id: str) -> float:
            value = recency.get(item_id)
            # Most recent first; ids without a timestamp sort after dated ones
            return -value.timestamp() if value is not None else float("inf")

        ordered = sorted(
            scores,
            key=lambda item_id: (-scores[item_id], _recency_key(item_id), item_id),
        )
        return [
            MergedResult(id=item_id, score=scores[item_id], sources=frozenset(sources[item_id]))
            for item_id in ordered
        ]
