"""
Full-text index contract.

Dependencies: worknote.models.search
System role: Lexical search boundary interface
"""

from typing import Protocol, runtime_checkable

from worknote.models.search import RankedHit, SearchFilters


@runtime_checkable
class FullTextIndex(Protocol):
    """Lexical search returning entity ids ranked 1..n."""

    async def search(
        self,
        query: str,
        limit: int,
        filters: SearchFilters | None = None,
    ) -> list[RankedHit]:
        """Best lexical matches first; ranks start at 1."""
        ...
