"""
SQL full-text index over work notes.

PostgreSQL ranks with ts_rank_cd over a websearch_to_tsquery; other
dialects (SQLite in development and tests) fall back to a term match
where every query term must appear in the title or body and title
matches rank first.

Dependencies: sqlalchemy, worknote.boundary.db.models
System role: Lexical half of hybrid search
"""

import logging

from sqlalchemy import Select, and_, case, func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from worknote.boundary.db.models.work_note_model import WorkNoteModel
from worknote.models.chunk import ChunkScope
from worknote.models.search import RankedHit, SearchFilters

logger = logging.getLogger(__name__)

TS_CONFIG = "simple"


class SQLFullTextIndex:
    """FullTextIndex backed by the work_notes table."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize full-text index.

        Args:
            db: Async database session
        """
        self.db = db

    @staticmethod
    def _apply_filters(stmt: Select, filters: SearchFilters | None) -> Select:
        if filters is None:
            return stmt
        if filters.category:
            stmt = stmt.where(WorkNoteModel.category == filters.category)
        if filters.project_id:
            stmt = stmt.where(WorkNoteModel.project_id == filters.project_id)
        return stmt

    def _postgres_statement(self, query: str, limit: int) -> Select:
        document = func.to_tsvector(
            TS_CONFIG,
            WorkNoteModel.title + literal(" ") + WorkNoteModel.content_raw,
        )
        ts_query = func.websearch_to_tsquery(TS_CONFIG, query)
        rank = func.ts_rank_cd(document, ts_query)
        return (
            select(WorkNoteModel.work_id, rank.label("score"))
            .where(document.op("@@")(ts_query))
            .order_by(rank.desc(), WorkNoteModel.updated_at.desc(), WorkNoteModel.work_id)
            .limit(limit)
        )

    def _portable_statement(self, terms: list[str], limit: int) -> Select:
        title = func.lower(WorkNoteModel.title)
        body = func.lower(WorkNoteModel.content_raw)
        matches_all = and_(
            *[
                or_(title.contains(term, autoescape=True), body.contains(term, autoescape=True))
                for term in terms
            ]
        )
        title_hits = sum(
            (case((title.contains(term, autoescape=True), 1), else_=0) for term in terms),
            literal(0),
        )
        return (
            select(WorkNoteModel.work_id, title_hits.label("score"))
            .where(matches_all)
            .order_by(title_hits.desc(), WorkNoteModel.updated_at.desc(), WorkNoteModel.work_id)
            .limit(limit)
        )

    async def search(
        self,
        query: str,
        limit: int,
        filters: SearchFilters | None = None,
    ) -> list[RankedHit]:
        """
        Lexical search over work note titles and bodies.

        Args:
            query: User query
            limit: Maximum number of hits
            filters: Optional category / project filter

        Returns:
            list[RankedHit]: Work note ids ranked from 1
        """
        terms = [term.lower() for term in query.split() if term.strip()]
        if not terms or limit <= 0:
            return []
        # Only work notes live in this index
        if filters is not None and filters.scope not in (None, ChunkScope.WORK):
            return []

        if self.db.get_bind().dialect.name == "postgresql":
            stmt = self._postgres_statement(query, limit)
        else:
            stmt = self._portable_statement(terms, limit)
        stmt = self._apply_filters(stmt, filters)

        result = await self.db.execute(stmt)
        rows = result.all()
        logger.debug(
            f"{__name__}:search - {len(rows)} lexical hits",
            extra={"term_count": len(terms), "limit": limit},
        )
        return [
            RankedHit(id=work_id, rank=position, score=float(score) if score is not None else None)
            for position, (work_id, score) in enumerate(rows, start=1)
        ]
