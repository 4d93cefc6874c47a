"""
Work note CRUD operations.

Read paths used by indexing, reindexing and search result decoration,
plus the embedded_at stamp written after a successful index run.

Dependencies: sqlalchemy, worknote.boundary.db.models
System role: Work note content access for the retrieval pipeline
"""

from datetime import datetime
from typing import Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from worknote.boundary.db.CRUD.base_crud import BaseCRUD
from worknote.boundary.db.models.work_note_model import WorkNoteModel


class WorkNoteCRUD(BaseCRUD[WorkNoteModel]):
    """CRUD operations for WorkNoteModel."""

    def __init__(self) -> None:
        """Initialize WorkNoteCRUD with WorkNoteModel."""
        super().__init__(WorkNoteModel)

    async def get_many(
        self,
        session: AsyncSession,
        work_ids: Sequence[str],
    ) -> dict[str, WorkNoteModel]:
        """
        Retrieve several work notes keyed by id; missing ids are omitted.

        Args:
            session: Async database session
            work_ids: Ids to load

        Returns:
            dict mapping work_id to model
        """
        if not work_ids:
            return {}
        stmt = select(WorkNoteModel).where(WorkNoteModel.work_id.in_(list(work_ids)))
        result = await session.execute(stmt)
        return {note.work_id: note for note in result.scalars().all()}

    async def get_batch_after(
        self,
        session: AsyncSession,
        after_work_id: str | None,
        limit: int,
        only_pending: bool = False,
    ) -> Sequence[WorkNoteModel]:
        """
        Keyset pagination over work notes ordered by id.

        Args:
            session: Async database session
            after_work_id: Last id of the previous batch (None for the first)
            limit: Batch size
            only_pending: Restrict to notes never embedded

        Returns:
            Next batch of work notes
        """
        stmt = select(WorkNoteModel).order_by(WorkNoteModel.work_id).limit(limit)
        if after_work_id is not None:
            stmt = stmt.where(WorkNoteModel.work_id > after_work_id)
        if only_pending:
            stmt = stmt.where(WorkNoteModel.embedded_at.is_(None))
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_embedded(self, session: AsyncSession) -> int:
        """Count notes with a successful indexing stamp."""
        stmt = (
            select(func.count())
            .select_from(WorkNoteModel)
            .where(WorkNoteModel.embedded_at.is_not(None))
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def mark_embedded(self, session: AsyncSession, work_id: str, at: datetime) -> bool:
        """
        Stamp embedded_at without touching updated_at.

        Args:
            session: Async database session
            work_id: Work note id
            at: Indexing time

        Returns:
            True if the note exists
        """
        stmt = (
            update(WorkNoteModel)
            .where(WorkNoteModel.work_id == work_id)
            .values(embedded_at=at, updated_at=WorkNoteModel.updated_at)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0


work_note_crud = WorkNoteCRUD()
