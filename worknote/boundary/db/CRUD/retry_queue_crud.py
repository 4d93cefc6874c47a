"""
Embedding retry queue CRUD operations.

Every state transition is a single-row conditional UPDATE so concurrent
sweep workers and operators never clobber each other: a transition
succeeds only if the row is still in the expected state.

Dependencies: sqlalchemy, worknote.boundary.db.models
System role: Retry / dead-letter queue persistence
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from worknote.boundary.db.CRUD.base_crud import BaseCRUD
from worknote.boundary.db.models.retry_queue_model import (
    RetryOperationType,
    RetryQueueItemModel,
    RetryStatus,
)
from worknote.boundary.db.models.work_note_model import WorkNoteModel


class RetryQueueCRUD(BaseCRUD[RetryQueueItemModel]):
    """
    CRUD operations for RetryQueueItemModel.

    Extends BaseCRUD with the queue's conditional transitions, due-item
    selection and the dead-letter listing.
    """

    def __init__(self) -> None:
        """Initialize RetryQueueCRUD with RetryQueueItemModel."""
        super().__init__(RetryQueueItemModel)

    async def _conditional_update(
        self,
        session: AsyncSession,
        id: UUID,
        expected: Sequence[RetryStatus],
        **values: Any,
    ) -> bool:
        stmt = (
            update(RetryQueueItemModel)
            .where(RetryQueueItemModel.id == id)
            .where(RetryQueueItemModel.status.in_(list(expected)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def get_live(
        self,
        session: AsyncSession,
        entity_id: str,
        operation_type: RetryOperationType,
    ) -> RetryQueueItemModel | None:
        """
        Retrieve the non dead-letter item for an entity/operation pair.

        Args:
            session: Async database session
            entity_id: Entity id
            operation_type: Failed operation

        Returns:
            The live item if one exists, None otherwise
        """
        stmt = (
            select(RetryQueueItemModel)
            .where(RetryQueueItemModel.entity_id == entity_id)
            .where(RetryQueueItemModel.operation_type == operation_type)
            .where(RetryQueueItemModel.status != RetryStatus.DEAD_LETTER)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_entity(
        self,
        session: AsyncSession,
        entity_id: str,
    ) -> Sequence[RetryQueueItemModel]:
        """Retrieve every item (any status) recorded for an entity."""
        stmt = (
            select(RetryQueueItemModel)
            .where(RetryQueueItemModel.entity_id == entity_id)
            .order_by(RetryQueueItemModel.created_at, RetryQueueItemModel.id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def try_claim(self, session: AsyncSession, id: UUID) -> bool:
        """
        Move a pending item to retrying.

        Args:
            session: Async database session
            id: Item UUID

        Returns:
            True for exactly one concurrent claimant, False otherwise
        """
        return await self._conditional_update(
            session, id, [RetryStatus.PENDING], status=RetryStatus.RETRYING
        )

    async def update_error(
        self,
        session: AsyncSession,
        id: UUID,
        error_message: str,
        error_details: dict | None,
    ) -> bool:
        """
        Refresh the recorded error of a live item without changing its state.

        Returns:
            True if the item is still live and got updated
        """
        return await self._conditional_update(
            session,
            id,
            [RetryStatus.PENDING, RetryStatus.RETRYING],
            error_message=error_message,
            error_details=error_details,
        )

    async def update_failure(
        self,
        session: AsyncSession,
        id: UUID,
        expected: Sequence[RetryStatus],
        attempt_count: int,
        error_message: str,
        error_details: dict | None,
        next_retry_at: datetime | None,
    ) -> bool:
        """
        Record a failed attempt and make the item pending again.

        Args:
            session: Async database session
            id: Item UUID
            expected: Statuses the item must currently be in
            attempt_count: New attempt count
            error_message: Failure message
            error_details: Failure context
            next_retry_at: Backoff gate

        Returns:
            True if the row was in an expected status and got updated
        """
        return await self._conditional_update(
            session,
            id,
            expected,
            status=RetryStatus.PENDING,
            attempt_count=attempt_count,
            error_message=error_message,
            error_details=error_details,
            next_retry_at=next_retry_at,
        )

    async def mark_dead_letter(
        self,
        session: AsyncSession,
        id: UUID,
        expected: Sequence[RetryStatus],
        error_message: str,
        error_details: dict | None,
        now: datetime,
    ) -> bool:
        """
        Promote an item to dead_letter, stamping dead_letter_at.

        Returns:
            True if the row was in an expected status and got updated
        """
        return await self._conditional_update(
            session,
            id,
            expected,
            status=RetryStatus.DEAD_LETTER,
            error_message=error_message,
            error_details=error_details,
            next_retry_at=None,
            dead_letter_at=now,
        )

    async def reset_dead_letter(self, session: AsyncSession, id: UUID, now: datetime) -> bool:
        """
        Operator reset: dead_letter -> pending, due immediately.

        Clears dead_letter_at and restarts the attempt budget. The last
        error message is kept for reference.

        Returns:
            True if the item was in dead_letter and got reset
        """
        return await self._conditional_update(
            session,
            id,
            [RetryStatus.DEAD_LETTER],
            status=RetryStatus.PENDING,
            attempt_count=0,
            dead_letter_at=None,
            next_retry_at=now,
        )

    async def release_claim(self, session: AsyncSession, id: UUID) -> bool:
        """Return a claimed item to pending without recording an attempt."""
        return await self._conditional_update(
            session, id, [RetryStatus.RETRYING], status=RetryStatus.PENDING
        )

    async def get_retryable(
        self,
        session: AsyncSession,
        now: datetime,
        limit: int,
    ) -> Sequence[RetryQueueItemModel]:
        """
        Retrieve pending items whose backoff has elapsed, oldest due first.

        Args:
            session: Async database session
            now: Current time
            limit: Maximum number of items

        Returns:
            Sequence of due pending items
        """
        due_at = func.coalesce(RetryQueueItemModel.next_retry_at, RetryQueueItemModel.created_at)
        stmt = (
            select(RetryQueueItemModel)
            .where(RetryQueueItemModel.status == RetryStatus.PENDING)
            .where(
                (RetryQueueItemModel.next_retry_at.is_(None))
                | (RetryQueueItemModel.next_retry_at <= now)
            )
            .order_by(due_at, RetryQueueItemModel.created_at, RetryQueueItemModel.id)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def recover_stale_claims(self, session: AsyncSession, cutoff: datetime) -> int:
        """
        Return items stuck in retrying since before cutoff to pending.

        Args:
            session: Async database session
            cutoff: Claims last touched before this time are abandoned

        Returns:
            Number of recovered items
        """
        stmt = (
            update(RetryQueueItemModel)
            .where(RetryQueueItemModel.status == RetryStatus.RETRYING)
            .where(RetryQueueItemModel.updated_at < cutoff)
            .values(status=RetryStatus.PENDING)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def list_dead_letter(
        self,
        session: AsyncSession,
        limit: int,
        offset: int,
    ) -> list[tuple[RetryQueueItemModel, str | None]]:
        """
        Page through dead-letter items with their entity titles.

        Ordered by dead_letter_at descending, then id ascending, so paging
        is stable. Items whose entity is gone have a None title.

        Args:
            session: Async database session
            limit: Page size
            offset: Items to skip

        Returns:
            List of (item, entity_title) tuples
        """
        stmt = (
            select(RetryQueueItemModel, WorkNoteModel.title)
            .outerjoin(WorkNoteModel, WorkNoteModel.work_id == RetryQueueItemModel.entity_id)
            .where(RetryQueueItemModel.status == RetryStatus.DEAD_LETTER)
            .order_by(RetryQueueItemModel.dead_letter_at.desc(), RetryQueueItemModel.id.asc())
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return [(item, title) for item, title in result.all()]

    async def count_by_status(self, session: AsyncSession, status: RetryStatus) -> int:
        """
        Count items in a status.

        Args:
            session: Async database session
            status: Status to count

        Returns:
            Number of matching items
        """
        stmt = (
            select(func.count())
            .select_from(RetryQueueItemModel)
            .where(RetryQueueItemModel.status == status)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())


retry_queue_crud = RetryQueueCRUD()
