"""
Embedding retry queue service.

Owns the retry item state machine:

    pending -> retrying -> (deleted | pending | dead_letter)
    dead_letter -> pending   (operator only)

Each public operation runs in its own transaction and every transition is
a conditional single-row update, so concurrent sweepers, the ingestion
path and operators can share the queue safely.

Dependencies: worknote.boundary.db.CRUD, worknote.configs, sqlalchemy
System role: Retry / dead-letter orchestration
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from worknote.boundary.db.base import utc_now
from worknote.boundary.db.CRUD.retry_queue_crud import retry_queue_crud
from worknote.boundary.db.models.retry_queue_model import (
    RetryOperationType,
    RetryQueueItemModel,
    RetryStatus,
)
from worknote.configs.retry_queue import RetryQueueSettings
from worknote.core.exceptions import (
    ChunkIdFormatError,
    PermanentValidationError,
    RetryItemInvalidStateError,
    RetryItemNotFoundError,
)
from worknote.models.embedding_failure import (
    EmbeddingFailureItem,
    EmbeddingFailureListResponse,
    RetryResetResponse,
)
from worknote.observability.log_utils import truncate_error

logger = logging.getLogger(__name__)

RESET_SUCCESS_MESSAGE = "Embedding retry has been queued"
ALREADY_QUEUED_MESSAGE = "A pending retry already covers this work note; dead-letter item removed"


def is_permanent_failure(error: BaseException) -> bool:
    """Failures that retrying the same input can never fix."""
    return isinstance(error, (PermanentValidationError, ChunkIdFormatError))


def describe_error(error: BaseException) -> tuple[str, dict]:
    """
    Error message and structured details stored on a retry item.

    Args:
        error: Failure to record

    Returns:
        tuple[str, dict]: (message, details)
    """
    details: dict = {
        "error_type": type(error).__name__,
        "retryable": not is_permanent_failure(error),
    }
    extra = getattr(error, "details", None)
    if isinstance(extra, dict):
        details.update({key: str(value) for key, value in extra.items()})
    return truncate_error(error), details


def parse_item_id(item_id: str | uuid.UUID) -> uuid.UUID:
    """
    Coerce an item id from a path parameter.

    Raises:
        RetryItemNotFoundError: The id is not a UUID, so no item can have it
    """
    if isinstance(item_id, uuid.UUID):
        return item_id
    try:
        return uuid.UUID(str(item_id))
    except ValueError as e:
        raise RetryItemNotFoundError(str(item_id)) from e


class RetryQueueService:
    """
    Retry queue orchestrator.

    Wraps RetryQueueCRUD with the retry policy (attempt budget, exponential
    backoff, dead-lettering) and commits each transition.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: RetryQueueSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize retry queue service.

        Args:
            db: AsyncSession for queue persistence
            settings: Retry policy (defaults from environment)
            clock: Source of the current time
        """
        self.db = db
        self.settings = settings or RetryQueueSettings()
        self._clock = clock

    def compute_backoff(self, attempt_count: int) -> timedelta:
        """
        Delay before the next attempt: min(base * 2^(attempt-1), max) seconds.

        Args:
            attempt_count: Failed attempts so far

        Returns:
            timedelta: Backoff delay (zero for attempt_count <= 0)
        """
        if attempt_count <= 0:
            return timedelta(0)
        seconds = self.settings.backoff_base_seconds * (2 ** (attempt_count - 1))
        return timedelta(seconds=min(seconds, self.settings.backoff_max_seconds))

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def enqueue_failure(
        self,
        entity_id: str,
        operation_type: RetryOperationType,
        error: BaseException,
    ) -> RetryQueueItemModel:
        """
        Record a failed index operation.

        A live item for the same (entity, operation) absorbs the failure
        instead of a duplicate being inserted. Permanent failures go straight
        to dead_letter.

        The write happens inside a SAVEPOINT. When the session already has
        a transaction open (the entity write that triggered indexing), the
        item joins it and the caller's commit persists both; otherwise the
        item is committed here.

        Args:
            entity_id: Entity whose indexing failed
            operation_type: create / update / delete
            error: The failure

        Returns:
            RetryQueueItemModel: The item now tracking the failure
        """
        message, details = describe_error(error)
        permanent = is_permanent_failure(error)
        owns_transaction = not self.db.in_transaction()

        try:
            try:
                async with self.db.begin_nested():
                    item = await self._record_failure_for_entity(
                        entity_id, operation_type, message, details, permanent
                    )
            except IntegrityError:
                # A concurrent writer inserted the live item first
                async with self.db.begin_nested():
                    item = await self._record_failure_for_entity(
                        entity_id, operation_type, message, details, permanent
                    )
            if owns_transaction:
                await self.db.commit()
        except Exception:
            if owns_transaction:
                await self.db.rollback()
            raise

        logger.warning(
            f"{__name__}:enqueue_failure - Embedding {operation_type.value} failed, queued as {item.status.value}",
            extra={
                "entity_id": entity_id,
                "operation_type": operation_type.value,
                "retry_item_id": str(item.id),
                "status": item.status.value,
                "error_type": details["error_type"],
            },
        )
        return item

    async def _record_failure_for_entity(
        self,
        entity_id: str,
        operation_type: RetryOperationType,
        message: str,
        details: dict,
        permanent: bool,
    ) -> RetryQueueItemModel:
        now = self._clock()
        live = await retry_queue_crud.get_live(self.db, entity_id, operation_type)

        if live is None:
            return await retry_queue_crud.create(
                self.db,
                entity_id=entity_id,
                operation_type=operation_type,
                attempt_count=1,
                max_attempts=self.settings.max_attempts,
                status=RetryStatus.DEAD_LETTER if permanent else RetryStatus.PENDING,
                error_message=message,
                error_details=details,
                next_retry_at=None if permanent else now,
                dead_letter_at=now if permanent else None,
            )

        if permanent:
            await retry_queue_crud.mark_dead_letter(
                self.db,
                live.id,
                [RetryStatus.PENDING, RetryStatus.RETRYING],
                message,
                details,
                now,
            )
        else:
            await retry_queue_crud.update_error(self.db, live.id, message, details)
        return await retry_queue_crud.get_by_id(self.db, live.id)

    async def list_dead_letter(self, limit: int = 50, offset: int = 0) -> EmbeddingFailureListResponse:
        """
        Page through dead-letter items with their entity titles.

        Args:
            limit: Page size
            offset: Items to skip

        Returns:
            EmbeddingFailureListResponse: Page plus the overall dead-letter count
        """
        rows = await retry_queue_crud.list_dead_letter(self.db, limit=limit, offset=offset)
        total = await retry_queue_crud.count_by_status(self.db, RetryStatus.DEAD_LETTER)
        items = [
            EmbeddingFailureItem(
                id=item.id,
                entity_id=item.entity_id,
                entity_title=title,
                operation_type=item.operation_type.value,
                attempt_count=item.attempt_count,
                error_message=item.error_message,
                created_at=item.created_at,
                updated_at=item.updated_at,
                dead_letter_at=item.dead_letter_at,
            )
            for item, title in rows
        ]
        return EmbeddingFailureListResponse(items=items, total=total)

    async def reset_to_pending(self, item_id: str | uuid.UUID) -> RetryResetResponse:
        """
        Operator retry of a dead-letter item.

        The item becomes pending and due immediately, with dead_letter_at
        cleared and a fresh attempt budget. If a newer failure already has
        a live item for the same entity and operation, that item covers the
        retry: the dead-letter row is removed instead of revived.

        Args:
            item_id: Retry item id

        Returns:
            RetryResetResponse: success, message and the new status

        Raises:
            RetryItemNotFoundError: Unknown id
            RetryItemInvalidStateError: Item is not dead_letter (row untouched)
        """
        item_uuid = parse_item_id(item_id)
        item = await retry_queue_crud.get_by_id(self.db, item_uuid)
        if item is None:
            raise RetryItemNotFoundError(str(item_id))
        if item.status != RetryStatus.DEAD_LETTER:
            raise RetryItemInvalidStateError(
                str(item_id), item.status.value, RetryStatus.DEAD_LETTER.value
            )
        entity_id = item.entity_id
        operation_type = item.operation_type

        live = await retry_queue_crud.get_live(self.db, entity_id, operation_type)
        if live is not None:
            return await self._fold_into_live(item_uuid, live.id, entity_id)

        try:
            reset = await retry_queue_crud.reset_dead_letter(self.db, item_uuid, self._clock())
        except IntegrityError:
            # A live item for the same entity appeared after the lookup
            await self.db.rollback()
            live = await retry_queue_crud.get_live(self.db, entity_id, operation_type)
            if live is None:
                raise
            return await self._fold_into_live(item_uuid, live.id, entity_id)

        if not reset:
            await self.db.rollback()
            current = await retry_queue_crud.get_by_id(self.db, item_uuid)
            if current is None:
                raise RetryItemNotFoundError(str(item_id))
            raise RetryItemInvalidStateError(
                str(item_id), current.status.value, RetryStatus.DEAD_LETTER.value
            )
        await self._commit()

        logger.info(
            f"{__name__}:reset_to_pending - Dead-letter item reset",
            extra={"retry_item_id": str(item_uuid), "entity_id": entity_id},
        )
        return RetryResetResponse(
            success=True,
            message=RESET_SUCCESS_MESSAGE,
            status=RetryStatus.PENDING.value,
        )

    async def _fold_into_live(
        self,
        dead_id: uuid.UUID,
        live_id: uuid.UUID,
        entity_id: str,
    ) -> RetryResetResponse:
        await retry_queue_crud.delete_by_id(self.db, dead_id)
        await self._commit()
        logger.info(
            f"{__name__}:reset_to_pending - Live retry already queued, dead-letter item removed",
            extra={
                "retry_item_id": str(dead_id),
                "live_retry_item_id": str(live_id),
                "entity_id": entity_id,
            },
        )
        return RetryResetResponse(
            success=True,
            message=ALREADY_QUEUED_MESSAGE,
            status=RetryStatus.PENDING.value,
        )

    async def get_item(self, item_id: str | uuid.UUID) -> RetryQueueItemModel | None:
        """Fetch one item by id, None if unknown."""
        try:
            item_uuid = parse_item_id(item_id)
        except RetryItemNotFoundError:
            return None
        return await retry_queue_crud.get_by_id(self.db, item_uuid)

    async def get_retryable(self, limit: int | None = None) -> list[RetryQueueItemModel]:
        """
        Pending items whose backoff has elapsed, oldest due first.

        Args:
            limit: Maximum items (defaults to the sweep batch size)
        """
        items = await retry_queue_crud.get_retryable(
            self.db,
            now=self._clock(),
            limit=limit or self.settings.batch_size,
        )
        return list(items)

    async def try_claim(self, item_id: uuid.UUID) -> bool:
        """
        Claim a pending item for processing.

        Returns:
            True for exactly one concurrent claimant
        """
        claimed = await retry_queue_crud.try_claim(self.db, item_id)
        await self._commit()
        return claimed

    async def resolve(self, item_id: uuid.UUID) -> bool:
        """
        Remove an item whose operation succeeded (or no longer applies).

        Returns:
            True if the item existed
        """
        deleted = await retry_queue_crud.delete_by_id(self.db, item_id)
        await self._commit()
        return deleted

    async def record_failure(
        self,
        item: RetryQueueItemModel,
        error: BaseException,
    ) -> RetryStatus | None:
        """
        Record a failed re-attempt of a claimed item.

        Below the attempt budget the count is incremented and the item goes
        back to pending behind exponential backoff. At the budget, or on a
        permanent error, it moves to dead_letter with the count left at its
        current value.

        Args:
            item: Claimed (retrying) item
            error: Failure of the re-attempt

        Returns:
            RetryStatus | None: The item's new status, or None when the claim
                was lost (stale claim recovery or an operator got there first)
                and nothing was written
        """
        message, details = describe_error(error)
        now = self._clock()

        if is_permanent_failure(error) or item.attempt_count >= item.max_attempts:
            updated = await retry_queue_crud.mark_dead_letter(
                self.db, item.id, [RetryStatus.RETRYING], message, details, now
            )
            new_status = RetryStatus.DEAD_LETTER
        else:
            attempt_count = item.attempt_count + 1
            updated = await retry_queue_crud.update_failure(
                self.db,
                item.id,
                [RetryStatus.RETRYING],
                attempt_count=attempt_count,
                error_message=message,
                error_details=details,
                next_retry_at=now + self.compute_backoff(attempt_count),
            )
            new_status = RetryStatus.PENDING
        await self._commit()

        if not updated:
            logger.warning(
                f"{__name__}:record_failure - Claim lost before the failure was recorded",
                extra={"retry_item_id": str(item.id), "entity_id": item.entity_id},
            )
            return None

        log = logger.error if new_status == RetryStatus.DEAD_LETTER else logger.warning
        log(
            f"{__name__}:record_failure - Retry failed, item now {new_status.value}",
            extra={
                "retry_item_id": str(item.id),
                "entity_id": item.entity_id,
                "attempt_count": item.attempt_count,
                "error_type": details["error_type"],
            },
        )
        return new_status

    async def release_claim(self, item_id: uuid.UUID) -> bool:
        """Hand a claimed item back to pending without using an attempt."""
        released = await retry_queue_crud.release_claim(self.db, item_id)
        await self._commit()
        return released

    async def recover_stale_claims(self) -> int:
        """
        Return items abandoned in retrying (crashed worker) to pending.

        Returns:
            Number of recovered items
        """
        cutoff = self._clock() - timedelta(seconds=self.settings.stale_claim_seconds)
        recovered = await retry_queue_crud.recover_stale_claims(self.db, cutoff)
        await self._commit()
        if recovered:
            logger.warning(
                f"{__name__}:recover_stale_claims - Recovered {recovered} abandoned claims",
                extra={"recovered": recovered},
            )
        return recovered
