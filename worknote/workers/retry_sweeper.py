"""
Background retry sweeper.

A ticker task periodically recovers abandoned claims, loads due pending
retry items and feeds their ids into an asyncio.Queue drained by a
bounded pool of worker tasks. Each item is claimed with a conditional
update and processed in its own database session, so several sweeper
processes can share one queue.

Dependencies: asyncio, sqlalchemy, worknote.application.services
System role: The only place embedding operations are retried
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from worknote.application.services.ingestion_service import IngestionService
from worknote.application.services.retry_queue_service import RetryQueueService
from worknote.boundary.db.base import utc_now
from worknote.boundary.db.models.retry_queue_model import RetryOperationType, RetryStatus
from worknote.configs.retry_queue import RetryQueueSettings
from worknote.observability.correlation import set_correlation_id
from worknote.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

IngestionFactory = Callable[[AsyncSession, RetryQueueService], IngestionService]


@dataclass
class SweepResult:
    """Outcome counts of one sweep."""

    recovered: int = 0
    claimed: int = 0
    succeeded: int = 0
    resolved_missing: int = 0
    requeued: int = 0
    dead_lettered: int = 0
    skipped: int = 0
    errors: int = 0


class RetrySweeper:
    """
    Retry queue sweeper.

    run_once() performs a single sweep and reports what happened;
    start() / stop() manage the periodic background loop used by the API
    process.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ingestion_factory: IngestionFactory,
        settings: RetryQueueSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize sweeper.

        Args:
            session_factory: Opens one session per sweep step and per item
            ingestion_factory: Builds an IngestionService on a session
            settings: Retry policy and sweep scheduling
            clock: Source of the current time
        """
        self._session_factory = session_factory
        self._ingestion_factory = ingestion_factory
        self.settings = settings or RetryQueueSettings()
        self._clock = clock
        self._queue: asyncio.Queue[uuid.UUID] | None = None
        self._ticker: asyncio.Task | None = None
        self._workers: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        """Whether the background loop is active."""
        return self._ticker is not None and not self._ticker.done()

    def _retry_service(self, session: AsyncSession) -> RetryQueueService:
        return RetryQueueService(session, self.settings, clock=self._clock)

    async def _collect_due(self, result: SweepResult | None = None) -> list[uuid.UUID]:
        async with self._session_factory() as session:
            retry_service = self._retry_service(session)
            recovered = await retry_service.recover_stale_claims()
            items = await retry_service.get_retryable(self.settings.batch_size)
        if result is not None:
            result.recovered += recovered
        return [item.id for item in items]

    async def process_item(self, item_id: uuid.UUID) -> str:
        """
        Claim and re-attempt one retry item.

        Args:
            item_id: Retry item id

        Returns:
            str: Outcome ("skipped", "succeeded", "resolved_missing",
                "requeued" or "dead_lettered")
        """
        set_correlation_id(f"retry-{item_id}")
        async with self._session_factory() as session:
            retry_service = self._retry_service(session)
            if not await retry_service.try_claim(item_id):
                return "skipped"

            item = await retry_service.get_item(item_id)
            if item is None:
                return "skipped"
            entity_id = item.entity_id
            ingestion = self._ingestion_factory(session, retry_service)

            try:
                if item.operation_type == RetryOperationType.DELETE:
                    await ingestion.remove_entity(entity_id)
                else:
                    content = await ingestion.content_source.load(entity_id)
                    if content is None:
                        # Entity deleted before the retry ran: nothing left to index
                        await retry_service.resolve(item_id)
                        logger.info(
                            f"{__name__}:process_item - Entity gone, retry item resolved",
                            extra={"retry_item_id": str(item_id), "entity_id": entity_id},
                        )
                        return "resolved_missing"
                    await ingestion.index_entity(
                        content.entity_id, content.title, content.text, content.metadata
                    )
                    await ingestion.content_source.mark_embedded(entity_id, self._clock())
                await retry_service.resolve(item_id)
            except Exception as e:
                await session.rollback()
                item = await retry_service.get_item(item_id)
                if item is None:
                    return "skipped"
                status = await retry_service.record_failure(item, e)
                if status is None:
                    return "skipped"
                return "dead_lettered" if status == RetryStatus.DEAD_LETTER else "requeued"

        logger.info(
            f"{__name__}:process_item - Retry succeeded",
            extra={"retry_item_id": str(item_id), "entity_id": entity_id},
        )
        return "succeeded"

    async def _worker_loop(self, queue: asyncio.Queue, result: SweepResult | None = None) -> None:
        while True:
            item_id = await queue.get()
            try:
                outcome = await self.process_item(item_id)
                if result is not None:
                    setattr(result, outcome, getattr(result, outcome) + 1)
                    if outcome != "skipped":
                        result.claimed += 1
            except Exception as e:
                if result is not None:
                    result.errors += 1
                log_exception_with_context(
                    logger,
                    f"{__name__}:_worker_loop - Retry item processing failed",
                    e,
                    retry_item_id=str(item_id),
                )
            finally:
                queue.task_done()

    async def _drain(self, queue: asyncio.Queue, result: SweepResult | None) -> None:
        workers = [
            asyncio.create_task(self._worker_loop(queue, result))
            for _ in range(self.settings.max_concurrency)
        ]
        try:
            await queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def run_once(self) -> SweepResult:
        """
        Perform one sweep with bounded concurrency.

        Returns:
            SweepResult: Outcome counts
        """
        result = SweepResult()
        item_ids = await self._collect_due(result)
        if item_ids:
            queue: asyncio.Queue[uuid.UUID] = asyncio.Queue()
            for item_id in item_ids:
                queue.put_nowait(item_id)
            await self._drain(queue, result)

        logger.info(f"{__name__}:run_once - Sweep finished", extra=vars(result))
        return result

    async def _tick_loop(self, queue: asyncio.Queue) -> None:
        while True:
            try:
                for item_id in await self._collect_due():
                    await queue.put(item_id)
                # Let workers finish this batch before the next fetch
                await queue.join()
            except Exception as e:
                log_exception_with_context(logger, f"{__name__}:_tick_loop - Sweep failed", e)
            await asyncio.sleep(self.settings.sweep_interval_seconds)

    def start(self) -> None:
        """Start the ticker and worker tasks on the running event loop."""
        if self.running:
            return
        self._queue = asyncio.Queue(maxsize=self.settings.batch_size)
        self._workers = [
            asyncio.create_task(self._worker_loop(self._queue))
            for _ in range(self.settings.max_concurrency)
        ]
        self._ticker = asyncio.create_task(self._tick_loop(self._queue))
        logger.info(
            f"{__name__}:start - Retry sweeper started",
            extra={
                "interval_seconds": self.settings.sweep_interval_seconds,
                "max_concurrency": self.settings.max_concurrency,
            },
        )

    async def stop(self) -> None:
        """
        Cancel the background tasks.

        Items interrupted mid-claim stay in retrying until stale claim
        recovery returns them to pending.
        """
        tasks = [task for task in [self._ticker, *self._workers] if task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._ticker = None
        self._workers = []
        self._queue = None
        logger.info(f"{__name__}:stop - Retry sweeper stopped")
