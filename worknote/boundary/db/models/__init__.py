"""
Database models package.

Exports:
  - RetryQueueItemModel, RetryOperationType, RetryStatus: Embedding retry queue
  - WorkNoteModel: Work note source content

Dependencies: sqlalchemy, worknote.boundary.db.base
System role: Database model definitions for domain entities
"""

from worknote.boundary.db.models.retry_queue_model import (
    RetryOperationType,
    RetryQueueItemModel,
    RetryStatus,
)
from worknote.boundary.db.models.work_note_model import WorkNoteModel

__all__ = [
    "RetryOperationType",
    "RetryQueueItemModel",
    "RetryStatus",
    "WorkNoteModel",
]
