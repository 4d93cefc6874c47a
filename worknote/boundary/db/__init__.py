"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - RetryQueueItemModel, WorkNoteModel: Domain tables
  - retry_queue_crud, work_note_crud: CRUD operation singletons

Dependencies: sqlalchemy, worknote.configs
System role: Database adapter for the retry queue and work note content
"""

from worknote.boundary.db.base import Base, TimestampMixin, UUIDMixin, utc_now
from worknote.boundary.db.connection import (
    create_tables,
    dispose_engine,
    enable_sqlite_savepoints,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from worknote.boundary.db.models import (
    RetryOperationType,
    RetryQueueItemModel,
    RetryStatus,
    WorkNoteModel,
)
from worknote.boundary.db.CRUD import (
    BaseCRUD,
    RetryQueueCRUD,
    WorkNoteCRUD,
    retry_queue_crud,
    work_note_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "utc_now",
    # Connection
    "create_tables",
    "dispose_engine",
    "enable_sqlite_savepoints",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "RetryOperationType",
    "RetryQueueItemModel",
    "RetryStatus",
    "WorkNoteModel",
    # CRUD classes
    "BaseCRUD",
    "RetryQueueCRUD",
    "WorkNoteCRUD",
    # CRUD singletons
    "retry_queue_crud",
    "work_note_crud",
]
