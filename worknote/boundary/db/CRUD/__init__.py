"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from worknote.boundary.db.CRUD import retry_queue_crud, work_note_crud

    item = await retry_queue_crud.get_by_id(db, item_id)
"""

from worknote.boundary.db.CRUD.base_crud import BaseCRUD
from worknote.boundary.db.CRUD.retry_queue_crud import RetryQueueCRUD, retry_queue_crud
from worknote.boundary.db.CRUD.work_note_crud import WorkNoteCRUD, work_note_crud

__all__ = [
    "BaseCRUD",
    "RetryQueueCRUD",
    "retry_queue_crud",
    "WorkNoteCRUD",
    "work_note_crud",
]
