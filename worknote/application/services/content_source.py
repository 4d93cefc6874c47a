"""
Entity content source for indexing.

The retrieval pipeline re-reads entity content by id when the sweep
retries an operation or an operator reindexes. Work notes are the
indexed entity type; the protocol keeps other entity types pluggable.

Dependencies: worknote.boundary.db.CRUD, worknote.models.chunk
System role: Content lookup for ingestion, retry and reindexing
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from worknote.boundary.db.CRUD.work_note_crud import work_note_crud
from worknote.boundary.db.models.work_note_model import WorkNoteModel
from worknote.models.chunk import ChunkMetadata, ChunkScope


@dataclass(frozen=True)
class EntityContent:
    """Everything the chunker needs to index one entity."""

    entity_id: str
    title: str
    text: str
    metadata: ChunkMetadata


class EntityContentSource(Protocol):
    """Lookup of indexable content by entity id."""

    async def load(self, entity_id: str) -> EntityContent | None:
        """Current content, or None if the entity no longer exists."""
        ...

    async def mark_embedded(self, entity_id: str, at: datetime) -> None:
        """Record a successful index run."""
        ...


def work_note_content(note: WorkNoteModel) -> EntityContent:
    """Map a work note row onto indexable content."""
    created_at_bucket = note.created_at.date().isoformat() if note.created_at else None
    return EntityContent(
        entity_id=note.work_id,
        title=note.title,
        text=note.content_raw or "",
        metadata=ChunkMetadata(
            scope=ChunkScope.WORK,
            project_id=note.project_id,
            category=note.category,
            created_at_bucket=created_at_bucket,
        ),
    )


class WorkNoteContentSource:
    """EntityContentSource backed by the work_notes table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def load(self, entity_id: str) -> EntityContent | None:
        note = await work_note_crud.get_by_id(self.db, entity_id)
        if note is None:
            return None
        return work_note_content(note)

    async def mark_embedded(self, entity_id: str, at: datetime) -> None:
        await work_note_crud.mark_embedded(self.db, entity_id, at)
