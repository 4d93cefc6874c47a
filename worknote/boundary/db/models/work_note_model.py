"""
Work note ORM model.

Read-mostly mapping of the work notes table. Work note CRUD lives
elsewhere; the retrieval pipeline reads content to index it, joins titles
into the dead-letter listing, and stamps embedded_at after indexing.

Dependencies: sqlalchemy, worknote.boundary.db.base
System role: Source content for chunking, full-text search and display
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from worknote.boundary.db.base import Base, TimestampMixin


class WorkNoteModel(Base, TimestampMixin):
    """
    Work note.

    Attributes:
        work_id: Application-assigned id (e.g. "WORK-2024-0001")
        title: Display title, also the head of the first chunk
        content_raw: Raw note body
        category: Optional category, filterable in search
        project_id: Owning project, if any
        embedded_at: Last successful indexing time (NULL = not embedded)
    """

    __tablename__ = "work_notes"

    work_id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    content_raw: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )

    category: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        index=True,
    )

    project_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )

    embedded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
