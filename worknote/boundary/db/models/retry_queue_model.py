"""
Embedding retry queue ORM model.

Durable record of a failed embedding operation awaiting retry or operator
action. Rows move pending -> retrying -> (deleted | pending | dead_letter),
and only an operator moves dead_letter back to pending.

Dependencies: sqlalchemy, worknote.boundary.db.base
System role: Retry / dead-letter persistence for the ingestion pipeline
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from worknote.boundary.db.base import Base, TimestampMixin, UUIDMixin


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class RetryOperationType(str, enum.Enum):
    """
    Index operation that failed.

    CREATE / UPDATE: Re-chunk and re-embed the entity
    DELETE: Remove every vector of the entity
    """

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class RetryStatus(str, enum.Enum):
    """
    Retry item lifecycle states.

    PENDING: Waiting for the sweep (or due after backoff)
    RETRYING: Claimed by exactly one sweep worker
    DEAD_LETTER: Attempts exhausted or permanent error; operator action needed
    """

    PENDING = "pending"
    RETRYING = "retrying"
    DEAD_LETTER = "dead_letter"


LIVE_ITEM_CONDITION = "status != 'dead_letter'"


class RetryQueueItemModel(Base, UUIDMixin, TimestampMixin):
    """
    Retry queue item.

    Attributes:
        id: UUID primary key (auto-generated)
        entity_id: Entity whose index operation failed
        operation_type: create / update / delete
        attempt_count: Failed attempts so far (1 on first failure)
        max_attempts: Attempts allowed before dead-lettering
        status: pending / retrying / dead_letter
        error_message: Last failure message
        error_details: Last failure context (error type, retryable flag)
        next_retry_at: Earliest time the sweep may pick the item up
        dead_letter_at: Set iff status is dead_letter

    Constraints:
        At most one live (non dead_letter) item per (entity_id, operation_type)
    """

    __tablename__ = "embedding_retry_queue"
    __table_args__ = (
        Index(
            "uq_embedding_retry_queue_live_entity_op",
            "entity_id",
            "operation_type",
            unique=True,
            sqlite_where=text(LIVE_ITEM_CONDITION),
            postgresql_where=text(LIVE_ITEM_CONDITION),
        ),
        Index("ix_embedding_retry_queue_status_next_retry", "status", "next_retry_at"),
        Index("ix_embedding_retry_queue_dead_letter_at", "dead_letter_at"),
    )

    entity_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        doc="Work note id (or other entity id) being indexed",
    )

    operation_type: Mapped[RetryOperationType] = mapped_column(
        Enum(RetryOperationType, native_enum=False, values_callable=_enum_values),
        nullable=False,
    )

    attempt_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    max_attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=3,
    )

    status: Mapped[RetryStatus] = mapped_column(
        Enum(RetryStatus, native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=RetryStatus.PENDING,
    )

    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    error_details: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
        doc="Structured context of the last failure",
    )

    next_retry_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Backoff gate; NULL means due immediately",
    )

    dead_letter_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
