"""
Embedding failure API models.

Operator-facing schemas for the dead-letter listing, manual retry and
reindexing endpoints. Field names are serialized in camelCase for the
admin UI.

Dependencies: pydantic
System role: Admin API contracts
"""

from datetime import datetime
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmbeddingFailureItem(CamelModel):
    """Dead-letter retry item joined with its entity's display title."""

    id: uuid.UUID
    entity_id: str
    entity_title: str | None = None
    operation_type: str
    attempt_count: int
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime
    dead_letter_at: datetime | None = None


class EmbeddingFailureListResponse(CamelModel):
    """Paginated dead-letter listing."""

    items: list[EmbeddingFailureItem]
    total: int = Field(description="Dead-letter items in total, independent of paging")


class RetryResetResponse(CamelModel):
    """Result of an operator retry request."""

    success: bool
    message: str
    status: str


class ReindexResult(CamelModel):
    """Statistics for a bulk reindex run."""

    total: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = Field(default_factory=list)


class EmbeddingStats(CamelModel):
    """Embedding coverage of work notes."""

    total: int
    embedded: int
    pending: int


class ReindexOneResponse(CamelModel):
    """Result of reindexing a single entity."""

    success: bool
    message: str
    chunk_count: int = 0


class ReindexAllResponse(CamelModel):
    """Result of a bulk reindex request."""

    success: bool
    message: str
    result: ReindexResult
