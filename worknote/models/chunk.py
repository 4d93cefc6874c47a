"""
Chunk domain model.

Represents a segment of entity content prepared for embedding, plus the
bounded metadata used to filter it at retrieval time.

Dependencies: pydantic
System role: Chunk data structure for the ingestion pipeline
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChunkScope(str, Enum):
    """Entity category a chunk belongs to."""

    WORK = "WORK"
    PROJECT = "PROJECT"
    PERSON = "PERSON"
    DEPARTMENT = "DEPARTMENT"


class ChunkMetadata(BaseModel):
    """Filterable metadata shared by every chunk of one entity."""

    model_config = ConfigDict(frozen=True)

    scope: ChunkScope = Field(default=ChunkScope.WORK, description="Entity category")
    project_id: str | None = Field(default=None, description="Owning project (PROJECT scope)")
    person_ids: str | None = Field(default=None, description="Comma-separated person ids")
    dept_name: str | None = Field(default=None, description="Department name")
    category: str | None = Field(default=None, description="Work note category")
    created_at_bucket: str | None = Field(default=None, description="Creation day, YYYY-MM-DD")

    def to_filterable(self) -> dict[str, str]:
        """Flatten to string values, dropping unset keys."""
        values = self.model_dump(mode="json", exclude_none=True)
        return {key: str(value) for key, value in values.items()}


class Chunk(BaseModel):
    """Document chunk model."""

    chunk_id: str = Field(description="Stable identifier: {entity_id}#chunk{index}")
    entity_id: str = Field(description="Owning entity id")
    index: int = Field(ge=0, description="0-based position within the entity")
    text: str = Field(description="Chunk text; the first chunk carries the title")
    estimated_token_count: int = Field(ge=0, description="ceil(len(text) / chars_per_token)")
    metadata: ChunkMetadata = Field(description="Filter keys copied from the entity")
