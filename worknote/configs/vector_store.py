"""
Vector store configuration settings.

Selects the vector index backend (FAISS for dev, S3 Vectors for prod)
and the bounds used when querying it.

Dependencies: pydantic, pydantic_settings
System role: Vector database configuration for hybrid retrieval
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorStoreSettings(BaseSettings):
    """Vector store configuration (FAISS for dev, S3 Vectors for prod)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VECTOR_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: str = Field(
        default="faiss",
        description="Vector store type: 'faiss' for local dev, 's3' for production",
    )
    aws_region: str = Field(default="ap-northeast-2", description="AWS region for S3 Vectors")
    vectors_bucket: str = Field(
        default="worknote-dev-vectors",
        description="S3 Vectors bucket name",
    )
    index_name: str = Field(default="work-notes", description="Vector index name")
    faiss_index_dir: str = Field(
        default="/tmp/.worknote_faiss",
        description="Directory where the local FAISS index is persisted",
    )

    top_k: int = Field(default=10, description="Default number of vector hits to retrieve")
    prefix_scan_limit: int = Field(
        default=500,
        description="Maximum chunk ids returned when listing an entity's chunks",
    )
    upsert_batch_size: int = Field(
        default=100,
        description="Maximum vectors sent in one upsert call",
    )
