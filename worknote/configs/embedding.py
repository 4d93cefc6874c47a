"""
Embedding provider configuration settings.

Selects the LangChain embeddings backend and bounds each call.

Dependencies: pydantic, pydantic_settings
System role: Embedding generation configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingSettings(BaseSettings):
    """Embedding model configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    provider: str = Field(
        default="google",
        description="Embeddings backend: 'google' (Gemini), 'bedrock' (Titan) or 'fake' (local dev)",
    )
    model: str = Field(
        default="models/gemini-embedding-001",
        description="Embedding model ID for the selected provider",
    )
    dimension: int = Field(
        default=1536,
        description="Embedding vector dimension; must match the vector index",
    )
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region for Bedrock embeddings",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for a single embedding call; timeouts are retried",
    )
    batch_size: int = Field(
        default=100,
        description="Maximum texts per embedding request",
    )
