"""
Chunking configuration settings.

Sliding window parameters shared by chunk generation and chunk text
reconstruction.

Dependencies: pydantic, pydantic_settings
System role: Chunker configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingSettings(BaseSettings):
    """Sliding window chunking configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHUNKING_",
        case_sensitive=False,
        extra="ignore",
    )

    chunk_size_tokens: int = Field(default=512, ge=1, description="Target chunk size in tokens")
    overlap_ratio: float = Field(
        default=0.2,
        ge=0.0,
        lt=1.0,
        description="Overlap between consecutive chunks (0.2 = 20%)",
    )
    chars_per_token: int = Field(
        default=4,
        ge=1,
        description="Character-to-token approximation used for estimates",
    )
    min_chunk_ratio: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Trailing chunks smaller than this share of a window are dropped",
    )
    max_display_chars: int = Field(
        default=500,
        ge=4,
        description="Maximum length of reconstructed chunk text shown to users",
    )
