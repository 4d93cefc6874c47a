"""
Hybrid search configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Search ranking configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchSettings(BaseSettings):
    """Hybrid (full-text + vector) search configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SEARCH_",
        case_sensitive=False,
        extra="ignore",
    )

    rrf_k: int = Field(default=60, gt=0, description="Reciprocal Rank Fusion constant")
    default_limit: int = Field(default=10, ge=1, le=100, description="Results returned by default")
    candidate_multiplier: int = Field(
        default=2,
        ge=1,
        description="Each ranked list fetches limit * multiplier candidates before fusion",
    )
