"""
Embedding retry queue configuration settings.

Retry policy, backoff, and background sweep scheduling.

Dependencies: pydantic, pydantic_settings
System role: Retry/dead-letter queue configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetryQueueSettings(BaseSettings):
    """Retry queue and sweeper configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RETRY_QUEUE_",
        case_sensitive=False,
        extra="ignore",
    )

    max_attempts: int = Field(default=3, ge=1, description="Attempts before dead-letter")

    # Retry policy: min(base * 2^(attempt-1), max) seconds
    backoff_base_seconds: float = Field(default=2.0, ge=0.0, description="Retry backoff base")
    backoff_max_seconds: float = Field(default=3600.0, ge=0.0, description="Maximum retry backoff")

    sweeper_enabled: bool = Field(default=True, description="Run the sweep inside the API process")
    sweep_interval_seconds: float = Field(default=60.0, gt=0.0, description="Delay between sweeps")
    batch_size: int = Field(default=10, ge=1, description="Items fetched per sweep")
    max_concurrency: int = Field(default=4, ge=1, description="Concurrent sweep workers")
    stale_claim_seconds: int = Field(
        default=600,
        ge=1,
        description="Claims older than this are considered abandoned by a crashed worker",
    )
