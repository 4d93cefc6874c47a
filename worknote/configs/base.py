"""
Shared settings base.

Every settings group reads the process environment and an optional .env
file; unknown keys are ignored so one .env can serve all groups.

Dependencies: pydantic_settings
System role: Root of the configuration classes
"""

from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict
from pydantic import Field


class BaseSettings(PydanticBaseSettings):
    """Settings root carrying the .env policy and the log level."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level for configure_logging (DEBUG, INFO, WARNING, ERROR)",
    )
