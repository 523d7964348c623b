"""
Settings for rowgate.

Loaded from environment variables (prefix ``ROWGATE_``) or a ``.env`` file.
"""

import functools
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the engine and its default collaborators."""

    model_config = SettingsConfigDict(
        env_prefix="ROWGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Pagination
    default_limit: int = Field(default=50, ge=0, description="Page size when no limit is given")
    max_limit: int = Field(default=200, ge=0, description="Hard ceiling for any requested limit")

    # Storage
    database_url: str = Field(default="sqlite:///./rowgate.db", description="SQLAlchemy database URL")
    db_echo: bool = Field(default=False, description="Echo SQL statements")

    # Redis (jobs + broadcasts)
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    job_stream: str = Field(default="rowgate:jobs", description="Stream receiving enqueued jobs")
    job_stream_max_len: int = Field(default=100000, ge=1, description="Approximate stream trim length")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"


@functools.lru_cache()
def get_settings() -> Settings:
    """Get settings (cached)."""
    return Settings()
