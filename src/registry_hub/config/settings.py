"""
Configuration management for RegistryHub.

Environment-based configuration using Pydantic BaseSettings. Every field can
be overridden with a ``REG_`` prefixed environment variable, for example
``REG_DATABASE_URI`` or ``REG_CRAWLER_MAX_REQUESTS_PER_MINUTE``.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for resolving .reg_env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".reg_env"
ENV_FILE_OVERRIDE = os.getenv("REG_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


class ConfigurationError(RuntimeError):
    """Raised when mandatory configuration is missing or invalid."""


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    The store connection string is optional at construction time so that
    offline operations (dry-run imports, unit tests) can load settings. Any
    operation that writes to or reads from the store must call
    ``require_database_uri()`` before starting work.
    """

    # Store
    database_uri: Optional[str] = Field(
        default=None, description="PostgreSQL connection string for the record store"
    )
    database_schema: str = Field(default="public", description="Store schema")
    companies_table: str = Field(default="companies", description="Record table")
    db_pool_size: int = Field(default=10, description="Connection pool size")

    # Bulk import
    import_batch_size: int = Field(
        default=1000, ge=1, description="Rows per upsert chunk during the flush pass"
    )
    activity_batch_size: int = Field(
        default=1000, ge=1, description="Keys per activity-code flush batch"
    )
    store_write_concurrency: int = Field(
        default=100, ge=1, description="Per-key updates in flight inside one chunk"
    )
    progress_log_every_chunks: int = Field(
        default=10, ge=1, description="Progress callback cadence in chunks"
    )
    reader_chunk_rows: int = Field(
        default=50_000, ge=1, description="Rows read per chunk from delimited sources"
    )

    # Enrichment crawler
    crawler_max_requests_per_minute: int = Field(default=20, ge=1)
    crawler_max_concurrency: int = Field(default=1, ge=1)
    crawler_max_retries: int = Field(default=3, ge=0)
    crawler_jitter_min_seconds: float = Field(default=2.0, ge=0)
    crawler_jitter_max_seconds: float = Field(default=4.0, ge=0)
    crawler_backoff_base_seconds: float = Field(default=2.0, ge=0)
    crawler_navigation_timeout_ms: int = Field(default=30_000, ge=1)
    crawler_task_timeout_seconds: int = Field(default=60, ge=1)
    crawler_headless: bool = Field(default=True)
    crawler_stealth: bool = Field(
        default=True, description="Apply playwright-stealth patches to portal pages"
    )

    # Enrichment scheduling
    enrichment_default_limit: int = Field(default=100, ge=1)
    enrichment_stale_days: int = Field(default=30, ge=0)

    portals_config_path: str = Field(
        default=str(PROJECT_ROOT / "config" / "portals.yml"),
        description="Path to the external portal definitions",
    )

    # Logging and observability
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="json or console rendering")
    log_to_file: bool = Field(default=False, description="Enable file logging")
    log_file_dir: str = Field(default="logs", description="Directory for log files")
    observability_log_dir: str = Field(
        default="logs/", description="Directory for crawl diagnostics exports"
    )

    model_config = SettingsConfigDict(
        env_prefix="REG_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_jitter_window(self) -> "Settings":
        if self.crawler_jitter_max_seconds < self.crawler_jitter_min_seconds:
            raise ValueError(
                "crawler_jitter_max_seconds must be >= crawler_jitter_min_seconds"
            )
        return self

    def require_database_uri(self) -> str:
        """Return the store connection string or fail before any work starts."""
        if not self.database_uri:
            raise ConfigurationError(
                "REG_DATABASE_URI is not set; the record store is unreachable"
            )
        return self.database_uri


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
