"""Programmatic helpers for invoking the Alembic migrations of the record store."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config

from registry_hub.config import get_settings
from registry_hub.utils.logging import get_logger

LOGGER = get_logger("registry_hub.io.schema.migration_runner")

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def _build_config(database_url: Optional[str]) -> Config:
    settings = get_settings()
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url or settings.require_database_uri())
    cfg.set_main_option("registry_schema", settings.database_schema)
    cfg.set_main_option("registry_table", settings.companies_table)
    return cfg


def upgrade(database_url: Optional[str] = None, revision: str = "head") -> None:
    """Run ``alembic upgrade`` programmatically."""
    cfg = _build_config(database_url)
    command.upgrade(cfg, revision)
    LOGGER.info("alembic.upgrade", revision=revision, database_uri=cfg.get_main_option("sqlalchemy.url"))


def downgrade(database_url: Optional[str] = None, revision: str = "-1") -> None:
    """Run ``alembic downgrade`` programmatically."""
    cfg = _build_config(database_url)
    command.downgrade(cfg, revision)
    LOGGER.info("alembic.downgrade", revision=revision, database_uri=cfg.get_main_option("sqlalchemy.url"))
