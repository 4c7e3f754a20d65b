"""Alembic environment for the record store.

Run through ``registry_hub.io.schema.migration_runner``, which injects the
connection string and target schema from application settings.
"""

from __future__ import annotations

from alembic import context
from sqlalchemy import engine_from_config, pool

from registry_hub.utils.logging import get_logger

config = context.config
logger = get_logger("registry_hub.io.schema.migrations.env")

target_metadata = None


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()

    logger.info("migrations.completed_offline")


def run_migrations_online() -> None:
    """Run migrations in 'online' mode using a SQLAlchemy Engine."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()

    logger.info("migrations.completed_online")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
