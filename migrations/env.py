"""Alembic environment for the SQL-backed realtime tree."""
from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context

import relay_chat.models  # noqa: F401
from relay_chat.core.settings import settings
from relay_chat.db.session import Base, make_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    """Return the migration target: ``ALEMBIC_URL``, the ini option, then settings."""
    return (
        os.getenv("ALEMBIC_URL")
        or config.get_main_option("sqlalchemy.url")
        or settings.database_url
    )


def run_offline() -> None:
    """Emit SQL without connecting."""
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = make_engine(database_url())
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, target_metadata=target_metadata)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
