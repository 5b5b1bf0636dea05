"""Alembic environment: migrations run against DATABASE_URL with a sync driver"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from docpricing.config import settings
from docpricing.models.database import Base
from docpricing.models import db_models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# aiosqlite/asyncpg URLs map to their sync drivers for migrations
config.set_main_option(
    "sqlalchemy.url",
    settings.DATABASE_URL.replace("+aiosqlite", "").replace("+asyncpg", ""),
)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
