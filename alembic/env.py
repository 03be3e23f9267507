import os
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Set inside run_migrations_*, once the models are imported.
target_metadata = None


def _database_url() -> str:
    # DATABASE_URL (CI, docker) wins over the DB_* pieces read by Settings.
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    from product_catalog.core.config import get_settings

    return get_settings().database_url_resolved


config.set_main_option("sqlalchemy.url", _database_url())


def _load_metadata():
    # Imported here so Alembic can load this file without the app on sys.path first.
    from product_catalog import models  # noqa: F401
    from product_catalog.core.db import Base

    return Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of touching a database."""
    global target_metadata
    target_metadata = _load_metadata()

    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    global target_metadata
    target_metadata = _load_metadata()

    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
