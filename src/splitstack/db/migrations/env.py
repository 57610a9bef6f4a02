from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

from splitstack.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# stacks and snapshots are JSONB documents; revisions are hand-written
target_metadata = None


def _sync_database_url() -> str:
    # the bot connects through asyncpg; alembic runs on the psycopg2 driver
    url = make_url(get_settings().database_url)
    if url.drivername in ("postgresql+asyncpg", "postgres"):
        url = url.set(drivername="postgresql+psycopg2")
    return url.render_as_string(hide_password=False)


def _configure(**kwargs) -> None:
    context.configure(
        version_table=get_settings().migrations_version_table,
        transaction_per_migration=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=_sync_database_url(), literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(_sync_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        _configure(connection=connection)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
