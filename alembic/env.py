"""
Alembic environment — runs migrations against DATABASE_URL.
"""
from logging.config import fileConfig

from alembic import context

from leadops.config import DATABASE_URL
from leadops.database import Base, make_engine, normalize_url
import leadops.models.lead  # noqa: F401
import leadops.models.conversion_rate  # noqa: F401
import leadops.models.scoring_run  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=normalize_url(DATABASE_URL),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={'paramstyle': 'named'},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = make_engine(DATABASE_URL)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
