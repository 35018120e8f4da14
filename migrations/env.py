"""Alembic environment - runs migrations against DATABASE_URL from settings."""
from alembic import context
from sqlalchemy import create_engine, pool

from herdbook.config import get_settings
from herdbook.infrastructure.db.session import Base
from herdbook.infrastructure.db import models  # noqa: F401  (registers tables)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=get_settings().get_sqlalchemy_url(),
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(get_settings().get_sqlalchemy_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
