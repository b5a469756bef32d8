"""Alembic environment for the auth schema (users, user_sessions, app_settings)."""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

os.environ.setdefault("APP_ENV", "dev")
from app.core.config import settings
from app.models import AppSetting, Base, User, UserSession  # noqa: F401

config = context.config
# alembic.ini carries no logging sections; fileConfig raises KeyError without them.
if config.config_file_name is not None:
    try:
        fileConfig(config.config_file_name)
    except KeyError:
        pass

target_metadata = Base.metadata


def get_url() -> str:
    """`alembic -x db_url=...` wins over DATABASE_URL from the environment."""
    return context.get_x_argument(as_dictionary=True).get("db_url") or settings.DATABASE_URL


def run_migrations_offline() -> None:
    """Emit SQL for the auth tables without connecting."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(get_url(), poolclass=NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
