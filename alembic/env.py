"""Alembic environment for the ``memos`` schema.

Connects through ``LakebaseConnectionFactory``, so migrations run with the
same host, role and credentials as the app. Online runs create the memo
database first when it is missing.
"""

from __future__ import annotations

import sys
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from memo_app.db.postgres import LakebaseConnectionFactory  # noqa: E402
from memo_app.db.schemas import Base  # noqa: E402

config = context.config
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=LakebaseConnectionFactory().sqlalchemy_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    factory = LakebaseConnectionFactory()
    factory.ensure_database()

    cfg = config.get_section(config.config_ini_section, {})
    cfg["sqlalchemy.url"] = factory.sqlalchemy_url()
    connectable = engine_from_config(cfg, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
