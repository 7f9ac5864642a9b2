from dotenv import load_dotenv
from logging.config import fileConfig
from sqlalchemy import pool, create_engine
from alembic import context

# Load env vars before settings are read
load_dotenv(".env.local")

from app.core.config import settings  # noqa: E402
from app.core.database import Base  # noqa: E402
from app.models.db import (  # noqa: E402,F401
    event,
    review,
    sentiment_job,
    sentiment_result,
)  # ensure models are imported

# Set Alembic config
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

DATABASE_URL = settings.SYNC_DATABASE_URI

# Set override in case other Alembic utils need it
config.set_main_option("sqlalchemy.url", DATABASE_URL.replace("%", "%%"))


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    engine = create_engine(DATABASE_URL, poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
