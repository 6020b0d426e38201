from logging.config import fileConfig
from alembic import context
from dotenv import load_dotenv

load_dotenv()

import config as app_config
from models import Base

alembic_config = context.config

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

# type changes on columns are picked up by autogenerate
COMMON_OPTIONS = {
    "target_metadata": Base.metadata,
    "compare_type": True,
}


def run_offline(database_url: str) -> None:
    """Emit SQL for the migrations without opening a connection."""
    if not database_url:
        raise app_config.DatabaseNotConfigured("DATABASE_URL is required to render migrations")

    context.configure(
        url=app_config._sync_url(database_url),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMMON_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    """Apply the migrations over the synchronous engine."""
    with app_config.get_sync_engine().connect() as connection:
        context.configure(
            connection=connection,
            render_as_batch=connection.dialect.name == "sqlite",
            **COMMON_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline(app_config.DATABASE_URL)
else:
    run_online()
