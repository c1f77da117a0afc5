from logging.config import fileConfig
import os

from sqlalchemy import engine_from_config, pool
from alembic import context

from dotenv import load_dotenv

load_dotenv()

config = context.config

# DATABASE_URL overrides sqlalchemy.url from alembic.ini
db_url = os.getenv("DATABASE_URL")
if not db_url:
    raise RuntimeError("DATABASE_URL is not set. Check your .env file")
config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from clinic_scheduler.core.database import Base
from clinic_scheduler.models.staff import StaffMember  # noqa: F401
from clinic_scheduler.models.recurring_schedule import RecurringSchedule  # noqa: F401
from clinic_scheduler.models.shift import Shift  # noqa: F401
from clinic_scheduler.models.time_off import TimeOffRequest  # noqa: F401

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the scheduling schema as SQL without a live connection."""
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
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        # render_as_batch lets ALTERs run on SQLite during local development
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
