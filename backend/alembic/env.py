"""
Alembic migration environment for the relational screening store.

Migrations target PostgreSQL only: the screenings.taken column is a native
text[] that the reservation UPDATE depends on. SQLite databases used in tests
are created straight from the models.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

from cinema_booking.core.config import get_settings
from cinema_booking.db.base import Base
from cinema_booking.models import Film, Screening  # noqa: F401 - Import models for autogenerate

config = context.config
settings = get_settings()

url = make_url(settings.DATABASE_URL_SYNC)
if url.get_backend_name() != "postgresql":
    raise RuntimeError(f"Migrations require PostgreSQL, got {url.get_backend_name()}")
config.set_main_option("sqlalchemy.url", url.render_as_string(hide_password=False))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Generate SQL script without connecting to the database."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live database connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
