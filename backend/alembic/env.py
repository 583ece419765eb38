from logging.config import fileConfig
from sqlalchemy import create_engine
from alembic import context

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def database_url() -> str:
    """init_db() passes the path as `-x db_path=...`; alembic.ini is the fallback."""
    db_path = context.get_x_argument(as_dictionary=True).get("db_path")
    if db_path:
        return f"sqlite:///{db_path}"
    return config.get_main_option("sqlalchemy.url")


def run_migrations() -> None:
    """Apply migrations against a live SQLite connection."""
    engine = create_engine(database_url())

    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=None)

        with context.begin_transaction():
            context.run_migrations()


run_migrations()
