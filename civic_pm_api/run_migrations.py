"""
PURPOSE: Database migration runner - applies alembic revisions or bootstraps an empty database
SRP and DRY check: Pass - Single responsibility of migration execution
"""
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from civic_pm_api.config import SETTINGS
from civic_pm_api.database import Base

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def get_database_url() -> str:
    return SETTINGS.database_url


def alembic_config(database_url: str = None) -> Config:
    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url or get_database_url())
    return alembic_cfg


def run_migrations(database_url: str = None) -> None:
    """Bring the schema to the latest revision."""
    database_url = database_url or get_database_url()
    alembic_cfg = alembic_config(database_url)

    engine = create_engine(database_url)
    try:
        existing_tables = inspect(engine).get_table_names()
        if not existing_tables:
            logger.info("Database is empty, creating initial schema")
            Base.metadata.create_all(bind=engine)
            command.stamp(alembic_cfg, "head")
        else:
            logger.info(f"Database has {len(existing_tables)} tables, applying migrations")
            command.upgrade(alembic_cfg, "head")
    finally:
        engine.dispose()
    logger.info("Migrations completed successfully")


def create_migration(message: str) -> None:
    """Autogenerate a revision from the difference between the models and the database."""
    logger.info(f"Creating migration: {message}")
    command.revision(alembic_config(), message=message, autogenerate=True)


if __name__ == "__main__":
    logging.basicConfig(level=SETTINGS.log_level)
    try:
        if len(sys.argv) > 2 and sys.argv[1] == "create":
            create_migration(" ".join(sys.argv[2:]))
        elif len(sys.argv) == 1 or sys.argv[1] == "migrate":
            run_migrations()
        else:
            print("Usage:")
            print("  python -m civic_pm_api.run_migrations migrate")
            print("  python -m civic_pm_api.run_migrations create 'Migration message'")
            sys.exit(2)
    except Exception:
        logger.exception("Migration failed")
        sys.exit(1)
