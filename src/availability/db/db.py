from typing import Any

from loguru import logger
from sqla_wrapper import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from availability.db.base_model import get_base_metadata
from availability.settings.manager import settings_manager

db_host = str(settings_manager.settings.database.host)

engine_options: dict[str, Any] = {
    "pool_pre_ping": True,
    "pool_recycle": 1800,
    "echo": False,  # Set to true when debugging sql queries
}

if not db_host.startswith("sqlite"):
    engine_options.update(pool_size=10, max_overflow=10)

db = SQLAlchemy(db_host, engine_options=engine_options)


def create_tables() -> bool:
    """Create any missing tables for the registered models."""
    try:
        get_base_metadata().create_all(db.engine)
        logger.log("DATABASE", "Database tables are up to date")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        return False
