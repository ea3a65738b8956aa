"""Database initialization utilities."""
import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from budget_hotel.db.base import Base, import_models

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """
    Create any missing tables.

    Note: This is suitable for development/testing only.
    Schema migrations are managed outside this service.
    """
    try:
        import_models()

        existing_tables = set(inspect(engine).get_table_names())
        Base.metadata.create_all(bind=engine)
        created = set(Base.metadata.tables) - existing_tables
        if created:
            logger.info(f"Database tables created: {', '.join(sorted(created))}")
        else:
            logger.info(f"Database already initialized with {len(existing_tables)} tables")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise
