"""
Schema setup for the family store.

Called once during application startup; tests call it per test against
an in-memory SQLite engine.
"""
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from parently.core.logging_config import get_logger
from parently.database.connection import DatabaseConnection, get_database
from parently.database.models import Base

logger = get_logger(__name__)


def create_tables(db: Optional[DatabaseConnection] = None) -> bool:
    """Create the eight family tables; existing ones are left alone."""
    try:
        engine = (db or get_database()).engine
        Base.metadata.create_all(engine)
        logger.info(f"Family tables ready ({len(Base.metadata.tables)} tables)")
        return True

    except SQLAlchemyError as e:
        logger.error(f"Could not create family tables: {e}")
        raise


def drop_tables(db: Optional[DatabaseConnection] = None) -> bool:
    """Drop every table and its data. Used by the test suite between tests."""
    try:
        engine = (db or get_database()).engine
        Base.metadata.drop_all(engine)
        logger.info("Family tables dropped")
        return True

    except SQLAlchemyError as e:
        logger.error(f"Could not drop family tables: {e}")
        raise


if __name__ == "__main__":
    # python -m parently.database.init_db
    create_tables()
    print(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")
