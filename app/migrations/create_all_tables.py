"""
Migration script to create all database tables

Run this script to create all database tables:
    python -m app.migrations.create_all_tables
"""

import logging

from app.database import engine, Base
# Import all models to ensure they're registered with Base
from app.models.movie import Movie, Genre  # noqa: F401
from app.models.rating import Rating  # noqa: F401

logger = logging.getLogger(__name__)


def create_tables(bind=engine):
    """Create movies, genres and ratings if they do not exist yet"""
    try:
        Base.metadata.create_all(bind=bind)
        logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    except Exception as e:
        logger.error(f"Error creating tables: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
