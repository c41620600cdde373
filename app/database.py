from contextlib import contextmanager
from sqlalchemy import create_engine, pool, event, text
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker, Session
import os
from dotenv import load_dotenv
import logging

load_dotenv()
logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./movies.db")


def _engine_options(url: str) -> dict:
    """Pool settings for server databases; SQLite keeps SQLAlchemy's defaults."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    # QueuePool maintains a pool of connections that can be reused
    return {
        "poolclass": pool.QueuePool,
        "pool_size": int(os.getenv("DB_POOL_SIZE", 5)),  # Number of connections to keep open
        "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", 10)),  # Max connections beyond pool_size
        "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", 30)),  # Seconds to wait for connection
        "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", 3600)),  # Recycle connections after 1 hour
        "pool_pre_ping": True,  # Test connections before using them
    }


engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("DB_ECHO", "false").lower() == "true",  # Set to true for SQL debugging
    **_engine_options(DATABASE_URL)
)

# Log pool statistics for monitoring
@event.listens_for(engine, "connect")
def receive_connect(dbapi_conn, connection_record):
    """Log when a new connection is created"""
    logger.debug("Database connection established")

@event.listens_for(engine, "checkout")
def receive_checkout(dbapi_conn, connection_record, connection_proxy):
    """Log when a connection is checked out from the pool"""
    logger.debug("Connection checked out from pool")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Dependency for FastAPI routes
def get_db():
    """
    Database session dependency for FastAPI.
    One session per request, always closed when the request ends.

    Usage:
        @router.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            # Use db here
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Utility function for manual session management
def get_db_session() -> Session:
    """
    Get a database session for manual management (scripts, migrations).
    Remember to close the session after use!
    """
    return SessionLocal()


@contextmanager
def transaction(db: Session):
    """
    Scoped unit of work around a multi-statement write.

    Commits when the block finishes, rolls back and re-raises on any error,
    so a movie row is never left behind without its genres.

    Usage:
        with transaction(db):
            db.execute(...)
            db.execute(...)
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def check_connection(db: Session) -> None:
    """Round-trip to the database; raises if it is unreachable."""
    db.execute(text("SELECT 1"))
