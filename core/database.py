import os
import uuid
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from core.config import DATABASE_URL, DATA_DIR
from core.errors import StorageError

logger = logging.getLogger(__name__)

# Base class for all models
Base = declarative_base()

engine = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def configure_engine(database_url: str = DATABASE_URL):
    """(Re)bind the session factory to a database.

    Called once at import with the configured URL; tests call it again with
    a temporary SQLite file.
    """
    global engine
    if database_url.startswith("sqlite:///") and database_url != "sqlite:///:memory:":
        os.makedirs(os.path.dirname(database_url[len("sqlite:///"):]) or DATA_DIR, exist_ok=True)
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
    )
    SessionLocal.configure(bind=engine)
    return engine


def init_db():
    """Create all tables that do not exist yet."""
    # Import models so they register on Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def get_db_context():
    """
    Context manager for database sessions.
    Rolls back and raises StorageError on database failures, always closes.

    Usage:
        with get_db_context() as db:
            result = db.query(Model).all()
    """
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Database operation failed")
        raise StorageError(f"Database operation failed: {e}") from e
    finally:
        db.close()


def generate_id() -> str:
    """Opaque record id, unique within its table."""
    return uuid.uuid4().hex


configure_engine()
