"""Database connection and session management."""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from chainagg.config.settings import get_settings
from chainagg.data.models import Base

logger = logging.getLogger(__name__)

# Global engine and session factory
_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine(url: str | None = None) -> Engine:
    """
    Get the database engine.

    Creates the engine on first call using settings.

    Args:
        url: Optional database URL overriding the configured one
            (only used on first call)

    Returns:
        Engine instance
    """
    global _engine
    if _engine is None:
        settings = get_settings()
        url = url or settings.database.sync_url
        kwargs = {"echo": settings.database.echo, "pool_pre_ping": True}
        if not url.startswith("sqlite"):
            kwargs.update(pool_size=10, max_overflow=20)
        _engine = create_engine(url, **kwargs)
        logger.info(f"Database engine created: {_engine.url.render_as_string()}")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """
    Get the session factory.

    Returns:
        Session factory for creating database sessions
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            get_engine(),
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Get a database session.

    Usage:
        with get_session() as session:
            result = session.execute(...)

    Yields:
        Session instance
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine | None = None) -> None:
    """
    Initialize the database.

    Creates all tables if they don't exist.
    """
    Base.metadata.create_all(engine or get_engine())
    logger.info("Database tables created")


def close_db() -> None:
    """Close database connections."""
    global _engine, _session_factory
    if _engine:
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connections closed")


def check_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        True if connection is successful
    """
    try:
        with get_session() as session:
            session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
