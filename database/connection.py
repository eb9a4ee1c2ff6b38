"""
Database connection management for the CRM backend.
Handles SQLAlchemy engine creation, session management, and connection verification.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool

from config import get_config

logger = logging.getLogger(__name__)

DATABASE_URL = get_config().DATABASE_URL

# SQLAlchemy Base for model declarations
Base = declarative_base()

# Engine and SessionLocal are created lazily on first use
engine = None
SessionLocal = None


def get_engine():
    """Get or create the SQLAlchemy engine."""
    global engine

    if engine is not None:
        return engine

    if not DATABASE_URL:
        raise RuntimeError(
            "Database not configured. Set DATABASE_URL or the DB_HOST/DB_USER/DB_NAME variables."
        )

    try:
        engine = create_engine(
            DATABASE_URL,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,  # Verify connections before using
            pool_recycle=300,    # Recycle connections after 5 minutes
            echo=False
        )
        logger.info("Database engine created successfully")
        return engine
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}")
        raise RuntimeError(f"Failed to connect to database: {e}")


def get_session_factory():
    """Get or create the session factory."""
    global SessionLocal

    if SessionLocal is not None:
        return SessionLocal

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for a unit of work.
    Commits on success, rolls back on any exception and always closes.

    Example:
        with get_db_session() as db:
            customers = db.query(Customer).all()
    """
    session_factory = get_session_factory()
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection():
    """
    Verify that the database connection is working.
    Returns True if connection is successful, raises exception otherwise.
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("Database connection verified successfully")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise RuntimeError(f"Cannot connect to database: {e}")


def is_db_configured():
    """Check if a database URL is configured (without failing)."""
    return bool(DATABASE_URL)
