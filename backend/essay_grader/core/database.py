"""
Database configuration and session management.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from essay_grader.core.config import get_database_path

# Create SQLAlchemy base class for models
Base = declarative_base()

# Database engine (will be initialized on first use)
_engine = None
_SessionLocal = None


def get_engine():
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        database_url = f"sqlite:///{get_database_path()}"
        _engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False,
        )
    return _engine


def get_session_local():
    """Get or create the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


def init_db(engine=None):
    """
    Create all tables. Safe to call repeatedly.
    """
    # Import all models to ensure they are registered with Base
    from essay_grader.models import store_entry  # noqa: F401

    Base.metadata.create_all(bind=engine or get_engine())
