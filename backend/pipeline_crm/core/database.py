"""
Database connection and session management.

Provides SQLAlchemy engine, session factory, and dependency injection
for database sessions in FastAPI endpoints.
"""

from datetime import datetime, timezone
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool

from .config import settings


# =============================================================================
# SQLAlchemy Base
# =============================================================================

Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware UTC now, used for every timestamp the app writes."""
    return datetime.now(timezone.utc)


# =============================================================================
# Engine Configuration
# =============================================================================

def get_engine_url() -> str:
    """
    Get the configured database URL.

    Returns:
        Database connection URL string
    """
    return settings.database_url


def _build_engine():
    if settings.is_sqlite:
        # Local runs and the test suite share one in-process connection
        return create_engine(
            get_engine_url(),
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.debug,
        )

    return create_engine(
        get_engine_url(),
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        poolclass=QueuePool,
        pool_pre_ping=True,  # Enable connection health checks
        pool_recycle=settings.db_pool_recycle,
        pool_timeout=settings.db_pool_timeout,
        echo=settings.debug,  # Log SQL queries in debug mode
    )


# Create SQLAlchemy engine with a bounded connection pool
engine = _build_engine()


# =============================================================================
# Session Factory
# =============================================================================

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# =============================================================================
# Event Listeners for Connection Management
# =============================================================================

@event.listens_for(engine, "connect")
def set_connection_settings(dbapi_connection, connection_record):
    """
    Configure connection settings when a new connection is created.

    Sets timezone and statement timeout so a stuck transaction cannot
    hold a pooled connection forever.
    """
    cursor = dbapi_connection.cursor()
    if settings.is_sqlite:
        # ON DELETE CASCADE / SET NULL are off by default in SQLite
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        return

    cursor.execute("SET timezone='UTC'")
    cursor.execute(f"SET statement_timeout = '{settings.db_statement_timeout}'")
    cursor.close()


# =============================================================================
# Dependency Injection
# =============================================================================

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database session injection.

    Creates a new session for each request and ensures proper cleanup.

    Yields:
        SQLAlchemy Session instance

    Example:
        @router.get("/leads/pool")
        def get_pool(db: Session = Depends(get_db)):
            return db.query(Lead).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Database Utilities
# =============================================================================

def init_db() -> None:
    """
    Initialize database tables.

    Creates all tables defined in models. Intended for development and tests;
    production schemas are managed by migrations.
    """
    from .. import models  # noqa: F401  (registers every table on Base.metadata)

    Base.metadata.create_all(bind=engine)

