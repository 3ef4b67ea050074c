"""
Database transaction management utilities.

Provides a context manager for safe database transactions
with automatic rollback on error.

Usage:
    with transaction(db):
        # Multiple database operations
        # All succeed or all roll back
        db.add(contact)
        db.add(log_entry)
        # Automatically commits on success, rolls back on error
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session

from .exceptions import CRMError


logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    Context manager for database transactions with automatic rollback.

    Ensures that all database operations within the context succeed together
    or all fail together. Automatically commits on success, rolls back on error.

    Args:
        db: SQLAlchemy database session

    Yields:
        The same database session

    Raises:
        Any exception raised within the context

    Example:
        ```python
        with transaction(db):
            db.add(contact)
            db.add(log_entry)
            # Both succeed or both roll back
        ```
    """
    try:
        yield db
        db.commit()
        logger.debug("Transaction committed")
    except CRMError as e:
        # Expected outcomes (conflict, not found, quota) are not server errors
        db.rollback()
        logger.info(f"Transaction rolled back: {e.code}")
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Transaction rolled back due to error: {e}")
        raise

