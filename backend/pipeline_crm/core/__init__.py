"""
Core module for the Pipeline CRM backend.

Contains configuration, database setup, transactions, and security utilities.
"""

from .config import settings
from .database import get_db, engine, SessionLocal

__all__ = ["settings", "get_db", "engine", "SessionLocal"]
