"""
Database Package - engine and session management.

Usage:
    >>> from genericdao.database import DatabaseEngine
    >>> engine = DatabaseEngine()
    >>> engine.initialize({"url": "sqlite:///:memory:"})
    >>> with engine.get_session() as session:
    ...     ...
"""

from .connection import DatabaseEngine, get_db_engine

__all__ = ["DatabaseEngine", "get_db_engine"]
