"""
FeedPress Database Layer
========================

SQLite connection pooling, schema management and data models.
"""

from .connection import DatabaseConnection, get_db_manager
from .schema import DatabaseSchema

__all__ = ["DatabaseConnection", "get_db_manager", "DatabaseSchema"]
