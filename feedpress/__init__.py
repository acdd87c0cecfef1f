"""
FeedPress - Feed Ingestion and Indexing Pipeline
================================================

Turns syndication feeds into published articles and notifies a search
indexing service about the URLs that changed.

Main Components:
- Database: SQLite with connection pooling and schema management
- Configuration: environment variables with Pydantic validation
- Ingestion: feed fetching, shape detection, content and image extraction
- Processing: category classification, AI rewriting, publish gating
- Indexing: retry-governed notification queue with swappable storage
- Scheduler: periodic sweeps and daily quota resets
"""

__version__ = "1.0.0"
__author__ = "FeedPress Development Team"
__description__ = "Feed ingestion and search indexing pipeline"

from .config.settings import get_settings
from .database.connection import get_db_manager
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import FeedPressError

__all__ = [
    "get_settings",
    "get_db_manager",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "FeedPressError",
]
