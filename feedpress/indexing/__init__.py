"""
FeedPress Indexing
==================

Search-indexing notifications: a retry-governed queue with database and
in-memory backends, and the notifier that calls the indexing API.
"""

from .queue import IndexingQueue, DrainResult, article_url
from .database_queue import DatabaseIndexingQueue
from .memory_queue import InMemoryQueueState, MemoryIndexingQueue
from .notifier import IndexingNotifier
from .stats import DatabaseIndexingStats, MemoryIndexingStats
from .factory import create_indexing_queue, resolve_backend

__all__ = [
    "IndexingQueue",
    "DrainResult",
    "article_url",
    "DatabaseIndexingQueue",
    "InMemoryQueueState",
    "MemoryIndexingQueue",
    "IndexingNotifier",
    "DatabaseIndexingStats",
    "MemoryIndexingStats",
    "create_indexing_queue",
    "resolve_backend",
]
