"""
Queue backend selection.

Callers receive an ``IndexingQueue`` and never branch on which backend
backs it.
"""

from typing import Optional

from .database_queue import DatabaseIndexingQueue
from .memory_queue import InMemoryQueueState, MemoryIndexingQueue
from .notifier import IndexingNotifier
from .queue import IndexingQueue
from .stats import DatabaseIndexingStats, IndexingStats, MemoryIndexingStats
from ..config.settings import FeedPressSettings, QueueBackend
from ..database.connection import DatabaseConnection
from ..utils.logging import get_logger_for_component

logger = get_logger_for_component("indexing_factory")


def resolve_backend(settings: FeedPressSettings) -> QueueBackend:
    """Concrete backend for the configured strategy.

    ``auto`` keeps the queue in memory in production and in the database
    everywhere else.
    """
    backend = settings.indexing.queue_backend
    if backend != QueueBackend.AUTO:
        return backend
    return QueueBackend.MEMORY if settings.is_production_mode() else QueueBackend.DATABASE


def create_stats(backend: QueueBackend, db_connection: Optional[DatabaseConnection]) -> IndexingStats:
    if backend == QueueBackend.DATABASE and db_connection is not None:
        return DatabaseIndexingStats(db_connection)
    return MemoryIndexingStats()


def create_indexing_queue(
    settings: FeedPressSettings,
    db_connection: Optional[DatabaseConnection] = None,
    notifier: Optional[IndexingNotifier] = None,
    memory_state: Optional[InMemoryQueueState] = None,
    auto_drain: bool = True,
) -> IndexingQueue:
    """Build the queue and, unless given, its notifier."""
    backend = resolve_backend(settings)
    if backend == QueueBackend.DATABASE and db_connection is None:
        logger.warning("No database connection for the indexing queue, using memory backend")
        backend = QueueBackend.MEMORY

    if notifier is None:
        notifier = IndexingNotifier.from_settings(settings, stats=create_stats(backend, db_connection))

    options = dict(
        max_retries=settings.indexing.max_retries,
        rate_limit_delay=settings.indexing.rate_limit_delay,
        listing_limit=settings.indexing.listing_limit,
        auto_drain=auto_drain,
    )

    logger.info(f"Using {backend.value} indexing queue backend")
    if backend == QueueBackend.DATABASE:
        return DatabaseIndexingQueue(db_connection, notifier, **options)
    return MemoryIndexingQueue(notifier, state=memory_state, **options)
