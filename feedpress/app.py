"""
FeedPress Application
=====================

Composition root: builds every component once from settings and owns the
shared state (database pool, in-memory queue state, scheduler lifecycle).
"""

from typing import Optional

from .ai.ai_manager import AIManager
from .config.settings import FeedPressSettings, get_settings
from .database.connection import DatabaseConnection
from .database.schema import DatabaseSchema
from .indexing.factory import create_indexing_queue, create_stats, resolve_backend
from .indexing.memory_queue import InMemoryQueueState
from .indexing.notifier import IndexingNotifier
from .ingestion.content_extractor import ContentExtractor
from .ingestion.feed_fetcher import FeedFetcher
from .ingestion.image_check import ImageChecker
from .processing.category_classifier import create_classifier
from .processing.content_rewriter import ContentRewriter
from .processing.publish_gate import PublishGate
from .scheduler.feed_scheduler import FeedScheduler
from .services.admin_service import AdminService
from .storage.article_repository import ArticleRepository
from .storage.category_repository import CategoryRepository
from .storage.feed_repository import FeedRepository
from .utils.logging import get_logger_for_component


class FeedPressApp:
    """Wires the pipeline together for one process."""

    def __init__(
        self,
        settings: Optional[FeedPressSettings] = None,
        db_connection: Optional[DatabaseConnection] = None,
        ai_manager: Optional[AIManager] = None,
        notifier: Optional[IndexingNotifier] = None,
        auto_drain: bool = True,
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger_for_component("app")

        self.db = db_connection or DatabaseConnection(
            self.settings.database.path, self.settings.database.pool_size
        )
        self.feed_repository = FeedRepository(self.db)
        self.article_repository = ArticleRepository(self.db)
        self.category_repository = CategoryRepository(self.db)

        self.ai_manager = ai_manager if ai_manager is not None else AIManager(self.settings.ai)
        self.classifier = create_classifier(self.ai_manager)
        self.rewriter = ContentRewriter(self.ai_manager)

        self.fetcher = FeedFetcher.from_settings(self.settings)
        self.extractor = ContentExtractor.from_settings(self.settings)
        self.image_checker = ImageChecker.from_settings(self.settings)

        backend = resolve_backend(self.settings)
        self.queue_state = InMemoryQueueState()
        self.notifier = notifier or IndexingNotifier.from_settings(
            self.settings, stats=create_stats(backend, self.db)
        )
        self.indexing_queue = create_indexing_queue(
            self.settings,
            db_connection=self.db,
            notifier=self.notifier,
            memory_state=self.queue_state,
            auto_drain=auto_drain,
        )

        self.publish_gate = PublishGate(
            settings=self.settings,
            feed_repository=self.feed_repository,
            article_repository=self.article_repository,
            category_repository=self.category_repository,
            fetcher=self.fetcher,
            extractor=self.extractor,
            classifier=self.classifier,
            rewriter=self.rewriter,
            indexing_queue=self.indexing_queue,
            image_checker=self.image_checker,
        )
        self.scheduler = FeedScheduler(self.settings, self.feed_repository, self.publish_gate)
        self.admin = AdminService(
            settings=self.settings,
            feed_repository=self.feed_repository,
            category_repository=self.category_repository,
            scheduler=self.scheduler,
            indexing_queue=self.indexing_queue,
            notifier=self.notifier,
            fetcher=self.fetcher,
            extractor=self.extractor,
            classifier=self.classifier,
        )

    def initialize_database(self) -> None:
        DatabaseSchema(self.settings.database.path).create_tables()

    async def start(self) -> None:
        """Start the periodic triggers and pick up work left in the queue."""
        self.scheduler.start()
        if self.settings.indexing.enabled:
            self.indexing_queue.schedule_drain()

    async def shutdown(self) -> None:
        await self.scheduler.stop()
        await self.indexing_queue.wait_idle()
        self.db.close_all_connections()
        self.logger.info("FeedPress stopped")
