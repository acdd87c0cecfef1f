"""
Admin Service
=============

Operator-facing operations shared by the CLI and any admin surface:

- queue status, recent items, clear, retry failed, drain now
- sweep one feed or all active feeds now
- feed URL test without publishing
- category identification test
- indexing statistics and feed error-log maintenance
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config.settings import FeedPressSettings
from ..indexing.notifier import IndexingNotifier
from ..indexing.queue import IndexingQueue
from ..ingestion.content_extractor import ContentExtractor
from ..ingestion.feed_fetcher import FeedFetcher
from ..processing.category_classifier import Classifier
from ..scheduler.feed_scheduler import FeedScheduler
from ..storage.category_repository import CategoryRepository
from ..storage.feed_repository import FeedRepository
from ..utils.exceptions import FeedPressError, ValidationError
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator

SAMPLE_SIZE = 3


@dataclass
class FeedTestSummary:
    """Result of testing a feed URL."""

    url: str
    success: bool
    title: Optional[str] = None
    item_count: int = 0
    error_message: Optional[str] = None
    sample_items: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "success": self.success,
            "title": self.title,
            "totalItems": self.item_count,
            "error": self.error_message,
            "sampleItems": list(self.sample_items),
        }


class AdminService:
    """Manual controls over feeds and the indexing queue."""

    def __init__(
        self,
        settings: FeedPressSettings,
        feed_repository: FeedRepository,
        category_repository: CategoryRepository,
        scheduler: FeedScheduler,
        indexing_queue: IndexingQueue,
        notifier: IndexingNotifier,
        fetcher: FeedFetcher,
        extractor: ContentExtractor,
        classifier: Classifier,
    ):
        self.settings = settings
        self.feed_repository = feed_repository
        self.category_repository = category_repository
        self.scheduler = scheduler
        self.indexing_queue = indexing_queue
        self.notifier = notifier
        self.fetcher = fetcher
        self.extractor = extractor
        self.classifier = classifier
        self.logger = get_logger_for_component("admin_service")

    # Queue controls

    async def get_queue_status(self) -> Dict[str, Any]:
        return await self.indexing_queue.get_status()

    async def get_queue_items(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return await self.indexing_queue.get_items(limit)

    async def clear_queue(self) -> int:
        return await self.indexing_queue.clear()

    async def retry_failed(self) -> int:
        return await self.indexing_queue.retry_failed()

    async def drain_queue(self) -> Dict[str, Any]:
        result = await self.indexing_queue.drain()
        return {
            "alreadyRunning": result.already_running,
            "completed": result.completed,
            "retried": result.retried,
            "failed": result.failed,
            "recovered": result.recovered,
            "errors": list(result.errors),
        }

    def get_indexing_stats(self) -> Dict[str, Any]:
        return self.notifier.get_stats(enabled=self.settings.indexing.enabled)

    # Feed controls

    async def sweep_feed(self, feed_id: int) -> Dict[str, Any]:
        return await self.scheduler.sweep_feed(feed_id)

    async def sweep_all(self) -> Dict[str, Any]:
        return await self.scheduler.run_sweep()

    def daily_reset(self) -> int:
        return self.scheduler.run_daily_reset()

    def clear_feed_log(self, feed_id: int) -> bool:
        cleared = self.feed_repository.clear_error_log(feed_id)
        if cleared:
            self.logger.info(f"Cleared error log of feed {feed_id}")
        return cleared

    async def test_feed(self, url: str) -> FeedTestSummary:
        """Fetch and extract a feed without publishing anything."""
        try:
            url = URLValidator.validate_feed_url(url)
            fetched = await self.fetcher.fetch(url)
        except FeedPressError as e:
            self.logger.info(f"Feed test failed for {url}: {e.message}")
            return FeedTestSummary(url=url, success=False, error_message=e.message)

        samples = []
        for raw_item in fetched.items[:SAMPLE_SIZE]:
            try:
                candidate = await self.extractor.extract(raw_item, url)
            except ValidationError as e:
                samples.append({"error": e.message})
                continue
            samples.append({
                "title": candidate.title,
                "link": candidate.link,
                "publishedDate": candidate.published_date.isoformat() if candidate.published_date else None,
                "image": candidate.image,
                "hasRealImage": candidate.has_real_image,
                "contentPreview": candidate.content_preview,
            })

        return FeedTestSummary(
            url=url,
            success=True,
            title=fetched.title,
            item_count=fetched.item_count,
            sample_items=samples,
        )

    async def test_category(self, title: str, content: str) -> Dict[str, Any]:
        """Classify a title/body pair against the active categories."""
        if not title or not content:
            raise ValidationError("Title and content are required", field_name="content")

        categories = self.category_repository.get_active_categories()
        if not categories:
            raise ValidationError("No active categories available", field_name="category")

        result = await self.classifier.classify(title, content, categories)
        return {
            "category": result.category.name,
            "categoryId": result.category.id,
            "confidence": result.confidence,
            "method": result.method,
        }
