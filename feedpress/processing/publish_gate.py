"""
Publish Gate
============

Per-feed pipeline pass: quota handling, content gates, classification,
optional rewrite, SEO fields, article creation and indexing enqueue.
Per-item failures go to the feed's rolling log and never abort the pass;
only storage unavailability reaches the caller.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from .category_classifier import Classifier
from .content_rewriter import ContentRewriter
from .seo import build_excerpt, extract_tags, seo_description, seo_title
from ..config.settings import FeedPressSettings
from ..database.models import (
    Article,
    ArticleStatus,
    CandidateItem,
    Category,
    FeedSource,
    NotificationType,
    utc_now,
)
from ..indexing.queue import IndexingQueue, article_url
from ..ingestion.content_cleaner import source_attribution
from ..ingestion.content_extractor import ContentExtractor
from ..ingestion.feed_fetcher import FeedFetcher
from ..storage.article_repository import ArticleRepository
from ..storage.category_repository import CategoryRepository
from ..storage.feed_repository import FeedRepository
from ..utils.exceptions import (
    DuplicateError,
    ErrorCode,
    QuotaExceeded,
    StorageUnavailableError,
    ValidationError,
)
from ..utils.logging import get_logger_for_component

SECONDS_PER_MINUTE = 60


@dataclass
class FeedProcessResult:
    """Counters for one feed pass."""

    feed_id: Optional[int]
    feed_name: str
    processed: int = 0
    published: int = 0
    skipped: int = 0
    items_seen: int = 0
    quota_reached: bool = False
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feedId": self.feed_id,
            "feedName": self.feed_name,
            "processed": self.processed,
            "published": self.published,
            "skipped": self.skipped,
            "itemsSeen": self.items_seen,
            "quotaReached": self.quota_reached,
            "errors": list(self.errors),
        }


class PublishGate:
    """Turns one feed's items into articles."""

    def __init__(
        self,
        settings: FeedPressSettings,
        feed_repository: FeedRepository,
        article_repository: ArticleRepository,
        category_repository: CategoryRepository,
        fetcher: FeedFetcher,
        extractor: ContentExtractor,
        classifier: Classifier,
        rewriter: ContentRewriter,
        indexing_queue: Optional[IndexingQueue] = None,
        image_checker: Optional[Callable[[str], Awaitable[bool]]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings
        self.feed_repository = feed_repository
        self.article_repository = article_repository
        self.category_repository = category_repository
        self.fetcher = fetcher
        self.extractor = extractor
        self.classifier = classifier
        self.rewriter = rewriter
        self.indexing_queue = indexing_queue
        self.image_checker = image_checker
        self._sleep = sleep
        self.logger = get_logger_for_component("publish_gate")

    async def process_feed(self, feed: FeedSource) -> FeedProcessResult:
        """Run one pass over ``feed``.

        Raises:
            FetchError: the feed could not be retrieved or parsed
            StorageUnavailableError: feed or article storage failed
        """
        result = FeedProcessResult(feed_id=feed.id, feed_name=feed.name)
        logger = get_logger_for_component("publish_gate", feed_id=str(feed.id))

        if feed.reset_daily_count_if_needed():
            logger.info(f"Daily counter reset for {feed.name}")
            self.feed_repository.save_runtime_state(feed)

        if not feed.can_publish_today():
            logger.info(f"Feed {feed.name} has reached daily limit ({feed.max_posts_per_day})")
            result.quota_reached = True
            return result

        fetched = await self.fetcher.fetch(feed.feed_url)
        result.items_seen = fetched.item_count
        categories = self.category_repository.get_active_categories()

        for raw_item in fetched.items:
            try:
                if not feed.can_publish_today():
                    raise QuotaExceeded(f"Daily limit of {feed.max_posts_per_day} reached", feed_id=feed.id)
                article = await self.process_item(feed, raw_item, categories)
            except QuotaExceeded:
                result.quota_reached = True
                break
            except DuplicateError as e:
                logger.debug(str(e))
                result.skipped += 1
                continue
            except StorageUnavailableError:
                raise
            except Exception as e:
                message = getattr(e, "message", None) or str(e)
                feed.add_log_entry(f"Error processing item: {message}")
                result.errors.append(message)
                logger.warning(f"Error processing item: {message}")
                continue

            if article is None:
                result.skipped += 1
                continue

            result.processed += 1
            if article.status == ArticleStatus.PUBLISHED:
                result.published += 1

            delay = feed.settings.publish_delay
            if delay > 0 and feed.can_publish_today():
                await self._sleep(delay * SECONDS_PER_MINUTE)

        feed.last_fetched = utc_now()
        self.feed_repository.save_runtime_state(feed)
        logger.info(
            f"Processed feed {feed.name}: {result.processed} created, "
            f"{result.published} published, {result.skipped} skipped"
        )
        return result

    async def process_item(
        self,
        feed: FeedSource,
        raw_item: Mapping[str, Any],
        categories: List[Category],
    ) -> Optional[Article]:
        """Gate and publish one raw item.

        Returns:
            The created article, or None when a content gate skipped the item

        Raises:
            DuplicateError: an article with the same title or source exists
            ValidationError: malformed item or no category to assign
        """
        candidate = await self.extractor.extract(raw_item, feed.feed_url)

        if not await self.passes_content_gates(feed, candidate):
            return None

        if self.article_repository.find_by_title(candidate.title):
            raise DuplicateError(f"Skipping duplicate article: {candidate.title}", feed_id=feed.id)
        if self.article_repository.find_by_source_url(candidate.link):
            raise DuplicateError(f"Skipping already imported link: {candidate.link}", feed_id=feed.id)

        category = await self.choose_category(feed, candidate, categories)
        content = await self.build_content(feed, candidate)

        auto_publish = feed.settings.auto_publish
        now = utc_now()
        article = Article(
            slug=self.article_repository.generate_unique_slug(candidate.title),
            title=candidate.title,
            content=content,
            excerpt=build_excerpt(content),
            category_id=category.id,
            author=feed.default_author,
            featured_image=candidate.image,
            status=ArticleStatus.PUBLISHED if auto_publish else ArticleStatus.DRAFT,
            tags=extract_tags(candidate.title, candidate.content),
            seo_title=seo_title(candidate.title),
            seo_description=seo_description(content),
            source_url=candidate.link,
            feed_source_id=feed.id,
            published_at=now if auto_publish else None,
            created_at=now,
        )
        article.id = self.article_repository.create_article(article)

        feed.record_publish(now)
        self.feed_repository.save_runtime_state(feed)
        self.logger.info(f"Created {article.status.value} article '{article.title[:60]}' in {category.name}")

        if article.status == ArticleStatus.PUBLISHED:
            await self.enqueue_indexing(article)
        return article

    async def passes_content_gates(self, feed: FeedSource, candidate: CandidateItem) -> bool:
        if len(candidate.content) < feed.min_content_length:
            self.logger.debug(f"Too short ({len(candidate.content)} < {feed.min_content_length}): {candidate.title[:60]}")
            return False

        if feed.settings.require_image:
            if not candidate.has_real_image:
                self.logger.debug(f"No image found: {candidate.title[:60]}")
                return False
            if self.image_checker is not None and not await self.image_checker(candidate.image):
                self.logger.debug(f"Image not reachable ({candidate.image}): {candidate.title[:60]}")
                return False

        return True

    async def choose_category(self, feed: FeedSource, candidate: CandidateItem,
                              categories: List[Category]) -> Category:
        if not categories:
            raise ValidationError("No active categories available", field_name="category",
                                  error_code=ErrorCode.VALIDATION_REQUIRED_FIELD)

        if not (self.settings.features.auto_category_enabled and feed.settings.enable_auto_category):
            return categories[0]

        classification = await self.classifier.classify(candidate.title, candidate.content, categories)
        self.logger.debug(
            f"Category for '{candidate.title[:60]}': {classification.category.name}",
            extra={"confidence": classification.confidence, "method": classification.method},
        )
        return classification.category

    async def build_content(self, feed: FeedSource, candidate: CandidateItem) -> str:
        content = candidate.content
        if self.settings.features.ai_rewrite_enabled and feed.settings.enable_ai_rewrite:
            content = await self.rewriter.rewrite(content, feed.settings.ai_rewrite_style)
            await self._sleep(self.settings.scheduler.ai_request_delay)

        if feed.settings.include_original_source and candidate.link:
            content += source_attribution(candidate.link)
        return content

    async def enqueue_indexing(self, article: Article) -> None:
        indexing = self.settings.indexing
        if not indexing.enabled or self.indexing_queue is None:
            return
        if not indexing.site_url:
            self.logger.warning("Indexing enabled without a site URL, skipping enqueue")
            return

        await self.indexing_queue.enqueue(
            article.id,
            article_url(indexing.site_url, article.slug),
            NotificationType.UPDATED,
            article_title=article.title,
        )
