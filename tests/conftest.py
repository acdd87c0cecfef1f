"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for FeedPress tests.

- Temporary file database per test, schema created once per test
- Repository fixtures bound to that database
- In-process fakes for the feed fetcher and the indexing notifier so no
  test touches the network
"""

import pytest
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["FEEDPRESS_ENVIRONMENT"] = "test"
os.environ["FEEDPRESS_LOGGING__CONSOLE_LOGGING"] = "false"
os.environ.pop("FEEDPRESS_AI__GEMINI_API_KEY", None)
os.environ.pop("FEEDPRESS_AI__GROQ_API_KEY", None)
os.environ.pop("FEEDPRESS_AI__OPENROUTER_API_KEY", None)

SITE_URL = "https://news.example.com"
PLACEHOLDER_IMAGE = "https://cdn.example.com/placeholder.png"
LONG_BODY = (
    "<p>The city council approved a new transit plan on Tuesday after months of debate. "
    "The plan adds three bus lines, extends service hours and funds a study of light rail "
    "along the river corridor.</p>"
)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def temp_db_path(tmp_path):
    """Path of a freshly created database with the full schema."""
    from feedpress.database.schema import DatabaseSchema

    db_path = tmp_path / "feedpress_test.db"
    DatabaseSchema(str(db_path)).create_tables()
    return str(db_path)


@pytest.fixture
def db_connection(temp_db_path):
    """Create a database connection manager for testing."""
    from feedpress.database.connection import DatabaseConnection

    connection = DatabaseConnection(temp_db_path, pool_size=2)
    yield connection

    # Cleanup connections
    connection.close_all_connections()


@pytest.fixture
def feed_repository(db_connection):
    from feedpress.storage.feed_repository import FeedRepository

    return FeedRepository(db_connection)


@pytest.fixture
def article_repository(db_connection):
    from feedpress.storage.article_repository import ArticleRepository

    return ArticleRepository(db_connection)


@pytest.fixture
def category_repository(db_connection):
    from feedpress.storage.category_repository import CategoryRepository

    return CategoryRepository(db_connection)


@pytest.fixture
def categories(category_repository):
    """Technology, Sports and Politics, in that display order."""
    from feedpress.database.models import Category

    for order, (name, description) in enumerate([
        ("Technology", "Software, hardware and the internet"),
        ("Sports", "Games, teams and athletes"),
        ("Politics", "Government and elections"),
    ]):
        category_repository.create_category(
            Category(name=name, description=description, display_order=order)
        )
    return category_repository.get_active_categories()


@pytest.fixture
def make_feed(feed_repository):
    """Create and persist a feed source; keyword arguments override defaults."""
    from feedpress.database.models import FeedSource, FeedSourceSettings

    counter = {"n": 0}

    def factory(**overrides):
        counter["n"] += 1
        settings = overrides.pop("settings", {})
        data = dict(
            name=f"Test Feed {counter['n']}",
            feed_url=f"https://feeds.example.com/{counter['n']}/rss.xml",
            default_author="Newsroom",
            min_content_length=100,
            max_posts_per_day=5,
        )
        data.update(overrides)
        feed = FeedSource(settings=FeedSourceSettings(**settings), **data)
        feed.id = feed_repository.create_feed(feed)
        return feed_repository.get_feed_by_id(feed.id)

    return factory


@pytest.fixture
def make_article(article_repository):
    """Create and persist an article, returning its ID."""
    from feedpress.database.models import Article, ArticleStatus

    def factory(title="Stored article", **overrides):
        data = dict(
            slug=article_repository.generate_unique_slug(title),
            title=title,
            content="Body text",
            status=ArticleStatus.PUBLISHED,
        )
        data.update(overrides)
        return article_repository.create_article(Article(**data))

    return factory


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings(temp_db_path):
    """Settings bound to the temporary database with indexing enabled."""
    from feedpress.config.settings import FeedPressSettings

    return FeedPressSettings(
        database={"path": temp_db_path, "pool_size": 2},
        logging={"file_path": None, "console_logging": False},
        fetch={"placeholder_image_url": PLACEHOLDER_IMAGE},
        indexing={
            "enabled": True,
            "site_url": SITE_URL,
            "queue_backend": "database",
            "rate_limit_delay": 0.0,
            "max_retries": 3,
        },
        scheduler={"ai_request_delay": 0.0},
    )


# ============================================================================
# Fakes
# ============================================================================


class FakeNotifier:
    """Records notifications; raises queued failures per URL."""

    def __init__(self):
        self.calls = []
        self.failures = {}
        self.always_fail = None

    def fail_next(self, url, *errors):
        self.failures.setdefault(url, []).extend(errors)

    async def notify(self, url, notification_type="updated"):
        from feedpress.database.models import NotificationType

        self.calls.append((url, NotificationType(notification_type)))
        if self.always_fail is not None:
            raise self.always_fail
        pending = self.failures.get(url)
        if pending:
            raise pending.pop(0)
        return {}

    def get_stats(self, enabled):
        return {"enabled": enabled, "totalIndexed": len(self.calls), "errorCounts": {}}


class FakeFetcher:
    """Serves canned raw items per feed URL; an exception value is raised."""

    def __init__(self, feeds=None):
        self.feeds = dict(feeds or {})
        self.calls = []

    async def fetch(self, feed_url):
        from feedpress.ingestion.feed_fetcher import FeedShape, FetchedFeed

        self.calls.append(feed_url)
        outcome = self.feeds.get(feed_url, [])
        if isinstance(outcome, Exception):
            raise outcome
        return FetchedFeed(url=feed_url, shape=FeedShape.RSS, items=list(outcome), title="Fake feed")


@pytest.fixture
def fake_notifier():
    return FakeNotifier()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def raw_item():
    """Build a feedparser-style raw item with a media image."""

    def factory(title, link=None, body=LONG_BODY, image="https://cdn.example.com/photo.jpg"):
        item = {
            "title": title,
            "link": link or f"https://source.example.com/{abs(hash(title))}",
            "description": body,
            "published": "Tue, 10 Jun 2025 08:30:00 GMT",
        }
        if image:
            item["media_content"] = [{"url": image, "type": "image/jpeg"}]
        return item

    return factory


@pytest.fixture
def extractor():
    from feedpress.ingestion.content_extractor import ContentExtractor

    extractor = ContentExtractor(placeholder_image_url=PLACEHOLDER_IMAGE)
    # Items without an image would otherwise fetch the article page
    extractor._fetch_page_html = AsyncMock(return_value=None)
    return extractor


@pytest.fixture
def publish_gate(test_settings, feed_repository, article_repository, category_repository,
                 fake_fetcher, extractor, db_connection, fake_notifier):
    """Publish gate with keyword-only classification and a database queue."""
    from feedpress.ai.ai_manager import AIManager
    from feedpress.indexing.database_queue import DatabaseIndexingQueue
    from feedpress.processing.category_classifier import create_classifier
    from feedpress.processing.content_rewriter import ContentRewriter
    from feedpress.processing.publish_gate import PublishGate

    ai_manager = AIManager(providers=[])
    queue = DatabaseIndexingQueue(db_connection, fake_notifier, rate_limit_delay=0.0, auto_drain=False)
    return PublishGate(
        settings=test_settings,
        feed_repository=feed_repository,
        article_repository=article_repository,
        category_repository=category_repository,
        fetcher=fake_fetcher,
        extractor=extractor,
        classifier=create_classifier(ai_manager),
        rewriter=ContentRewriter(ai_manager),
        indexing_queue=queue,
        image_checker=AsyncMock(return_value=True),
        sleep=AsyncMock(),
    )


@pytest.fixture
async def app(test_settings, db_connection, fake_notifier, fake_fetcher, extractor):
    """Fully wired application with network-facing pieces replaced by fakes."""
    from feedpress.ai.ai_manager import AIManager
    from feedpress.app import FeedPressApp

    application = FeedPressApp(
        settings=test_settings,
        db_connection=db_connection,
        ai_manager=AIManager(providers=[]),
        notifier=fake_notifier,
        auto_drain=False,
    )
    application.publish_gate.fetcher = fake_fetcher
    application.publish_gate.extractor = extractor
    application.publish_gate.image_checker = AsyncMock(return_value=True)
    application.admin.fetcher = fake_fetcher
    application.admin.extractor = extractor
    yield application

    await application.scheduler.stop()
    await application.indexing_queue.wait_idle()
