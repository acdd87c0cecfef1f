"""
End-to-end sweep through the wired application: fetch, extract, gate,
classify, store, enqueue and notify, with only the network replaced.
"""

import pytest

from feedpress.database.models import ArticleStatus, QueueStatus
from feedpress.utils.exceptions import FetchError

SITE_URL = "https://news.example.com"


@pytest.fixture
def two_feeds(make_feed, fake_fetcher, raw_item, categories):
    broken = make_feed(name="Broken Feed")
    healthy = make_feed(name="Healthy Feed", settings={"enable_ai_rewrite": False})
    fake_fetcher.feeds[broken.feed_url] = FetchError("Failed to fetch feed, status: 503", feed_url=broken.feed_url)
    fake_fetcher.feeds[healthy.feed_url] = [raw_item("Council approves transit plan")]
    return broken, healthy


class TestFeedSweep:
    """Sweep of several feeds where one of them is down."""

    @pytest.mark.asyncio
    async def test_one_failing_feed_does_not_block_others(self, app, two_feeds, feed_repository,
                                                          article_repository, fake_notifier):
        broken, healthy = two_feeds

        summary = await app.admin.sweep_all()

        assert summary["feeds"] == 2
        assert summary["processed"] == 1
        assert summary["published"] == 1
        assert summary["failedFeeds"] == 1

        assert article_repository.get_article_count() == 1
        article = article_repository.find_by_title("Council approves transit plan")
        assert article.status == ArticleStatus.PUBLISHED
        assert article.feed_source_id == healthy.id
        assert article.author == "Newsroom"
        assert article.slug == "council-approves-transit-plan"

        broken_log = feed_repository.get_feed_by_id(broken.id).error_log
        assert [entry.message for entry in broken_log] == ["Processing error: Failed to fetch feed, status: 503"]

        stored = feed_repository.get_feed_by_id(healthy.id)
        assert stored.posts_published_today == 1
        assert stored.total_posts_published == 1
        assert stored.error_log == []

        await app.admin.drain_queue()
        assert fake_notifier.calls[0][0] == f"{SITE_URL}/article/council-approves-transit-plan"
        items = await app.admin.get_queue_items()
        assert items[0]["status"] == QueueStatus.COMPLETED.value

    @pytest.mark.asyncio
    async def test_second_sweep_skips_duplicates(self, app, two_feeds, article_repository):
        await app.admin.sweep_all()
        summary = await app.admin.sweep_all()

        assert summary["processed"] == 0
        assert article_repository.get_article_count() == 1

    @pytest.mark.asyncio
    async def test_sweep_single_feed(self, app, two_feeds, article_repository):
        _, healthy = two_feeds

        result = await app.admin.sweep_feed(healthy.id)

        assert result["processed"] == 1
        assert article_repository.get_article_count() == 1

    @pytest.mark.asyncio
    async def test_daily_reset_after_sweep(self, app, two_feeds, feed_repository):
        _, healthy = two_feeds
        await app.admin.sweep_all()

        # same UTC day, nothing to reset
        assert app.admin.daily_reset() == 0
        assert feed_repository.get_feed_by_id(healthy.id).posts_published_today == 1
