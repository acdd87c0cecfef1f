"""
Tests for the operator-facing AdminService.
"""

import pytest

from feedpress.utils.exceptions import FetchError, ValidationError

FEED_URL = "https://feeds.example.com/admin/rss.xml"


class TestFeedTest:
    """Test suite for AdminService.test_feed."""

    @pytest.mark.asyncio
    async def test_reports_sample_items(self, app, fake_fetcher, raw_item, article_repository):
        fake_fetcher.feeds[FEED_URL] = [raw_item(f"Story {n}") for n in range(5)]

        summary = await app.admin.test_feed(FEED_URL)

        assert summary.success
        assert summary.item_count == 5
        assert summary.title == "Fake feed"
        assert len(summary.sample_items) == 3
        sample = summary.sample_items[0]
        assert sample["title"] == "Story 0"
        assert sample["image"] == "https://cdn.example.com/photo.jpg"
        assert sample["hasRealImage"] is True
        assert sample["contentPreview"]
        # nothing is published by a test run
        assert article_repository.get_article_count() == 0

    @pytest.mark.asyncio
    async def test_fetch_failure_is_reported(self, app, fake_fetcher):
        fake_fetcher.feeds[FEED_URL] = FetchError("Failed to fetch feed, status: 404", feed_url=FEED_URL)

        summary = await app.admin.test_feed(FEED_URL)

        assert not summary.success
        assert summary.error_message == "Failed to fetch feed, status: 404"
        assert summary.to_dict()["error"] == "Failed to fetch feed, status: 404"

    @pytest.mark.asyncio
    async def test_invalid_url_is_reported(self, app, fake_fetcher):
        summary = await app.admin.test_feed("ftp://feeds.example.com/rss")

        assert not summary.success
        assert fake_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_item_without_title_is_listed_as_error(self, app, fake_fetcher, raw_item):
        untitled = raw_item("placeholder")
        untitled["title"] = ""
        fake_fetcher.feeds[FEED_URL] = [untitled, raw_item("Good story")]

        summary = await app.admin.test_feed(FEED_URL)

        assert "error" in summary.sample_items[0]
        assert summary.sample_items[1]["title"] == "Good story"


class TestCategoryTest:
    @pytest.mark.asyncio
    async def test_classifies_against_active_categories(self, app, categories):
        result = await app.admin.test_category("Cup final", "The team won the football match in extra time")

        assert result["category"] == "Sports"
        assert result["categoryId"] == categories[1].id
        assert result["method"] == "keyword"

    @pytest.mark.asyncio
    async def test_requires_title_and_content(self, app, categories):
        with pytest.raises(ValidationError):
            await app.admin.test_category("", "body")

    @pytest.mark.asyncio
    async def test_requires_categories(self, app):
        with pytest.raises(ValidationError):
            await app.admin.test_category("Title", "Body")


class TestQueueControls:
    @pytest.mark.asyncio
    async def test_drain_summary(self, app, make_article, fake_notifier):
        article_id = make_article(title="Queued")
        await app.indexing_queue.enqueue(article_id, "https://news.example.com/article/queued")

        summary = await app.admin.drain_queue()

        assert summary == {
            "alreadyRunning": False,
            "completed": 1,
            "retried": 0,
            "failed": 0,
            "recovered": 0,
            "errors": [],
        }
        assert (await app.admin.get_queue_status())["completedItems"] == 1

    @pytest.mark.asyncio
    async def test_clear_and_retry_delegate_to_queue(self, app, make_article):
        await app.indexing_queue.enqueue(make_article(), "https://news.example.com/article/stored-article")

        assert len(await app.admin.get_queue_items()) == 1
        assert await app.admin.retry_failed() == 0
        assert await app.admin.clear_queue() == 1

    @pytest.mark.asyncio
    async def test_indexing_stats(self, app):
        stats = app.admin.get_indexing_stats()
        assert stats["enabled"] is True


class TestFeedControls:
    @pytest.mark.asyncio
    async def test_clear_feed_log(self, app, make_feed, feed_repository):
        feed = make_feed()
        feed_repository.add_log_entry(feed.id, "Processing error: timeout")

        assert app.admin.clear_feed_log(feed.id)
        assert feed_repository.get_feed_by_id(feed.id).error_log == []

    @pytest.mark.asyncio
    async def test_clear_log_of_missing_feed(self, app):
        assert not app.admin.clear_feed_log(999)
