"""
Tests for the indexing queue state machine on both storage backends.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from feedpress.database.models import NotificationType, QueueStatus
from feedpress.indexing.database_queue import DatabaseIndexingQueue
from feedpress.indexing.memory_queue import InMemoryQueueState, MemoryIndexingQueue
from feedpress.indexing.queue import article_url
from feedpress.utils.exceptions import NotifierError, StorageUnavailableError

URL = "https://news.example.com/article/first"


@pytest.fixture(params=["database", "memory"])
def queue(request, db_connection, fake_notifier):
    options = dict(max_retries=3, rate_limit_delay=0.0, auto_drain=False)
    if request.param == "database":
        return DatabaseIndexingQueue(db_connection, fake_notifier, **options)
    return MemoryIndexingQueue(fake_notifier, state=InMemoryQueueState(), **options)


@pytest.fixture
def article_id(make_article):
    return make_article(title="First article")


def test_article_url_joins_site_and_slug():
    assert article_url("https://news.example.com/", "my-story") == "https://news.example.com/article/my-story"


class TestEnqueue:
    """Producer-side behavior."""

    @pytest.mark.asyncio
    async def test_new_item_is_pending(self, queue, article_id):
        item = await queue.enqueue(article_id, URL)

        assert item.status == QueueStatus.PENDING
        assert item.retry_count == 0
        assert item.max_retries == 3
        assert item.type == NotificationType.UPDATED

    @pytest.mark.asyncio
    async def test_second_enqueue_for_live_item_is_ignored(self, queue, article_id):
        first = await queue.enqueue(article_id, URL)
        second = await queue.enqueue(article_id, URL)

        assert first is not None
        assert second is None
        assert (await queue.get_status())["totalItems"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_enqueue_keeps_one_item(self, queue, article_id):
        results = await asyncio.gather(*(queue.enqueue(article_id, URL) for _ in range(5)))

        assert sum(1 for r in results if r is not None) == 1
        assert (await queue.get_status())["pendingItems"] == 1

    @pytest.mark.asyncio
    async def test_enqueue_allowed_again_after_completion(self, queue, article_id):
        await queue.enqueue(article_id, URL)
        await queue.drain()

        again = await queue.enqueue(article_id, URL, NotificationType.DELETED)

        assert again is not None
        assert again.type == NotificationType.DELETED

    @pytest.mark.asyncio
    async def test_items_without_article_are_not_deduplicated(self, queue):
        assert await queue.enqueue(None, URL) is not None
        assert await queue.enqueue(None, URL) is not None


class TestDrain:
    """Worker-side state transitions."""

    @pytest.mark.asyncio
    async def test_success_completes_item(self, queue, article_id, fake_notifier):
        item = await queue.enqueue(article_id, URL)

        result = await queue.drain()

        assert result.completed == 1
        assert fake_notifier.calls == [(URL, NotificationType.UPDATED)]
        stored = await queue.get_item(item.id)
        assert stored.status == QueueStatus.COMPLETED
        assert stored.processed_at is not None
        assert not queue.is_processing

    @pytest.mark.asyncio
    async def test_failure_then_success(self, queue, article_id, fake_notifier):
        item = await queue.enqueue(article_id, URL)
        fake_notifier.fail_next(URL, NotifierError("slow down", error_type="rateLimit"))

        result = await queue.drain()

        assert result.retried == 1
        assert result.completed == 1
        assert len(fake_notifier.calls) == 2
        stored = await queue.get_item(item.id)
        assert stored.status == QueueStatus.COMPLETED
        assert stored.retry_count == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_fail_item(self, queue, article_id, fake_notifier):
        item = await queue.enqueue(article_id, URL)
        fake_notifier.always_fail = NotifierError("forbidden", error_type="authorization")

        result = await queue.drain()

        # max_retries=3 allows four attempts
        assert len(fake_notifier.calls) == 4
        assert result.retried == 3
        assert result.failed == 1
        stored = await queue.get_item(item.id)
        assert stored.status == QueueStatus.FAILED
        assert stored.retry_count == 3
        assert stored.last_error == "forbidden"
        assert stored.error_type == "authorization"
        assert stored.processed_at is not None

    @pytest.mark.asyncio
    async def test_zero_retries_fails_on_first_error(self, queue, article_id, fake_notifier):
        queue.max_retries = 0
        item = await queue.enqueue(article_id, URL)
        fake_notifier.always_fail = RuntimeError("boom")

        await queue.drain()

        stored = await queue.get_item(item.id)
        assert len(fake_notifier.calls) == 1
        assert stored.status == QueueStatus.FAILED
        assert stored.error_type == "unknown"

    @pytest.mark.asyncio
    async def test_items_processed_oldest_first(self, queue, make_article, fake_notifier):
        urls = [f"https://news.example.com/article/{n}" for n in range(3)]
        for n, url in enumerate(urls):
            await queue.enqueue(make_article(title=f"Article {n}"), url)

        await queue.drain()

        assert [url for url, _ in fake_notifier.calls] == urls

    @pytest.mark.asyncio
    async def test_stale_processing_items_are_recovered(self, queue, article_id, fake_notifier):
        item = await queue.enqueue(article_id, URL)
        await queue._update(item.id, status=QueueStatus.PROCESSING)

        result = await queue.drain()

        assert result.recovered == 1
        assert result.completed == 1

    @pytest.mark.asyncio
    async def test_only_one_drain_runs_at_a_time(self, queue, make_article):
        for n in range(2):
            await queue.enqueue(make_article(title=f"Parallel {n}"), f"https://news.example.com/article/p{n}")

        results = await asyncio.gather(queue.drain(), queue.drain())

        assert sum(1 for r in results if r.already_running) == 1
        assert sum(r.completed for r in results) == 2

    @pytest.mark.asyncio
    async def test_storage_failure_halts_drain(self, queue, article_id):
        await queue.enqueue(article_id, URL)
        queue._next_pending = AsyncMock(side_effect=StorageUnavailableError("database is locked"))

        with pytest.raises(StorageUnavailableError):
            await queue.drain()
        assert not queue.is_processing

    @pytest.mark.asyncio
    async def test_auto_drain_after_enqueue(self, queue, article_id, fake_notifier):
        queue.auto_drain = True

        await queue.enqueue(article_id, URL)
        await queue.wait_idle()

        assert fake_notifier.calls == [(URL, NotificationType.UPDATED)]
        assert (await queue.get_status())["completedItems"] == 1


class TestOperatorControls:
    """Status, listing, clear and retry."""

    @pytest.mark.asyncio
    async def test_status_counters(self, queue, make_article, fake_notifier):
        await queue.enqueue(make_article(title="Will succeed"), "https://news.example.com/article/ok")
        queue.max_retries = 0
        await queue.enqueue(make_article(title="Will fail"), "https://news.example.com/article/bad")
        fake_notifier.fail_next("https://news.example.com/article/bad", NotifierError("nope"))

        await queue.drain()
        await queue.enqueue(make_article(title="Late"), "https://news.example.com/article/late")

        status = await queue.get_status()
        assert status == {
            "totalItems": 3,
            "isProcessing": False,
            "pendingItems": 1,
            "processingItems": 0,
            "completedItems": 1,
            "failedItems": 1,
        }

    @pytest.mark.asyncio
    async def test_items_listing(self, queue, article_id):
        await queue.enqueue(article_id, URL, article_title="First article")
        await queue.enqueue(None, "https://news.example.com/article/orphan")

        items = await queue.get_items()

        assert [i["url"] for i in items] == ["https://news.example.com/article/orphan", URL]
        assert items[0]["articleTitle"] == "Unknown Article"
        assert items[1]["articleTitle"] == "First article"
        assert items[1]["type"] == "updated"
        assert items[1]["status"] == "pending"
        assert items[1]["retries"] == 0
        assert items[1]["addedAt"]

    @pytest.mark.asyncio
    async def test_items_listing_limit(self, queue):
        for n in range(5):
            await queue.enqueue(None, f"https://news.example.com/article/{n}")
        assert len(await queue.get_items(limit=2)) == 2

    @pytest.mark.asyncio
    async def test_clear_removes_everything(self, queue, article_id):
        await queue.enqueue(article_id, URL)
        await queue.enqueue(None, "https://news.example.com/article/other")

        assert await queue.clear() == 2
        assert (await queue.get_status())["totalItems"] == 0

    @pytest.mark.asyncio
    async def test_retry_failed_resets_budget(self, queue, article_id, fake_notifier):
        item = await queue.enqueue(article_id, URL)
        fake_notifier.always_fail = NotifierError("denied", error_type="authentication")
        await queue.drain()

        fake_notifier.always_fail = None
        assert await queue.retry_failed() == 1

        reset = await queue.get_item(item.id)
        assert reset.status == QueueStatus.PENDING
        assert reset.retry_count == 0
        assert reset.last_error is None
        assert reset.error_type is None

        result = await queue.drain()
        assert result.completed == 1

    @pytest.mark.asyncio
    async def test_retry_failed_with_nothing_failed(self, queue):
        assert await queue.retry_failed() == 0

    @pytest.mark.asyncio
    async def test_retry_failed_skips_article_with_live_item(self, queue, article_id, fake_notifier):
        queue.max_retries = 0
        fake_notifier.always_fail = NotifierError("denied")
        failed = await queue.enqueue(article_id, URL)
        await queue.drain()
        fake_notifier.always_fail = None
        live = await queue.enqueue(article_id, URL)

        assert await queue.retry_failed() == 0

        status = await queue.get_status()
        assert status["pendingItems"] == 1
        assert status["failedItems"] == 1
        assert (await queue.get_item(failed.id)).status == QueueStatus.FAILED
        assert (await queue.get_item(live.id)).status == QueueStatus.PENDING

    @pytest.mark.asyncio
    async def test_retry_failed_resets_newest_item_per_article(self, queue, article_id, fake_notifier):
        queue.max_retries = 0
        fake_notifier.always_fail = NotifierError("denied")
        first = await queue.enqueue(article_id, URL)
        await queue.drain()
        second = await queue.enqueue(article_id, URL)
        await queue.drain()
        orphan = await queue.enqueue(None, "https://news.example.com/article/orphan")
        await queue.drain()
        fake_notifier.always_fail = None

        assert await queue.retry_failed() == 2

        assert (await queue.get_item(first.id)).status == QueueStatus.FAILED
        assert (await queue.get_item(second.id)).status == QueueStatus.PENDING
        assert (await queue.get_item(orphan.id)).status == QueueStatus.PENDING
        assert (await queue.get_status())["pendingItems"] == 2


class TestDatabaseBackend:
    @pytest.mark.asyncio
    async def test_dropped_table_surfaces_as_storage_error(self, db_connection, fake_notifier, article_id):
        queue = DatabaseIndexingQueue(db_connection, fake_notifier, rate_limit_delay=0.0, auto_drain=False)
        await queue.enqueue(article_id, URL)
        with db_connection.get_connection() as conn:
            conn.execute("DROP TABLE indexing_queue")
            conn.commit()

        with pytest.raises(StorageUnavailableError):
            await queue.drain()

    @pytest.mark.asyncio
    async def test_queue_survives_new_instance(self, db_connection, fake_notifier, article_id):
        first = DatabaseIndexingQueue(db_connection, fake_notifier, auto_drain=False)
        await first.enqueue(article_id, URL)

        second = DatabaseIndexingQueue(db_connection, fake_notifier, rate_limit_delay=0.0, auto_drain=False)
        result = await second.drain()

        assert result.completed == 1


class TestMemoryBackend:
    @pytest.mark.asyncio
    async def test_shared_state_between_instances(self, fake_notifier):
        state = InMemoryQueueState()
        producer = MemoryIndexingQueue(fake_notifier, state=state, auto_drain=False)
        reader = MemoryIndexingQueue(fake_notifier, state=state, auto_drain=False)

        await producer.enqueue(1, URL)

        assert (await reader.get_status())["pendingItems"] == 1

    @pytest.mark.asyncio
    async def test_returned_items_are_copies(self, fake_notifier):
        queue = MemoryIndexingQueue(fake_notifier, auto_drain=False)
        item = await queue.enqueue(1, URL)
        item.status = QueueStatus.FAILED

        assert (await queue.get_item(item.id)).status == QueueStatus.PENDING
