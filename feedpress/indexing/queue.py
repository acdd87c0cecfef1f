"""
Indexing Queue
==============

Durable work queue of indexing notifications with an explicit state machine:

    pending -> processing -> completed
                          -> pending   (retry, while retry_count < max_retries)
                          -> failed    (terminal, operator-resettable)

Storage is supplied by subclasses; the state transitions and the single
drain worker live here so both backends behave identically.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..database.models import NotificationType, QueueItem, QueueStatus, utc_now
from ..utils.exceptions import StorageUnavailableError
from ..utils.logging import get_logger_for_component, PerformanceLogger

UNKNOWN_ARTICLE_TITLE = "Unknown Article"


def article_url(site_url: str, slug: str) -> str:
    return f"{site_url.rstrip('/')}/article/{slug}"


@dataclass
class DrainResult:
    """Outcome of one drain pass."""

    completed: int = 0
    retried: int = 0
    failed: int = 0
    recovered: int = 0
    already_running: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.completed + self.retried + self.failed


class IndexingQueue(ABC):
    """Notification queue with a single guarded drain worker.

    Subclasses implement the storage primitives. Every primitive may raise
    ``StorageUnavailableError``, which halts a drain and reaches its caller.
    """

    def __init__(
        self,
        notifier,
        max_retries: int = 3,
        rate_limit_delay: float = 1.0,
        listing_limit: int = 50,
        auto_drain: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the queue.

        Args:
            notifier: Object with ``async notify(url, notification_type)``
            max_retries: Retries granted to new items before they fail
            rate_limit_delay: Pause after every processed item, in seconds
            listing_limit: Default size of ``get_items``
            auto_drain: Start a background drain after each enqueue
            sleep: Awaitable used for the rate-limit pause
        """
        self.notifier = notifier
        self.max_retries = max_retries
        self.rate_limit_delay = rate_limit_delay
        self.listing_limit = listing_limit
        self.auto_drain = auto_drain
        self._sleep = sleep
        self._drain_lock = asyncio.Lock()
        self._is_processing = False
        self._drain_task: Optional[asyncio.Task] = None
        self.logger = get_logger_for_component("indexing_queue")

    # Storage primitives

    @abstractmethod
    async def _insert_if_absent(self, article_id: Optional[int], url: str,
                                notification_type: NotificationType,
                                article_title: Optional[str]) -> Optional[QueueItem]:
        """Insert a pending item unless the article already has a non-terminal one."""

    @abstractmethod
    async def _next_pending(self) -> Optional[QueueItem]:
        """Oldest pending item, or None."""

    @abstractmethod
    async def _update(self, item_id: int, **fields) -> None:
        """Persist changed fields of one item."""

    @abstractmethod
    async def _recover_stale(self) -> int:
        """Return items left in ``processing`` to ``pending``."""

    @abstractmethod
    async def _status_counts(self) -> Dict[QueueStatus, int]:
        pass

    @abstractmethod
    async def _recent_items(self, limit: int) -> List[Dict[str, Any]]:
        """Most recent items, newest first, with ``article_title``."""

    @abstractmethod
    async def _delete_all(self) -> int:
        pass

    @abstractmethod
    async def _reset_failed(self) -> int:
        pass

    @abstractmethod
    async def get_item(self, item_id: int) -> Optional[QueueItem]:
        pass

    # Producer side

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    async def enqueue(
        self,
        article_id: Optional[int],
        url: str,
        notification_type: NotificationType = NotificationType.UPDATED,
        article_title: Optional[str] = None,
    ) -> Optional[QueueItem]:
        """Queue a notification for ``url``.

        Returns:
            The new item, or None when the article already has a pending or
            processing item
        """
        item = await self._insert_if_absent(article_id, url, NotificationType(notification_type), article_title)
        if item is None:
            self.logger.info(f"Article already in queue: {url}")
            return None

        self.logger.info(f"Added to indexing queue: {url}", extra={"queue_item_id": item.id})
        if self.auto_drain:
            self.schedule_drain()
        return item

    def schedule_drain(self) -> Optional[asyncio.Task]:
        """Start a background drain unless one is running."""
        if self._is_processing or (self._drain_task and not self._drain_task.done()):
            return self._drain_task

        self._drain_task = asyncio.get_running_loop().create_task(self.drain())
        self._drain_task.add_done_callback(self._on_drain_done)
        return self._drain_task

    def _on_drain_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Background drain halted: {error}")

    async def wait_idle(self) -> None:
        """Wait for a running background drain to finish."""
        task = self._drain_task
        if task and not task.done():
            await asyncio.gather(task, return_exceptions=True)

    # Worker side

    async def drain(self) -> DrainResult:
        """Process pending items until none remain.

        Raises:
            StorageUnavailableError: storage failed mid-loop; the in-flight
                item stays in ``processing`` and is recovered next time
        """
        if self._drain_lock.locked():
            self.logger.debug("Drain already running")
            return DrainResult(already_running=True)

        async with self._drain_lock:
            self._is_processing = True
            try:
                with PerformanceLogger(self.logger, "indexing queue drain"):
                    return await self._drain_loop()
            finally:
                self._is_processing = False

    async def _drain_loop(self) -> DrainResult:
        result = DrainResult()
        result.recovered = await self._recover_stale()
        if result.recovered:
            self.logger.warning(f"Recovered {result.recovered} stale processing items")

        while True:
            item = await self._next_pending()
            if item is None:
                break

            await self._update(item.id, status=QueueStatus.PROCESSING)
            await self._process_item(item, result)
            await self._sleep(self.rate_limit_delay)

        self.logger.info(
            f"Drain finished: {result.completed} completed, {result.retried} retried, {result.failed} failed"
        )
        return result

    async def _process_item(self, item: QueueItem, result: DrainResult) -> None:
        try:
            await self.notifier.notify(item.url, item.type)
        except StorageUnavailableError:
            raise
        except Exception as e:
            await self._record_failure(item, e, result)
            return

        await self._update(item.id, status=QueueStatus.COMPLETED, processed_at=utc_now(),
                           last_error=None, error_type=None)
        result.completed += 1
        self.logger.info(f"Indexed: {item.url}")

    async def _record_failure(self, item: QueueItem, error: Exception, result: DrainResult) -> None:
        message = getattr(error, "message", None) or str(error)
        error_type = getattr(error, "error_type", "unknown")
        result.errors.append(f"{item.url}: {message}")

        if item.retry_count < item.max_retries:
            retry_count = item.retry_count + 1
            await self._update(item.id, status=QueueStatus.PENDING, retry_count=retry_count,
                               last_error=message, error_type=error_type)
            result.retried += 1
            self.logger.warning(f"Retrying ({retry_count}/{item.max_retries}) {item.url}: {message}")
        else:
            await self._update(item.id, status=QueueStatus.FAILED, processed_at=utc_now(),
                               last_error=message, error_type=error_type)
            result.failed += 1
            self.logger.error(f"Max retries exceeded for {item.url}: {message}")

    # Operator side

    async def get_status(self) -> Dict[str, Any]:
        counts = await self._status_counts()
        return {
            "totalItems": sum(counts.values()),
            "isProcessing": self.is_processing,
            "pendingItems": counts.get(QueueStatus.PENDING, 0),
            "processingItems": counts.get(QueueStatus.PROCESSING, 0),
            "completedItems": counts.get(QueueStatus.COMPLETED, 0),
            "failedItems": counts.get(QueueStatus.FAILED, 0),
        }

    async def get_items(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        rows = await self._recent_items(limit or self.listing_limit)
        return [
            {
                "id": row["id"],
                "url": row["url"],
                "type": NotificationType(row["type"]).value,
                "status": QueueStatus(row["status"]).value,
                "retries": row["retry_count"],
                "addedAt": _iso(row["added_at"]),
                "articleTitle": row.get("article_title") or UNKNOWN_ARTICLE_TITLE,
                "lastError": row.get("last_error"),
                "errorType": row.get("error_type"),
            }
            for row in rows
        ]

    async def clear(self) -> int:
        """Delete every item regardless of state."""
        removed = await self._delete_all()
        self.logger.warning(f"Indexing queue cleared ({removed} items)")
        return removed

    async def retry_failed(self) -> int:
        """Reset failed items to pending with a fresh retry budget and resume draining.

        An article keeps at most one live item: its newest failed item is reset
        only when it has no pending or processing item already.
        """
        reset = await self._reset_failed()
        self.logger.info(f"Retried {reset} failed items")
        if reset and self.auto_drain:
            self.schedule_drain()
        return reset


def _iso(value) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    return value
