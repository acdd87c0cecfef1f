"""
In-memory indexing queue.

Queue contents live in an ``InMemoryQueueState`` owned by whoever builds the
queue, so the worker and the status readers share one explicit object and
nothing is kept at module level. Items are lost on restart.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .queue import IndexingQueue
from ..database.models import NotificationType, QueueItem, QueueStatus, utc_now


@dataclass
class InMemoryQueueState:
    """Shared storage for the in-memory backend."""

    items: Dict[int, QueueItem] = field(default_factory=dict)
    article_titles: Dict[int, str] = field(default_factory=dict)
    next_id: int = 1
    lock: threading.Lock = field(default_factory=threading.Lock)


class MemoryIndexingQueue(IndexingQueue):
    """Indexing queue held in process memory."""

    def __init__(self, notifier, state: Optional[InMemoryQueueState] = None, **kwargs):
        super().__init__(notifier, **kwargs)
        self.state = state if state is not None else InMemoryQueueState()

    async def _insert_if_absent(self, article_id: Optional[int], url: str,
                                notification_type: NotificationType,
                                article_title: Optional[str]) -> Optional[QueueItem]:
        with self.state.lock:
            if article_id is not None and any(
                item.article_id == article_id and not item.status.is_terminal
                for item in self.state.items.values()
            ):
                return None

            item = QueueItem(
                id=self.state.next_id,
                article_id=article_id,
                url=url,
                type=notification_type,
                status=QueueStatus.PENDING,
                max_retries=self.max_retries,
                added_at=utc_now(),
            )
            self.state.items[item.id] = item
            if article_title:
                self.state.article_titles[item.id] = article_title
            self.state.next_id += 1
            return item.model_copy()

    async def get_item(self, item_id: int) -> Optional[QueueItem]:
        with self.state.lock:
            item = self.state.items.get(item_id)
            return item.model_copy() if item else None

    async def _next_pending(self) -> Optional[QueueItem]:
        with self.state.lock:
            pending = [i for i in self.state.items.values() if i.status == QueueStatus.PENDING]
            if not pending:
                return None
            return min(pending, key=lambda i: (i.added_at, i.id)).model_copy()

    async def _update(self, item_id: int, **fields) -> None:
        with self.state.lock:
            item = self.state.items.get(item_id)
            if item is None:
                return
            self.state.items[item_id] = item.model_copy(update=fields)

    async def _recover_stale(self) -> int:
        with self.state.lock:
            stale = [i for i in self.state.items.values() if i.status == QueueStatus.PROCESSING]
            for item in stale:
                self.state.items[item.id] = item.model_copy(update={"status": QueueStatus.PENDING})
            return len(stale)

    async def _status_counts(self) -> Dict[QueueStatus, int]:
        counts: Dict[QueueStatus, int] = {}
        with self.state.lock:
            for item in self.state.items.values():
                counts[item.status] = counts.get(item.status, 0) + 1
        return counts

    async def _recent_items(self, limit: int) -> List[Dict[str, Any]]:
        with self.state.lock:
            items = sorted(self.state.items.values(), key=lambda i: (i.added_at, i.id), reverse=True)
            return [
                {**item.model_dump(), "article_title": self.state.article_titles.get(item.id)}
                for item in items[:limit]
            ]

    async def _delete_all(self) -> int:
        with self.state.lock:
            removed = len(self.state.items)
            self.state.items.clear()
            self.state.article_titles.clear()
            return removed

    async def _reset_failed(self) -> int:
        with self.state.lock:
            live_articles = {
                i.article_id for i in self.state.items.values()
                if i.article_id is not None and not i.status.is_terminal
            }
            newest_failed: Dict[int, QueueItem] = {}
            failed = []
            for item in sorted(self.state.items.values(), key=lambda i: i.id, reverse=True):
                if item.status != QueueStatus.FAILED:
                    continue
                if item.article_id is None:
                    failed.append(item)
                elif item.article_id not in live_articles and item.article_id not in newest_failed:
                    newest_failed[item.article_id] = item
                    failed.append(item)
            for item in failed:
                self.state.items[item.id] = item.model_copy(update={
                    "status": QueueStatus.PENDING,
                    "retry_count": 0,
                    "last_error": None,
                    "error_type": None,
                    "processed_at": None,
                })
            return len(failed)
