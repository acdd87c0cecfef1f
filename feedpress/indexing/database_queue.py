"""
SQLite-backed indexing queue.

The partial unique index on ``indexing_queue(article_id)`` for pending and
processing rows makes the one-live-item-per-article check atomic.
"""

from typing import Any, Dict, List, Optional

from .queue import IndexingQueue
from ..database.connection import DatabaseConnection
from ..database.models import NotificationType, QueueItem, QueueStatus, utc_now

_COLUMNS = {"status", "retry_count", "last_error", "error_type", "processed_at"}


def _db_value(value):
    if isinstance(value, QueueStatus):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class DatabaseIndexingQueue(IndexingQueue):
    """Indexing queue persisted in the ``indexing_queue`` table."""

    def __init__(self, db_connection: DatabaseConnection, notifier, **kwargs):
        super().__init__(notifier, **kwargs)
        self.db = db_connection

    async def _insert_if_absent(self, article_id: Optional[int], url: str,
                                notification_type: NotificationType,
                                article_title: Optional[str]) -> Optional[QueueItem]:
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO indexing_queue
                    (article_id, url, type, status, retry_count, max_retries, added_at)
                VALUES (?, ?, ?, 'pending', 0, ?, ?)
            """,
                (article_id, url, notification_type.value, self.max_retries, utc_now().isoformat()),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            item_id = cursor.lastrowid

        return await self.get_item(item_id)

    async def get_item(self, item_id: int) -> Optional[QueueItem]:
        row = self.db.execute_one("SELECT * FROM indexing_queue WHERE id = ?", (item_id,))
        return QueueItem.from_db_row(row) if row else None

    async def _next_pending(self) -> Optional[QueueItem]:
        row = self.db.execute_one(
            "SELECT * FROM indexing_queue WHERE status = 'pending' ORDER BY added_at ASC, id ASC LIMIT 1"
        )
        return QueueItem.from_db_row(row) if row else None

    async def _update(self, item_id: int, **fields) -> None:
        unknown = set(fields) - _COLUMNS
        if unknown:
            raise ValueError(f"Unknown queue columns: {sorted(unknown)}")

        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = [_db_value(value) for value in fields.values()] + [item_id]
        self.db.execute_update(f"UPDATE indexing_queue SET {assignments} WHERE id = ?", tuple(params))

    async def _recover_stale(self) -> int:
        return self.db.execute_update(
            "UPDATE indexing_queue SET status = 'pending' WHERE status = 'processing'"
        )

    async def _status_counts(self) -> Dict[QueueStatus, int]:
        rows = self.db.execute_query(
            "SELECT status, COUNT(*) AS count FROM indexing_queue GROUP BY status"
        )
        return {QueueStatus(row["status"]): row["count"] for row in rows}

    async def _recent_items(self, limit: int) -> List[Dict[str, Any]]:
        rows = self.db.execute_query(
            """
            SELECT q.*, a.title AS article_title
            FROM indexing_queue q
            LEFT JOIN articles a ON a.id = q.article_id
            ORDER BY q.added_at DESC, q.id DESC
            LIMIT ?
        """,
            (limit,),
        )
        return [dict(row) for row in rows]

    async def _delete_all(self) -> int:
        return self.db.execute_update("DELETE FROM indexing_queue")

    async def _reset_failed(self) -> int:
        return self.db.execute_update(
            """
            UPDATE indexing_queue
            SET status = 'pending', retry_count = 0, last_error = NULL, error_type = NULL,
                processed_at = NULL
            WHERE status = 'failed'
              AND (
                  article_id IS NULL
                  OR (
                      NOT EXISTS (
                          SELECT 1 FROM indexing_queue live
                          WHERE live.article_id = indexing_queue.article_id
                            AND live.status IN ('pending', 'processing')
                      )
                      AND id = (
                          SELECT MAX(newest.id) FROM indexing_queue newest
                          WHERE newest.article_id = indexing_queue.article_id
                            AND newest.status = 'failed'
                      )
                  )
              )
        """
        )
