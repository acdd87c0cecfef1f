"""
Feed Source Repository
======================

Repository for subscribed feed sources: configuration, daily and lifetime
publish counters, and the capped rolling error log.
"""

import sqlite3
from datetime import datetime
from typing import List, Optional, Dict, Any

from ..database.connection import DatabaseConnection
from ..database.models import FeedSource, FeedSourceSettings, LogEntryType, utc_now
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, StorageUnavailableError, ErrorCode


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class FeedRepository:
    """Repository for managing feed sources in the database."""

    UPDATABLE_FIELDS = {
        "name",
        "feed_url",
        "default_author",
        "is_active",
        "min_content_length",
        "max_posts_per_day",
    }

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("feed_repository")

    def create_feed(self, feed: FeedSource) -> int:
        """Create a new feed source.

        Returns:
            Feed ID

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO feed_sources (
                        name, feed_url, default_author, is_active, min_content_length,
                        max_posts_per_day, posts_published_today, total_posts_published,
                        last_fetched, last_published, error_log, settings, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                    (
                        feed.name,
                        feed.feed_url,
                        feed.default_author,
                        feed.is_active,
                        feed.min_content_length,
                        feed.max_posts_per_day,
                        feed.posts_published_today,
                        feed.total_posts_published,
                        _ts(feed.last_fetched),
                        _ts(feed.last_published),
                        feed.error_log_json(),
                        feed.settings_json(),
                        _ts(feed.created_at or utc_now()),
                    ),
                )
                feed_id = cursor.lastrowid
                conn.commit()

                self.logger.info(f"Created feed source {feed_id}: {feed.feed_url}")
                return feed_id

        except StorageUnavailableError:
            raise
        except sqlite3.IntegrityError as e:
            raise DatabaseError(
                f"Feed URL already registered: {feed.feed_url}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
                recoverable=False,
            ) from e
        except sqlite3.Error as e:
            self.logger.error(f"Failed to create feed: {e}")
            raise DatabaseError(
                f"Failed to create feed: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_feed_by_id(self, feed_id: int) -> Optional[FeedSource]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM feed_sources WHERE id = ?", (feed_id,)
            ).fetchone()
            return FeedSource.from_db_row(row) if row else None

    def get_feed_by_url(self, feed_url: str) -> Optional[FeedSource]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM feed_sources WHERE feed_url = ?", (feed_url,)
            ).fetchone()
            return FeedSource.from_db_row(row) if row else None

    def get_active_feeds(self) -> List[FeedSource]:
        """Get all active feeds in creation order."""
        with self.db.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM feed_sources WHERE is_active = 1 ORDER BY id"
            ).fetchall()
            return [FeedSource.from_db_row(row) for row in rows]

    def get_all_feeds(self) -> List[FeedSource]:
        with self.db.get_connection() as conn:
            rows = conn.execute("SELECT * FROM feed_sources ORDER BY id").fetchall()
            return [FeedSource.from_db_row(row) for row in rows]

    def update_feed(self, feed_id: int, updates: Dict[str, Any]) -> bool:
        """Update configuration fields of a feed source.

        Args:
            feed_id: Feed ID
            updates: Field values keyed by column; ``settings`` may be a
                FeedSourceSettings or a dict of settings overrides

        Returns:
            True if a row was updated
        """
        fields = []
        params: List[Any] = []

        for key, value in updates.items():
            if key == "settings":
                if isinstance(value, dict):
                    current = self.get_feed_by_id(feed_id)
                    base = current.settings.model_dump() if current else {}
                    value = FeedSourceSettings(**{**base, **value})
                fields.append("settings = ?")
                params.append(value.model_dump_json())
            elif key in self.UPDATABLE_FIELDS:
                fields.append(f"{key} = ?")
                params.append(value)
            else:
                raise DatabaseError(
                    f"Field '{key}' cannot be updated",
                    error_code=ErrorCode.DATABASE_CONSTRAINT,
                    recoverable=False,
                )

        if not fields:
            return False

        params.append(feed_id)
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                f"UPDATE feed_sources SET {', '.join(fields)} WHERE id = ?",
                params,
            )
            conn.commit()
            return cursor.rowcount > 0

    def save_runtime_state(self, feed: FeedSource) -> None:
        """Persist counters, timestamps and the error log of a feed."""
        with self.db.get_connection() as conn:
            conn.execute(
                """
                UPDATE feed_sources SET
                    posts_published_today = ?, total_posts_published = ?,
                    last_fetched = ?, last_published = ?, error_log = ?
                WHERE id = ?
            """,
                (
                    feed.posts_published_today,
                    feed.total_posts_published,
                    _ts(feed.last_fetched),
                    _ts(feed.last_published),
                    feed.error_log_json(),
                    feed.id,
                ),
            )
            conn.commit()

    def add_log_entry(
        self,
        feed_id: int,
        message: str,
        entry_type: LogEntryType = LogEntryType.ERROR,
    ) -> Optional[FeedSource]:
        """Append a message to a feed's rolling log and persist it.

        The read and the write share one IMMEDIATE transaction.
        """
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM feed_sources WHERE id = ?", (feed_id,)
            ).fetchone()
            if row is None:
                self.logger.warning(f"Cannot log to missing feed {feed_id}")
                return None

            feed = FeedSource.from_db_row(row)
            feed.add_log_entry(message, entry_type)
            conn.execute(
                "UPDATE feed_sources SET error_log = ? WHERE id = ?",
                (feed.error_log_json(), feed_id),
            )
        return feed

    def clear_error_log(self, feed_id: int) -> bool:
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "UPDATE feed_sources SET error_log = '[]' WHERE id = ?", (feed_id,)
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_feed(self, feed_id: int) -> bool:
        with self.db.get_connection() as conn:
            cursor = conn.execute("DELETE FROM feed_sources WHERE id = ?", (feed_id,))
            conn.commit()
            deleted = cursor.rowcount > 0

        if deleted:
            self.logger.info(f"Deleted feed source {feed_id}")
        return deleted
