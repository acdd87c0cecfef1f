"""
FeedPress Database Schema
=========================

SQLite schema for the ingestion and indexing pipeline:
- categories: article categories in display order
- articles: published and draft articles created from feed items
- feed_sources: subscribed feeds with their settings and runtime counters
- indexing_queue: pending search-indexing notifications
- indexing_stats: running totals for successful notifications
"""

import sqlite3
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class DatabaseSchema:
    """Database schema manager for the FeedPress SQLite database."""

    TABLES = [
        "categories",
        "articles",
        "feed_sources",
        "indexing_queue",
        "indexing_stats",
    ]

    def __init__(self, db_path: str = "data/feedpress.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA foreign_keys = ON")

            self._create_categories_table(conn)
            self._create_articles_table(conn)
            self._create_feed_sources_table(conn)
            self._create_indexing_queue_table(conn)
            self._create_indexing_stats_table(conn)

            self._run_migrations(conn)
            self._create_indexes(conn)

            conn.commit()
            logger.info("Database schema created successfully")

    def _create_categories_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                description TEXT DEFAULT '',
                display_order INTEGER DEFAULT 0,
                is_active BOOLEAN DEFAULT TRUE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_articles_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS articles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                slug TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                excerpt TEXT DEFAULT '',
                category_id INTEGER,
                author TEXT,
                featured_image TEXT,
                status TEXT NOT NULL DEFAULT 'draft' CHECK (status IN ('draft', 'published')),
                tags TEXT DEFAULT '[]',  -- JSON array of tags
                seo_title TEXT,
                seo_description TEXT,
                source_url TEXT,
                feed_source_id INTEGER,
                published_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE SET NULL,
                FOREIGN KEY (feed_source_id) REFERENCES feed_sources(id) ON DELETE SET NULL
            )
        """
        )

    def _create_feed_sources_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS feed_sources (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                feed_url TEXT NOT NULL UNIQUE,
                default_author TEXT NOT NULL,
                is_active BOOLEAN DEFAULT TRUE,
                min_content_length INTEGER DEFAULT 100 CHECK (min_content_length >= 50),
                max_posts_per_day INTEGER DEFAULT 5 CHECK (max_posts_per_day BETWEEN 1 AND 50),
                posts_published_today INTEGER DEFAULT 0,
                total_posts_published INTEGER DEFAULT 0,
                last_fetched TIMESTAMP,
                last_published TIMESTAMP,
                error_log TEXT DEFAULT '[]',  -- JSON array, capped at 50 entries
                settings TEXT DEFAULT '{}',  -- JSON settings bag
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_indexing_queue_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS indexing_queue (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                article_id INTEGER,
                url TEXT NOT NULL,
                type TEXT NOT NULL DEFAULT 'updated' CHECK (type IN ('updated', 'deleted')),
                status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
                retry_count INTEGER NOT NULL DEFAULT 0,
                max_retries INTEGER NOT NULL DEFAULT 3,
                last_error TEXT,
                error_type TEXT,
                added_at TIMESTAMP NOT NULL,
                processed_at TIMESTAMP,
                FOREIGN KEY (article_id) REFERENCES articles(id) ON DELETE SET NULL
            )
        """
        )

    def _create_indexing_stats_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS indexing_stats (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                total_indexed INTEGER NOT NULL DEFAULT 0,
                last_indexed_at TIMESTAMP
            )
        """
        )
        conn.execute(
            "INSERT OR IGNORE INTO indexing_stats (id, total_indexed) VALUES (1, 0)"
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_categories_active ON categories(is_active, display_order)",
            "CREATE INDEX IF NOT EXISTS idx_articles_title ON articles(title)",
            "CREATE INDEX IF NOT EXISTS idx_articles_source_url ON articles(source_url)",
            "CREATE INDEX IF NOT EXISTS idx_articles_status ON articles(status)",
            "CREATE INDEX IF NOT EXISTS idx_feed_sources_active ON feed_sources(is_active)",
            "CREATE INDEX IF NOT EXISTS idx_queue_status_added ON indexing_queue(status, added_at)",
            # At most one non-terminal item per article
            """CREATE UNIQUE INDEX IF NOT EXISTS idx_queue_article_active
               ON indexing_queue(article_id)
               WHERE status IN ('pending', 'processing')""",
        ]

        for index_sql in indexes:
            conn.execute(index_sql)

    def _run_migrations(self, conn: sqlite3.Connection) -> None:
        """Run column migrations for databases created by older releases."""
        columns = [
            column[1] for column in conn.execute("PRAGMA table_info(indexing_queue)")
        ]
        if "error_type" not in columns:
            logger.info("Adding error_type column to indexing_queue table")
            conn.execute("ALTER TABLE indexing_queue ADD COLUMN error_type TEXT")

    def verify_schema(self) -> bool:
        """Verify every table exists."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
            existing = {row[0] for row in rows}

        missing = [table for table in self.TABLES if table not in existing]
        if missing:
            logger.error(f"Missing tables: {missing}")
            return False
        return True
