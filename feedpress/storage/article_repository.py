"""
Article Repository
==================

Article persistence used by the publish gate: create, duplicate lookups by
title and by original source URL, and unique slug generation.
"""

import re
import sqlite3
from typing import List, Optional

from ..database.models import Article
from ..database.connection import DatabaseConnection
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, StorageUnavailableError, ErrorCode


def slugify(title: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim dashes."""
    slug = re.sub(r"[^a-z0-9]+", "-", (title or "").lower()).strip("-")
    return slug or "article"


class ArticleRepository:
    """Repository for Article persistence."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("article_repository")

    def create_article(self, article: Article) -> int:
        """Create a new article.

        Returns:
            Created article ID

        Raises:
            DatabaseError: If creation fails
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO articles (
                        slug, title, content, excerpt, category_id, author, featured_image,
                        status, tags, seo_title, seo_description, source_url,
                        feed_source_id, published_at, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        article.slug,
                        article.title,
                        article.content,
                        article.excerpt,
                        article.category_id,
                        article.author,
                        article.featured_image,
                        article.status.value,
                        article.tags_json(),
                        article.seo_title,
                        article.seo_description,
                        article.source_url,
                        article.feed_source_id,
                        article.published_at.isoformat() if article.published_at else None,
                        article.created_at.isoformat() if article.created_at else None,
                    ),
                )
                conn.commit()
                article_id = cursor.lastrowid

            self.logger.debug(f"Created article {article_id}: {article.slug}")
            return article_id

        except StorageUnavailableError:
            raise
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create article: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_article(self, article_id: int) -> Optional[Article]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE id = ?", (article_id,)
            ).fetchone()
            return Article.from_db_row(row) if row else None

    def find_by_title(self, title: str) -> Optional[Article]:
        """Find an article whose title is exactly ``title``."""
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE title = ? LIMIT 1", (title,)
            ).fetchone()
            return Article.from_db_row(row) if row else None

    def find_by_source_url(self, source_url: str) -> Optional[Article]:
        """Find an article created from the feed item at ``source_url``."""
        if not source_url:
            return None
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE source_url = ? LIMIT 1", (source_url,)
            ).fetchone()
            return Article.from_db_row(row) if row else None

    def slug_exists(self, slug: str) -> bool:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM articles WHERE slug = ? LIMIT 1", (slug,)
            ).fetchone()
            return row is not None

    def generate_unique_slug(self, title: str) -> str:
        """Slug from ``title``, suffixed ``-1``, ``-2``... until unused."""
        base_slug = slugify(title)
        slug = base_slug
        counter = 1
        while self.slug_exists(slug):
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    def get_recent_articles(self, limit: int = 20) -> List[Article]:
        with self.db.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM articles ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [Article.from_db_row(row) for row in rows]

    def get_article_count(self) -> int:
        with self.db.get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]
