"""
Category Repository
===================

Active categories in display order, as consumed by the classifier.
"""

import sqlite3
from typing import List, Optional

from ..database.models import Category
from ..database.connection import DatabaseConnection
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, StorageUnavailableError, ErrorCode


class CategoryRepository:
    """Repository for article categories."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("category_repository")

    def create_category(self, category: Category) -> int:
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO categories (name, description, display_order, is_active)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        category.name,
                        category.description,
                        category.display_order,
                        category.is_active,
                    ),
                )
                conn.commit()
                self.logger.info(f"Created category {cursor.lastrowid}: {category.name}")
                return cursor.lastrowid
        except StorageUnavailableError:
            raise
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create category: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_active_categories(self) -> List[Category]:
        """Active categories ordered by display order, then ID."""
        with self.db.get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM categories WHERE is_active = 1
                ORDER BY display_order, id
                """
            ).fetchall()
            return [Category.from_db_row(row) for row in rows]

    def get_by_name(self, name: str) -> Optional[Category]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE name = ? COLLATE NOCASE", (name,)
            ).fetchone()
            return Category.from_db_row(row) if row else None
