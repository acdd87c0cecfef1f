"""
FeedPress Storage Layer
=======================

Repository implementations for feed sources, articles and categories.
"""

from .article_repository import ArticleRepository
from .category_repository import CategoryRepository
from .feed_repository import FeedRepository

__all__ = [
    "ArticleRepository",
    "CategoryRepository",
    "FeedRepository",
]
