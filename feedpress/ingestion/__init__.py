"""
FeedPress Ingestion
===================

Feed retrieval and item normalization.

This module provides:
- FeedFetcher for retrieving and shape-detecting one feed
- ContentExtractor for turning raw items into candidates
- ImageChecker for HEAD-probing featured images
- Text cleaning and operator-defined text replacement
"""

from .feed_fetcher import FeedFetcher, FeedShape, FetchedFeed
from .content_extractor import ContentExtractor
from .image_check import ImageChecker
from .text_replacement import TextReplacer

__all__ = [
    "FeedFetcher",
    "FeedShape",
    "FetchedFeed",
    "ContentExtractor",
    "ImageChecker",
    "TextReplacer",
]
