"""
FeedPress Processing
====================

Turns candidate items into articles.

This module provides:
- Category classification with an AI strategy and a keyword fallback
- Optional AI style rewriting
- SEO field builders
- PublishGate, the per-feed quota, gating and publish pass
"""

from .category_classifier import (
    AIClassifier,
    ClassificationResult,
    Classifier,
    FallbackClassifier,
    KeywordClassifier,
    create_classifier,
)
from .content_rewriter import ContentRewriter
from .publish_gate import FeedProcessResult, PublishGate

__all__ = [
    "AIClassifier",
    "ClassificationResult",
    "Classifier",
    "FallbackClassifier",
    "KeywordClassifier",
    "create_classifier",
    "ContentRewriter",
    "FeedProcessResult",
    "PublishGate",
]
