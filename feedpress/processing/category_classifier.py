"""
Category Classifier
===================

Assigns one of the active categories to a candidate item. Two strategies
exist, an AI-backed one and a keyword-scoring one, and
``FallbackClassifier`` composes them so that classification never fails.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from .category_keywords import keywords_for
from ..ai.ai_manager import AIManager
from ..database.models import Category
from ..utils.exceptions import AIError, ClassifierError
from ..utils.logging import get_logger_for_component

PROMPT_BODY_CHARS = 1000

CONFIDENCE_AI_EXACT = 1.0
CONFIDENCE_AI_PARTIAL = 0.8
CONFIDENCE_AI_DEFAULT = 0.5
CONFIDENCE_KEYWORD_MATCH = 0.45
CONFIDENCE_DEFAULT = 0.2


@dataclass
class ClassificationResult:
    """Chosen category with how it was chosen."""

    category: Category
    confidence: float
    method: str

    @property
    def category_id(self) -> Optional[int]:
        return self.category.id


class Classifier(ABC):
    """Category classification strategy."""

    @abstractmethod
    async def classify(self, title: str, body: str, categories: List[Category]) -> ClassificationResult:
        """Pick a category for ``title``/``body`` from ``categories``.

        Raises:
            ClassifierError: if this strategy cannot produce an answer
        """


def _require_categories(categories: List[Category]) -> None:
    if not categories:
        raise ClassifierError("No active categories available")


def build_classification_prompt(body: str, categories: List[Category]) -> str:
    category_lines = "\n".join(f"{c.name}: {c.description}" for c in categories)
    return (
        "Analyze the following news content and pick the single most appropriate category.\n\n"
        f"Available categories:\n{category_lines}\n\n"
        f"Content:\n{body[:PROMPT_BODY_CHARS]}\n\n"
        "Respond with only the category name, nothing else."
    )


def match_category_response(response: str, categories: List[Category]) -> ClassificationResult:
    """Map a free-text model answer onto a category.

    Exact case-insensitive name match first, then substring in either
    direction, then the first category.
    """
    answer = (response or "").strip().strip(".\"'").lower()

    if answer:
        for category in categories:
            if category.name.lower() == answer:
                return ClassificationResult(category, CONFIDENCE_AI_EXACT, "ai")

        for category in categories:
            name = category.name.lower()
            if name in answer or answer in name:
                return ClassificationResult(category, CONFIDENCE_AI_PARTIAL, "ai_partial")

    return ClassificationResult(categories[0], CONFIDENCE_AI_DEFAULT, "ai_default")


class AIClassifier(Classifier):
    """Asks the configured AI providers for a category name."""

    def __init__(self, ai_manager: AIManager):
        self.ai_manager = ai_manager
        self.logger = get_logger_for_component("ai_classifier")

    async def classify(self, title: str, body: str, categories: List[Category]) -> ClassificationResult:
        _require_categories(categories)
        if not self.ai_manager.has_providers():
            raise ClassifierError("No AI credential configured")

        prompt = build_classification_prompt(body, categories)
        try:
            result = await self.ai_manager.complete(prompt, max_tokens=50)
        except AIError as e:
            raise ClassifierError(f"AI classification failed: {e}", context={"title": title[:100]})

        classification = match_category_response(result.text, categories)
        self.logger.debug(
            f"AI picked '{classification.category.name}' from response '{result.text[:50]}'",
            extra={"provider": result.provider, "method": classification.method},
        )
        return classification


class KeywordClassifier(Classifier):
    """Scores categories by whole-word keyword occurrences in title and body."""

    def __init__(self, keyword_source=keywords_for):
        self.keyword_source = keyword_source
        self._patterns: Dict[str, re.Pattern] = {}

    def _pattern(self, keyword: str) -> re.Pattern:
        pattern = self._patterns.get(keyword)
        if pattern is None:
            pattern = re.compile(rf"\b{re.escape(keyword.lower())}\b", re.IGNORECASE)
            self._patterns[keyword] = pattern
        return pattern

    def score(self, text: str, category: Category) -> int:
        return sum(len(self._pattern(kw).findall(text)) for kw in self.keyword_source(category.name))

    async def classify(self, title: str, body: str, categories: List[Category]) -> ClassificationResult:
        _require_categories(categories)
        text = f"{title} {body}"

        best, best_score = categories[0], 0
        for category in categories:
            score = self.score(text, category)
            # strict comparison keeps the earliest category on ties
            if score > best_score:
                best, best_score = category, score

        confidence = CONFIDENCE_KEYWORD_MATCH if best_score else CONFIDENCE_DEFAULT
        return ClassificationResult(best, confidence, "keyword" if best_score else "default")


class FallbackClassifier(Classifier):
    """Tries ``primary`` and falls back to ``fallback`` on any failure.

    The only error that can escape is the empty category list, which the
    caller is expected to rule out before classifying.
    """

    def __init__(self, primary: Classifier, fallback: Classifier):
        self.primary = primary
        self.fallback = fallback
        self.logger = get_logger_for_component("category_classifier")

    async def classify(self, title: str, body: str, categories: List[Category]) -> ClassificationResult:
        _require_categories(categories)
        try:
            return await self.primary.classify(title, body, categories)
        except Exception as e:
            self.logger.info(f"Falling back to keyword classification: {e}")

        try:
            return await self.fallback.classify(title, body, categories)
        except Exception as e:
            self.logger.warning(f"Keyword classification failed, using first category: {e}")
            return ClassificationResult(categories[0], CONFIDENCE_DEFAULT, "default")


def create_classifier(ai_manager: Optional[AIManager] = None) -> Classifier:
    ai_manager = ai_manager if ai_manager is not None else AIManager(providers=[])
    return FallbackClassifier(AIClassifier(ai_manager), KeywordClassifier())
