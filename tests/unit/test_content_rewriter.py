"""
Tests for the AI content rewriter and the SEO field builders.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from feedpress.ai.ai_manager import AIManager
from feedpress.ai.providers.base import CompletionResult
from feedpress.database.models import RewriteStyle
from feedpress.ingestion.content_cleaner import source_attribution
from feedpress.processing.content_rewriter import (
    STYLE_INSTRUCTIONS,
    ContentRewriter,
    build_rewrite_prompt,
)
from feedpress.processing.seo import build_excerpt, extract_tags, seo_description, seo_title
from feedpress.utils.exceptions import AIError, RewriteError

ORIGINAL = "The council approved the transit plan after a long debate."


def manager_returning(text=None, error=None):
    manager = MagicMock(spec=AIManager)
    manager.has_providers.return_value = True
    if error is not None:
        manager.complete = AsyncMock(side_effect=error)
    else:
        manager.complete = AsyncMock(
            return_value=CompletionResult(text=text, provider="gemini", model_used="test-model")
        )
    return manager


class TestContentRewriter:
    """Test suite for ContentRewriter."""

    @pytest.mark.asyncio
    async def test_rewrite_returns_model_text(self):
        manager = manager_returning("  Rewritten body.  ")
        rewriter = ContentRewriter(manager)

        result = await rewriter.rewrite(ORIGINAL, RewriteStyle.CASUAL)

        assert result == "Rewritten body."
        prompt = manager.complete.await_args.args[0]
        assert STYLE_INSTRUCTIONS[RewriteStyle.CASUAL] in prompt
        assert ORIGINAL in prompt

    @pytest.mark.asyncio
    async def test_style_given_as_string(self):
        rewriter = ContentRewriter(manager_returning("Formal body."))
        assert await rewriter.rewrite(ORIGINAL, "formal") == "Formal body."

    @pytest.mark.asyncio
    async def test_provider_failure_keeps_original(self):
        rewriter = ContentRewriter(manager_returning(error=AIError("All AI providers failed")))
        assert await rewriter.rewrite(ORIGINAL) == ORIGINAL

    @pytest.mark.asyncio
    async def test_empty_answer_keeps_original(self):
        rewriter = ContentRewriter(manager_returning("   "))
        assert await rewriter.rewrite(ORIGINAL) == ORIGINAL

    @pytest.mark.asyncio
    async def test_no_credentials_keeps_original(self):
        for rewriter in (ContentRewriter(), ContentRewriter(AIManager(providers=[]))):
            assert not rewriter.available
            assert await rewriter.rewrite(ORIGINAL) == ORIGINAL

    @pytest.mark.asyncio
    async def test_request_rewrite_raises(self):
        with pytest.raises(RewriteError):
            await ContentRewriter().request_rewrite(ORIGINAL, RewriteStyle.PROFESSIONAL)

    def test_prompt_requirements(self):
        prompt = build_rewrite_prompt(ORIGINAL, RewriteStyle.CREATIVE)
        assert "creative style" in prompt
        assert "within 10% difference" in prompt
        assert prompt.rstrip().endswith("without any additional commentary or formatting.")


class TestSeoFields:
    """Test suite for SEO field builders."""

    def test_short_title_unchanged(self):
        assert seo_title("Short title") == "Short title"

    def test_title_exactly_sixty(self):
        title = "t" * 60
        assert seo_title(title) == title

    def test_long_title_is_ellipsized(self):
        result = seo_title("x" * 75)
        assert len(result) == 60
        assert result.endswith("...")

    def test_description_is_capped(self):
        result = seo_description("word " * 100)
        assert len(result) == 160
        assert result.endswith("...")

    def test_description_ignores_source_attribution(self):
        body = "<p>Short body.</p>" + source_attribution("https://source.example.com/story")
        assert seo_description(body) == "Short body."

    def test_tags_are_capped_at_five(self):
        text = "news breaking update latest technology politics business sports"
        tags = extract_tags("Headline", text)
        assert tags == ["news", "breaking", "update", "latest", "technology"]

    def test_tags_match_title_and_body(self):
        assert extract_tags("Sports update", "Nothing else") == ["update", "sports"]

    def test_excerpt_is_plain_and_bounded(self):
        excerpt = build_excerpt("<p>" + "a" * 400 + "</p>" + source_attribution("https://x.example.com"))
        assert excerpt == "a" * 300
