"""
Tests for AIManager provider fallback and the Groq provider adapter.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from feedpress.ai.ai_manager import ERROR_COOLDOWN_SECONDS, RATE_LIMIT_COOLDOWN_SECONDS, AIManager
from feedpress.ai.providers.base import AIProvider, CompletionResult
from feedpress.ai.providers.groq_provider import GroqProvider
from feedpress.config.settings import AIProvider as AIProviderType, AISettings
from feedpress.database.models import Category
from feedpress.processing.category_classifier import create_classifier
from feedpress.utils.exceptions import AIError, ErrorCode


class FakeProvider(AIProvider):
    """Answers with a fixed text or raises a fixed error."""

    def __init__(self, provider_type, answer=None, error=None):
        super().__init__("key", f"{provider_type.value}-model", provider_type)
        self.answer = answer
        self.error = error
        self.prompts = []

    async def complete(self, prompt, max_tokens=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return CompletionResult(text=self.answer, provider=self.provider_type.value, model_used=self.model_name)


class TestAIManager:
    """Test suite for AIManager."""

    @pytest.mark.asyncio
    async def test_first_provider_answers(self):
        gemini = FakeProvider(AIProviderType.GEMINI, answer="Technology")
        groq = FakeProvider(AIProviderType.GROQ, answer="Sports")

        result = await AIManager(providers=[gemini, groq]).complete("prompt")

        assert result.text == "Technology"
        assert groq.prompts == []

    @pytest.mark.asyncio
    async def test_falls_back_on_provider_error(self):
        gemini = FakeProvider(AIProviderType.GEMINI, error=AIError("quota", error_code=ErrorCode.AI_RATE_LIMIT))
        groq = FakeProvider(AIProviderType.GROQ, answer="Sports")
        manager = AIManager(providers=[gemini, groq])

        result = await manager.complete("prompt")

        assert result.provider == "groq"
        status = manager.get_provider_status()
        assert status["gemini"]["rate_limited"] is True
        assert status["gemini"]["healthy"] is False
        assert status["groq"]["error_count"] == 0

    @pytest.mark.asyncio
    async def test_all_providers_failing(self):
        manager = AIManager(providers=[
            FakeProvider(AIProviderType.GEMINI, error=AIError("down")),
            FakeProvider(AIProviderType.OPENROUTER, error=AIError("also down")),
        ])

        with pytest.raises(AIError, match="All AI providers failed"):
            await manager.complete("prompt")

    @pytest.mark.asyncio
    async def test_repeated_errors_mark_provider_unhealthy(self):
        flaky = FakeProvider(AIProviderType.GROQ, error=AIError("timeout"))
        manager = AIManager(providers=[flaky])

        for _ in range(3):
            with pytest.raises(AIError):
                await manager.complete("prompt")

        assert manager.get_healthy_providers() == []
        with pytest.raises(AIError, match="none healthy"):
            await manager.complete("prompt")
        assert len(flaky.prompts) == 3

    @pytest.mark.asyncio
    async def test_no_providers(self):
        manager = AIManager(AISettings())
        assert not manager.has_providers()
        with pytest.raises(AIError) as exc_info:
            await manager.complete("prompt")
        assert exc_info.value.error_code == ErrorCode.AI_PROVIDER_UNAVAILABLE

    def test_only_keyed_providers_are_built(self):
        manager = AIManager(AISettings(groq_api_key="gsk-test"))
        assert list(manager.providers) == [AIProviderType.GROQ]


class TestProviderRecovery:
    """Providers come back after their cooldown instead of staying disabled."""

    @pytest.mark.asyncio
    async def test_failing_provider_recovers_after_cooldown(self):
        flaky = FakeProvider(AIProviderType.GROQ, error=AIError("503 from upstream"))
        manager = AIManager(providers=[flaky])
        categories = [Category(id=1, name="Technology"), Category(id=2, name="Sports")]

        with patch("feedpress.ai.ai_manager.time") as clock:
            clock.time.return_value = 1_000.0
            for _ in range(3):
                with pytest.raises(AIError):
                    await manager.complete("prompt")
            assert manager.get_healthy_providers() == []

            flaky.error = None
            flaky.answer = "Sports"
            clock.time.return_value = 1_000.0 + ERROR_COOLDOWN_SECONDS + 1
            result = await create_classifier(manager).classify("Derby", "Match report", categories)

        assert result.method == "ai"
        assert result.category.name == "Sports"
        assert len(flaky.prompts) == 4
        assert manager.get_healthy_providers() == [AIProviderType.GROQ]

    @pytest.mark.asyncio
    async def test_rate_limited_provider_recovers_after_reset(self):
        limited = FakeProvider(AIProviderType.GEMINI, error=AIError("quota", error_code=ErrorCode.AI_RATE_LIMIT))
        manager = AIManager(providers=[limited])

        with patch("feedpress.ai.ai_manager.time") as clock:
            for attempt in range(3):
                clock.time.return_value = 5_000.0 + attempt * (RATE_LIMIT_COOLDOWN_SECONDS + 1)
                with pytest.raises(AIError):
                    await manager.complete("prompt")
            assert manager.get_healthy_providers() == []

            clock.time.return_value += RATE_LIMIT_COOLDOWN_SECONDS + 1
            assert manager.get_healthy_providers() == [AIProviderType.GEMINI]

        assert len(limited.prompts) == 3

    @pytest.mark.asyncio
    async def test_operator_reset(self):
        flaky = FakeProvider(AIProviderType.OPENROUTER, error=AIError("timeout"))
        manager = AIManager(providers=[flaky])
        for _ in range(3):
            with pytest.raises(AIError):
                await manager.complete("prompt")

        manager.reset_provider_health(AIProviderType.OPENROUTER)

        assert manager.get_healthy_providers() == [AIProviderType.OPENROUTER]
        assert manager.get_provider_status()["openrouter"]["error_count"] == 3


class TestGroqProvider:
    """Test suite for GroqProvider with the client mocked."""

    def test_requires_api_key(self):
        with pytest.raises(AIError) as exc_info:
            GroqProvider("")
        assert exc_info.value.error_code == ErrorCode.AI_INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_completion_text(self):
        provider = GroqProvider("gsk-test", max_tokens=500)
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="  Politics \n"))],
            usage=SimpleNamespace(total_tokens=42),
        )
        provider.async_client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(return_value=response)))
        )

        result = await provider.complete("Classify this", max_tokens=50)

        assert result.text == "Politics"
        assert result.tokens_used == 42
        kwargs = provider.async_client.chat.completions.create.await_args.kwargs
        assert kwargs["max_tokens"] == 50
        assert kwargs["messages"] == [{"role": "user", "content": "Classify this"}]

    @pytest.mark.asyncio
    async def test_empty_completion_is_an_error(self):
        provider = GroqProvider("gsk-test")
        response = SimpleNamespace(choices=[], usage=None)
        provider.async_client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(return_value=response)))
        )

        with pytest.raises(AIError) as exc_info:
            await provider.complete("prompt")
        assert exc_info.value.error_code == ErrorCode.AI_INVALID_RESPONSE
