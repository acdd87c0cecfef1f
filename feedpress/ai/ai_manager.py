"""
AI Manager
==========

Multi-provider completion with health tracking and priority-order fallback.
"""

import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from .providers.base import AIProvider, CompletionResult
from ..config.settings import AIProvider as AIProviderType, AISettings
from ..utils.exceptions import AIError, ErrorCode
from ..utils.logging import get_logger_for_component

RATE_LIMIT_COOLDOWN_SECONDS = 300
ERROR_COOLDOWN_SECONDS = 300
MAX_CONSECUTIVE_ERRORS = 3


@dataclass
class ProviderHealth:
    """Health status of an AI provider."""

    provider_type: AIProviderType
    available: bool
    last_success: Optional[float] = None
    last_error: Optional[float] = None
    error_count: int = 0
    consecutive_errors: int = 0
    rate_limited: bool = False
    rate_limit_reset: Optional[float] = None

    @property
    def is_healthy(self) -> bool:
        if not self.available:
            return False
        now = time.time()
        if self.rate_limited and self.rate_limit_reset and now < self.rate_limit_reset:
            return False
        if self.consecutive_errors < MAX_CONSECUTIVE_ERRORS or self.rate_limited:
            return True
        # a provider that kept failing gets another chance after the cooldown
        return self.last_error is None or now - self.last_error > ERROR_COOLDOWN_SECONDS

    def record_success(self):
        self.last_success = time.time()
        self.consecutive_errors = 0
        self.rate_limited = False

    def record_error(self, is_rate_limit: bool = False):
        self.last_error = time.time()
        self.error_count += 1
        self.consecutive_errors += 1

        if is_rate_limit:
            self.rate_limited = True
            self.rate_limit_reset = time.time() + RATE_LIMIT_COOLDOWN_SECONDS


def _build_provider(provider_type: AIProviderType, settings: AISettings) -> AIProvider:
    kwargs = dict(
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        timeout=settings.request_timeout,
    )
    api_key = settings.get_api_key(provider_type)
    model = settings.get_model(provider_type)

    if provider_type == AIProviderType.GEMINI:
        from .providers.gemini_provider import GeminiProvider

        return GeminiProvider(api_key, model, **kwargs)
    if provider_type == AIProviderType.GROQ:
        from .providers.groq_provider import GroqProvider

        return GroqProvider(api_key, model, **kwargs)
    from .providers.openrouter_provider import OpenRouterProvider

    return OpenRouterProvider(api_key, model, **kwargs)


class AIManager:
    """Routes prompts to the first healthy configured provider."""

    def __init__(self, settings: Optional[AISettings] = None, providers: Optional[List[AIProvider]] = None):
        """Initialize AI manager.

        Args:
            settings: AI settings; providers with an API key are created in
                ``provider_order``
            providers: Explicit provider instances, bypassing settings
        """
        self.logger = get_logger_for_component("ai_manager")
        self.providers: Dict[AIProviderType, AIProvider] = {}
        self.provider_health: Dict[AIProviderType, ProviderHealth] = {}

        if providers is not None:
            for provider in providers:
                self._register(provider)
        elif settings is not None:
            for provider_type in settings.provider_order:
                if not settings.get_api_key(provider_type):
                    continue
                try:
                    self._register(_build_provider(provider_type, settings))
                except AIError as e:
                    self.logger.warning(f"Could not initialize {provider_type.value} provider: {e}")

        if not self.providers:
            self.logger.info("No AI providers configured")

    def _register(self, provider: AIProvider) -> None:
        self.providers[provider.provider_type] = provider
        self.provider_health[provider.provider_type] = ProviderHealth(
            provider_type=provider.provider_type, available=True
        )

    def has_providers(self) -> bool:
        return bool(self.providers)

    def get_healthy_providers(self) -> List[AIProviderType]:
        return [p for p, health in self.provider_health.items() if health.is_healthy]

    async def complete(self, prompt: str, max_tokens: Optional[int] = None) -> CompletionResult:
        """Complete ``prompt`` with the first provider that succeeds.

        Raises:
            AIError: when no provider is configured or every provider failed
        """
        if not self.providers:
            raise AIError("No AI provider configured",
                          error_code=ErrorCode.AI_PROVIDER_UNAVAILABLE)

        errors = []
        for provider_type in self.get_healthy_providers():
            provider = self.providers[provider_type]
            health = self.provider_health[provider_type]
            try:
                result = await provider.complete(prompt, max_tokens=max_tokens)
                health.record_success()
                return result
            except AIError as e:
                health.record_error(is_rate_limit=e.error_code == ErrorCode.AI_RATE_LIMIT)
                errors.append(f"{provider_type.value}: {e}")
                self.logger.warning(f"Provider {provider_type.value} failed, trying next: {e}")

        raise AIError(
            "All AI providers failed" + (f": {'; '.join(errors)}" if errors else " (none healthy)"),
            error_code=ErrorCode.AI_PROVIDER_UNAVAILABLE,
        )

    def get_provider_status(self) -> Dict[str, Dict]:
        return {
            provider_type.value: {
                "healthy": health.is_healthy,
                "error_count": health.error_count,
                "rate_limited": health.rate_limited,
            }
            for provider_type, health in self.provider_health.items()
        }

    def reset_provider_health(self, provider_type: AIProviderType) -> None:
        """Mark a provider healthy again without waiting for its cooldown."""
        health = self.provider_health.get(provider_type)
        if health is None:
            return
        health.consecutive_errors = 0
        health.rate_limited = False
        health.rate_limit_reset = None
        self.logger.info(f"Reset health status for {provider_type.value}")
