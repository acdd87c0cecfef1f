"""
Base AI Provider Interface
==========================

Abstract base class and result types for single-prompt text completion
providers used by category classification and content rewriting.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import time

from ...config.settings import AIProvider as AIProviderType


@dataclass
class RateLimitInfo:
    """Rate limit tracking for one provider."""

    requests_per_minute: int
    current_minute_count: int = 0
    minute_start: float = 0.0
    reset_time: Optional[float] = None

    def can_make_request(self) -> bool:
        now = time.time()
        if self.reset_time and now < self.reset_time:
            return False
        if now - self.minute_start >= 60:
            self.minute_start = now
            self.current_minute_count = 0
        return self.current_minute_count < self.requests_per_minute

    def record_request(self) -> None:
        self.current_minute_count += 1

    def mark_exhausted(self, cooldown_seconds: float = 60.0) -> None:
        self.reset_time = time.time() + cooldown_seconds


@dataclass
class CompletionResult:
    """Free-text answer from one provider."""

    text: str
    provider: str
    model_used: str
    tokens_used: Optional[int] = None
    processing_time_ms: Optional[int] = None


class AIProvider(ABC):
    """Abstract base class for AI provider implementations."""

    DEFAULT_REQUESTS_PER_MINUTE = 30

    def __init__(
        self,
        api_key: str,
        model_name: str,
        provider_type: AIProviderType,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.provider_type = provider_type
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.rate_limit = RateLimitInfo(requests_per_minute=self.DEFAULT_REQUESTS_PER_MINUTE)

    @abstractmethod
    async def complete(self, prompt: str, max_tokens: Optional[int] = None) -> CompletionResult:
        """Send one prompt and return the model's text.

        Raises:
            AIError: on rate limiting, authentication, transport or empty
                responses
        """

    def can_make_request(self) -> bool:
        return self.rate_limit.can_make_request()

    def _elapsed_ms(self, start_time: float) -> int:
        return int((time.time() - start_time) * 1000)

    def __str__(self) -> str:
        return f"{self.provider_type.value}:{self.model_name}"
