"""
Groq AI provider.
"""

import time
from typing import Optional

import groq
from groq import AsyncGroq

from .base import AIProvider, CompletionResult
from ...config.settings import AIProvider as AIProviderType
from ...utils.exceptions import AIError, ErrorCode
from ...utils.logging import get_logger_for_component


class GroqProvider(AIProvider):
    """Groq chat-completions provider."""

    def __init__(self, api_key: str, model_name: str = "llama-3.3-70b-versatile", **kwargs):
        if not api_key:
            raise AIError(
                "Groq API key is required",
                provider="groq",
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
            )

        super().__init__(api_key, model_name, AIProviderType.GROQ, **kwargs)
        self.async_client = AsyncGroq(api_key=api_key, timeout=self.timeout)
        self.logger = get_logger_for_component("groq_provider")
        self.logger.info(f"Groq provider initialized with model: {model_name}")

    async def complete(self, prompt: str, max_tokens: Optional[int] = None) -> CompletionResult:
        if not self.can_make_request():
            raise AIError("Groq rate limit reached", provider="groq",
                          error_code=ErrorCode.AI_RATE_LIMIT)

        start_time = time.time()
        self.rate_limit.record_request()
        try:
            response = await self.async_client.chat.completions.create(
                model=self.model_name,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=max_tokens or self.max_tokens,
            )

        except groq.RateLimitError as e:
            self.logger.warning(f"Groq rate limit exceeded: {e}")
            self.rate_limit.mark_exhausted()
            raise AIError(f"Groq rate limit exceeded: {e}", provider="groq",
                          error_code=ErrorCode.AI_RATE_LIMIT)
        except groq.APIConnectionError as e:
            raise AIError(f"Connection to Groq failed: {e}", provider="groq",
                          error_code=ErrorCode.AI_CONNECTION_ERROR)
        except groq.APIStatusError as e:
            if e.status_code == 401:
                raise AIError("Invalid Groq API key", provider="groq",
                              error_code=ErrorCode.AI_INVALID_CREDENTIALS, recoverable=False)
            raise AIError(f"Groq API error: {e.status_code} - {e.message}", provider="groq",
                          error_code=ErrorCode.AI_API_ERROR)

        text = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not text:
            raise AIError("Groq returned an empty response", provider="groq",
                          error_code=ErrorCode.AI_INVALID_RESPONSE)

        usage = getattr(response, "usage", None)
        return CompletionResult(
            text=text,
            provider="groq",
            model_used=self.model_name,
            tokens_used=getattr(usage, "total_tokens", None),
            processing_time_ms=self._elapsed_ms(start_time),
        )
